"""Configuration schema, loaded from ~/.council/config.json and COUNCIL_* variables."""

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_serializer
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewayConfig(BaseModel):
    """Agent-hosting service connection."""

    url: str = "http://localhost:18789"
    token: SecretStr | None = None
    models: dict[str, str] = Field(default_factory=lambda: {
        "opus": "anthropic/claude-opus-4-20250514",
        "sonnet": "anthropic/claude-sonnet-4-20250514",
    })
    spawn_timeout_seconds: int = 1800
    send_timeout_seconds: int = 60
    request_timeout: float = 90.0

    def get_token_value(self) -> str | None:
        return self.token.get_secret_value() if self.token else None

    @field_serializer("token", when_used="json")
    def _dump_token(self, token: SecretStr | None) -> str | None:
        return token.get_secret_value() if token else None


class CouncilDefaults(BaseModel):
    """Session defaults."""

    template: str = "standard"
    personas_dir: str | None = None
    message_grace_seconds: float = 5.0
    tick_seconds: float = 1.0
    wrap_up_at: int = 30
    final_countdown_at: int = 10


class RateLimitConfig(BaseModel):
    """Per-sender limits on moderator input."""

    enabled: bool = True
    max_messages_per_minute: int = 20
    max_messages_per_hour: int = 300


class ConsoleChannelConfig(BaseModel):
    enabled: bool = True
    allow_from: list[str] = Field(default_factory=list)
    show_ticks: bool = False


class ChannelsConfig(BaseModel):
    console: ConsoleChannelConfig = Field(default_factory=ConsoleChannelConfig)


class Config(BaseSettings):
    """Root configuration."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    council: CouncilDefaults = Field(default_factory=CouncilDefaults)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)

    model_config = SettingsConfigDict(
        env_prefix="COUNCIL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @property
    def personas_path(self) -> Path | None:
        if not self.council.personas_dir:
            return None
        return Path(self.council.personas_dir).expanduser()
