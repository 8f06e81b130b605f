"""Runtime records owned by the orchestrator: agents and transcript messages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from council.agents.persona import Persona
from council.utils.helpers import new_id

AgentStatus = Literal["idle", "typing", "waiting"]

# Reserved message authors besides agent roles.
HUMAN_AUTHOR = "armaan"
SYSTEM_AUTHOR = "system"


@dataclass
class AgentInstance:
    """One remote participant bound to a persona and a gateway session handle."""

    role: str
    model: str
    session: str
    persona: Persona
    status: AgentStatus = "idle"

    @property
    def emoji(self) -> str:
        return self.persona.emoji

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "model": self.model,
            "sessionKey": self.session,
            "status": self.status,
            "emoji": self.persona.emoji,
            "persona": self.persona.model_dump(by_alias=True),
        }


@dataclass(frozen=True)
class Message:
    """A transcript entry."""

    author: str
    content: str
    round: int
    reply_to: str | None = None
    is_system_message: bool = False
    id: str = field(default_factory=lambda: new_id("msg"))
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "author": self.author,
            "content": self.content,
            "round": self.round,
            "replyTo": self.reply_to,
            "isSystemMessage": self.is_system_message,
        }
