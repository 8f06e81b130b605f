"""Pydantic models for council rounds, plus the built-in round templates."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from council.errors import ConfigurationError


class _CamelModel(BaseModel):
    """Accepts both snake_case and camelCase keys; dumps camelCase by alias."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Round(_CamelModel):
    """A named, time-boxed discussion phase with a fixed prompt."""

    name: str
    duration_seconds: int = Field(gt=0)
    prompt: str
    wrap_up_prompt: str | None = None
    wrap_up_sent: bool = False


class CouncilConfig(_CamelModel):
    """Round plan for one council session. Round order is execution order."""

    rounds: list[Round] = Field(default_factory=list)
    free_for_all: bool = False
    context_prompt: str | None = None

    @model_validator(mode="after")
    def _free_for_all_has_no_rounds(self) -> "CouncilConfig":
        if self.free_for_all and self.rounds:
            raise ValueError("a free-for-all council cannot define rounds")
        return self

    @property
    def total_duration(self) -> int:
        return sum(r.duration_seconds for r in self.rounds)


class RoundTemplate(_CamelModel):
    """A reusable, named round plan."""

    name: str
    description: str = ""
    rounds: list[Round] = Field(default_factory=list)
    free_for_all: bool = False


FREE_FOR_ALL = "freeForAll"

ROUND_TEMPLATES: dict[str, RoundTemplate] = {
    "standard": RoundTemplate(
        name="Standard",
        description="6 rounds, ~26 minutes total",
        rounds=[
            Round(
                name="Proposals",
                duration_seconds=300,
                prompt=(
                    "Visionary: Propose 2-3 distinct tool ideas. For each: name, one-liner, "
                    "why valuable, what becomes possible."
                ),
                wrap_up_prompt="30 seconds remaining. Finalize your proposals.",
            ),
            Round(
                name="Reactions",
                duration_seconds=300,
                prompt="All agents: React to the proposals through your specific lens. Be direct.",
                wrap_up_prompt="30 seconds. Final reactions.",
            ),
            Round(
                name="Defense",
                duration_seconds=180,
                prompt=(
                    "Visionary: Address the council's concerns. Concede where valid, "
                    "push back where wrong."
                ),
                wrap_up_prompt="Wrap up your defense.",
            ),
            Round(
                name="Narrow",
                duration_seconds=180,
                prompt="All agents: Vote for top 2 ideas. Brief reasoning.",
                wrap_up_prompt="Final votes.",
            ),
            Round(
                name="Debate",
                duration_seconds=300,
                prompt="Stress-test the top 2 finalists. Attack, defend, evolve.",
                wrap_up_prompt="Converge on a winner.",
            ),
            Round(
                name="MVP Scope",
                duration_seconds=300,
                prompt=(
                    "Define the minimum viable version. Trigger, data sources, output, "
                    "what's OUT of scope."
                ),
                wrap_up_prompt="Finalize the spec.",
            ),
        ],
    ),
    "quick": RoundTemplate(
        name="Quick",
        description="3 rounds, 11 minutes total",
        rounds=[
            Round(name="Pitch", duration_seconds=180, prompt="Visionary: One idea. Make it count."),
            Round(
                name="Rapid Fire",
                duration_seconds=300,
                prompt="All: Quick reactions. No essays. Hit the key points.",
            ),
            Round(
                name="Decision",
                duration_seconds=180,
                prompt="Converge: Yes or no? If yes, define scope. If no, why?",
            ),
        ],
    ),
    FREE_FOR_ALL: RoundTemplate(
        name="Free for all",
        description="Untimed, no automatic round progression",
        free_for_all=True,
    ),
}


def resolve_council_config(
    template: str | None = None,
    custom_rounds: list[Round | dict[str, Any]] | None = None,
    context_prompt: str | None = None,
) -> CouncilConfig:
    """
    Build a session config from a template name or a custom round list.

    The free-for-all template wins over custom rounds; custom rounds win over
    any other template. Rounds are always fresh copies, so per-round flags
    never leak between sessions.

    Raises:
        ConfigurationError: Unknown template, empty or invalid custom rounds.
    """
    if template in (FREE_FOR_ALL, "free_for_all"):
        return CouncilConfig(rounds=[], free_for_all=True, context_prompt=context_prompt)

    if custom_rounds is not None:
        if not custom_rounds:
            raise ConfigurationError("Custom rounds must contain at least one round")
        try:
            rounds = [
                r.model_copy(deep=True) if isinstance(r, Round) else Round.model_validate(r)
                for r in custom_rounds
            ]
        except ValidationError as e:
            raise ConfigurationError(f"Invalid custom rounds: {e}", cause=e) from e
        return CouncilConfig(rounds=rounds, context_prompt=context_prompt)

    name = template or "standard"
    tpl = ROUND_TEMPLATES.get(name)
    if tpl is None:
        raise ConfigurationError(
            f"Unknown template '{name}'. Available: {', '.join(ROUND_TEMPLATES)}"
        )
    return CouncilConfig(
        rounds=[r.model_copy(deep=True) for r in tpl.rounds],
        free_for_all=tpl.free_for_all,
        context_prompt=context_prompt,
    )


def load_rounds_file(path: Path) -> list[Round]:
    """Load a custom round list from YAML (a list, or a mapping with a ``rounds`` key)."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict):
        data = data.get("rounds")
    if not isinstance(data, list):
        raise ConfigurationError(f"{path.name}: expected a list of rounds")
    try:
        return [Round.model_validate(item) for item in data]
    except ValidationError as e:
        raise ConfigurationError(f"{path.name}: invalid round definition: {e}", cause=e) from e
