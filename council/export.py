"""Transcript and summary export for a council session."""

from __future__ import annotations

from typing import Any, Sequence

from council.agents.persona import Persona
from council.agents.types import HUMAN_AUTHOR, Message
from council.engine.rounds import CouncilConfig


def _author_label(author: str, personas: dict[str, Persona]) -> str:
    if author == HUMAN_AUTHOR:
        return "Armaan"
    persona = personas.get(author)
    if persona is None:
        return author
    return f"{persona.emoji} {persona.name}"


def format_transcript(
    messages: Sequence[Message],
    config: CouncilConfig,
    personas: Sequence[Persona] = (),
    title: str = "Council Transcript",
) -> str:
    """
    Render *messages* as Markdown, one section per round.

    System prompts are shown as quotes under the round heading; agent and
    moderator replies as bold-author paragraphs.
    """
    by_role = {p.role: p for p in personas}
    lines = [f"# {title}", ""]
    if config.context_prompt:
        lines += [f"> {config.context_prompt}", ""]

    current: int | None = None
    for msg in messages:
        if msg.round != current:
            current = msg.round
            if config.free_for_all or not config.rounds:
                heading = "Free for all"
            elif 0 <= current < len(config.rounds):
                heading = f"Round {current + 1}: {config.rounds[current].name}"
            else:
                heading = f"Round {current + 1}"
            lines += [f"## {heading}", ""]

        if msg.is_system_message:
            lines.append("> " + msg.content.replace("\n", "\n> "))
        else:
            label = _author_label(msg.author, by_role)
            if msg.reply_to:
                label += f" → @{msg.reply_to}"
            lines.append(f"**{label}** ({msg.timestamp:%H:%M:%S})")
            lines.append("")
            lines.append(msg.content)
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def summarize_session(
    session_id: str,
    messages: Sequence[Message],
    config: CouncilConfig,
) -> dict[str, Any]:
    """Build the export payload for a finished (or ended) session."""
    spoken = [m for m in messages if not m.is_system_message]
    participants = sorted({m.author for m in spoken if m.author != HUMAN_AUTHOR})

    if messages:
        elapsed = messages[-1].timestamp - messages[0].timestamp
        duration_minutes = round(elapsed.total_seconds() / 60, 1)
    else:
        duration_minutes = 0.0

    rounds_covered = sorted({m.round for m in messages})
    if config.free_for_all:
        round_names = ["Free for all"] if messages else []
    else:
        round_names = [config.rounds[i].name for i in rounds_covered if 0 <= i < len(config.rounds)]

    return {
        "title": "Council Discussion",
        "summary": (
            f"{len(spoken)} contributions from {len(participants)} agents "
            f"across {len(round_names)} round(s)"
        ),
        "participants": participants,
        "rounds": round_names,
        "durationMinutes": duration_minutes,
        "messages": [m.to_dict() for m in messages],
        "source": f"council-session-{session_id}",
    }
