"""Tests for transcript and summary export (export.py)."""

from datetime import datetime, timedelta

from council.agents.persona import BUILTIN_PERSONAS
from council.agents.types import Message
from council.engine.rounds import resolve_council_config
from council.export import format_transcript, summarize_session

T0 = datetime(2026, 3, 1, 9, 0, 0)


def _messages() -> list[Message]:
    return [
        Message(author="system", content="Visionary: One idea.", round=0, is_system_message=True, timestamp=T0),
        Message(author="visionary", content="A citation radar.", round=0, timestamp=T0 + timedelta(seconds=40)),
        Message(author="armaan", content="@critic weak spot?", round=0, reply_to="critic",
                timestamp=T0 + timedelta(seconds=90)),
        Message(author="critic", content="Nobody reads alerts.", round=0, timestamp=T0 + timedelta(minutes=2)),
        Message(author="system", content="All: Quick reactions.", round=1, is_system_message=True,
                timestamp=T0 + timedelta(minutes=3)),
        Message(author="pragmatist", content="Ship a weekly digest.", round=1, timestamp=T0 + timedelta(minutes=6)),
    ]


def test_transcript_groups_by_round():
    config = resolve_council_config("quick", context_prompt="Research tooling")

    text = format_transcript(_messages(), config, BUILTIN_PERSONAS)

    assert text.startswith("# Council Transcript\n\n> Research tooling")
    assert text.index("## Round 1: Pitch") < text.index("## Round 2: Rapid Fire")
    assert "> Visionary: One idea." in text
    assert "**🔮 The Visionary** (09:00:40)" in text
    assert "**Armaan → @critic**" in text
    assert text.endswith("Ship a weekly digest.\n")


def test_transcript_free_for_all_heading():
    config = resolve_council_config("freeForAll")
    messages = [Message(author="critic", content="Hmm.", round=0, timestamp=T0)]

    text = format_transcript(messages, config)

    assert "## Free for all" in text
    assert "**critic**" in text


def test_summary():
    config = resolve_council_config("quick")

    summary = summarize_session("council_1", _messages(), config)

    assert summary["title"] == "Council Discussion"
    assert summary["participants"] == ["critic", "pragmatist", "visionary"]
    assert summary["rounds"] == ["Pitch", "Rapid Fire"]
    assert summary["durationMinutes"] == 6.0
    assert len(summary["messages"]) == 6
    assert summary["summary"] == "4 contributions from 3 agents across 2 round(s)"


def test_summary_of_empty_session():
    summary = summarize_session("council_1", [], resolve_council_config("freeForAll"))
    assert summary["durationMinutes"] == 0.0
    assert summary["rounds"] == []
    assert summary["participants"] == []
