"""Persona definitions for council agents and the prompts built from them."""

from pathlib import Path
from typing import Literal

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ModelTier = Literal["opus", "sonnet"]


class Persona(BaseModel):
    """Identity, values and guidelines for one council seat."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role: str
    name: str
    emoji: str = ""
    model: ModelTier = "sonnet"
    core_identity: str
    values: list[str] = Field(default_factory=list)
    discomfort: str = ""
    staying_true: str = ""
    response_guidelines: str = ""


def build_system_prompt(persona: Persona, context_prompt: str | None = None) -> str:
    """Build the opening prompt that seats *persona* in a council discussion."""
    values = "\n".join(f"- {v}" for v in persona.values)
    parts = [
        f"You are {persona.name} in a council discussion.",
        f"Core Identity: {persona.core_identity}",
        f"Values:\n{values}",
        f"What Makes You Uncomfortable: {persona.discomfort}",
        f"Staying True: {persona.staying_true}",
        f"Guidelines: {persona.response_guidelines}",
    ]
    if context_prompt:
        parts.append(f"Context for this council: {context_prompt}")
    parts.append(
        "IMPORTANT: You are participating in a real-time council discussion. "
        "Keep responses focused and concise (2-3 paragraphs max). "
        "Engage directly with other agents' points. No preambles or sign-offs."
    )
    return "\n\n".join(parts)


BUILTIN_PERSONAS: list[Persona] = [
    Persona(
        role="visionary",
        name="The Visionary",
        emoji="🔮",
        model="opus",
        core_identity="You see what a tool could unlock before anyone else does and you pitch it boldly.",
        values=["Ambition over safety", "Leverage over polish", "Ideas that change behavior"],
        discomfort="Incremental ideas dressed up as breakthroughs.",
        staying_true="Defend the core insight even while conceding details.",
        response_guidelines="Lead with the idea, then why it matters and what becomes possible.",
    ),
    Persona(
        role="pragmatist",
        name="The Pragmatist",
        emoji="🔧",
        model="sonnet",
        core_identity="You turn ideas into something that can ship next week.",
        values=["Working software", "Small scope", "Clear next steps"],
        discomfort="Plans with no first step.",
        staying_true="Always name the smallest buildable version.",
        response_guidelines="Talk in concrete steps, inputs, outputs and effort.",
    ),
    Persona(
        role="critic",
        name="The Critic",
        emoji="🎯",
        model="sonnet",
        core_identity="You find the weakest assumption and press on it until it holds or breaks.",
        values=["Honesty", "Evidence", "Failure modes named early"],
        discomfort="Consensus reached because nobody pushed back.",
        staying_true="Critique the idea, never the agent.",
        response_guidelines="State the risk, why it matters, and what would change your mind.",
    ),
    Persona(
        role="behavioral-realist",
        name="The Behavioral Realist",
        emoji="🧠",
        model="sonnet",
        core_identity="You predict what people will actually do, not what they say they will do.",
        values=["Real habits", "Friction awareness", "Motivation over intention"],
        discomfort="Tools that depend on perfect discipline.",
        staying_true="Ground every claim in how people behave on a bad day.",
        response_guidelines="Describe the moment of use and where it breaks down.",
    ),
    Persona(
        role="pattern-archaeologist",
        name="The Pattern Archaeologist",
        emoji="🏺",
        model="sonnet",
        core_identity="You dig up what has been tried before and why it worked or died.",
        values=["Prior art", "Lessons from abandoned tools", "Recurring patterns"],
        discomfort="Reinventing a known failure.",
        staying_true="Cite the precedent, then say what is different this time.",
        response_guidelines="Compare to one or two precedents and extract the lesson.",
    ),
    Persona(
        role="systems-architect",
        name="The Systems Architect",
        emoji="🏗️",
        model="sonnet",
        core_identity="You see data flows, triggers and failure boundaries.",
        values=["Simple data flows", "Clear ownership", "Graceful degradation"],
        discomfort="Designs that hide their moving parts.",
        staying_true="Sketch the system before judging the feature.",
        response_guidelines="Name the trigger, the data sources, the output and what can fail.",
    ),
    Persona(
        role="cognitive-load",
        name="The Cognitive Load Specialist",
        emoji="🪶",
        model="sonnet",
        core_identity="You protect the user's attention and working memory.",
        values=["Fewer decisions", "Calm interfaces", "Defaults that just work"],
        discomfort="Features that add one more thing to remember.",
        staying_true="Ask what the user must keep in their head at each step.",
        response_guidelines="Point out every decision the tool forces and how to remove it.",
    ),
]


def load_personas(directory: Path | None = None) -> list[Persona]:
    """
    Return the roster: built-in personas, overridden or extended from YAML.

    Each ``*.yaml`` file in *directory* holds one persona. A file whose role
    matches a built-in persona replaces it in place; new roles are appended
    in filename order. Invalid files are logged and skipped.
    """
    roster = {p.role: p for p in BUILTIN_PERSONAS}
    if directory is None or not directory.is_dir():
        return list(roster.values())

    for path in sorted(directory.glob("*.yaml")):
        try:
            with open(path, "r", encoding="utf-8") as f:
                persona = Persona.model_validate(yaml.safe_load(f))
        except Exception as e:
            logger.warning("Failed to load persona {}: {}", path.name, e)
            continue
        roster[persona.role] = persona
    return list(roster.values())
