"""Council agents: personas, runtime records and the orchestrator."""

from council.agents.persona import BUILTIN_PERSONAS, Persona, build_system_prompt, load_personas
from council.agents.types import HUMAN_AUTHOR, SYSTEM_AUTHOR, AgentInstance, Message

__all__ = [
    "BUILTIN_PERSONAS",
    "HUMAN_AUTHOR",
    "SYSTEM_AUTHOR",
    "AgentInstance",
    "Message",
    "Persona",
    "build_system_prompt",
    "load_personas",
]
