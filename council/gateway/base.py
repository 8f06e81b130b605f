"""Contract of the remote service that hosts each agent's conversation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union

from council.agents.persona import Persona


@dataclass(frozen=True)
class ByRole:
    """Address a session through the label the gateway assigned to a role."""

    role: str


@dataclass(frozen=True)
class BySessionHandle:
    """Address a session directly by its handle."""

    handle: str


SessionTarget = Union[ByRole, BySessionHandle]


@dataclass(frozen=True)
class SpawnedSession:
    handle: str
    status: str = "active"
    run_id: str | None = None


@dataclass(frozen=True)
class SendResult:
    """Outcome of one send. Ordinary failures are reported, not raised."""

    success: bool
    reply: str | None = None
    session_handle: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SessionDescriptor:
    handle: str
    label: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class RemoteAgentGateway(ABC):
    """
    Abstract gateway to the agent-hosting service.

    Implementations own request-level timeouts; callers apply none of their own.
    """

    @abstractmethod
    async def spawn_session(
        self,
        role: str,
        persona: Persona,
        context_prompt: str | None = None,
    ) -> SpawnedSession:
        """
        Start a conversation seeded with the persona's system prompt.

        Raises:
            RemoteCallFailure: The service is unreachable or rejected the spawn.
        """

    @abstractmethod
    async def send_message(self, target: SessionTarget, text: str) -> SendResult:
        """Send *text* into a session and wait for the agent's reply."""

    @abstractmethod
    async def list_sessions(self, limit: int = 10) -> list[SessionDescriptor]:
        """List recent sessions. Best-effort: an empty list on failure."""

    @abstractmethod
    async def terminate_session(self, target: SessionTarget) -> None:
        """Release a session. Best-effort: failures are logged only."""

    async def close(self) -> None:
        """Release client resources."""
