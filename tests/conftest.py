"""Shared fixtures: an in-memory agent gateway and a small roster."""

import asyncio

import pytest

from council.agents.persona import BUILTIN_PERSONAS, Persona
from council.errors import RemoteCallFailure
from council.gateway.base import (
    ByRole,
    RemoteAgentGateway,
    SendResult,
    SessionDescriptor,
    SessionTarget,
    SpawnedSession,
)


class FakeGateway(RemoteAgentGateway):
    """Records every call and answers with canned replies.

    Attributes:
        sent: (role, text) for every send, in call order.
        fail_spawn: roles whose spawn raises RemoteCallFailure.
        fail_send: roles whose sends come back unsuccessful.
        replies: role -> reply text (default "<role> reply").
        gates: role -> asyncio.Event the send waits on before replying.
        relay_gate: when set, context relays wait on it.
    """

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.spawned: list[str] = []
        self.terminated: list[str] = []
        self.fail_spawn: set[str] = set()
        self.fail_send: set[str] = set()
        self.replies: dict[str, str] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.relay_gate: asyncio.Event | None = None
        self.closed = False
        self._roles: dict[str, str] = {}

    async def spawn_session(self, role, persona, context_prompt=None):
        if role in self.fail_spawn:
            raise RemoteCallFailure("sessions_spawn", f"spawn rejected for {role}", target=role)
        handle = f"sess-{role}"
        self._roles[handle] = role
        self.spawned.append(role)
        return SpawnedSession(handle=handle)

    def _role(self, target: SessionTarget) -> str:
        if isinstance(target, ByRole):
            return target.role
        return self._roles.get(target.handle, target.handle)

    async def send_message(self, target, text):
        role = self._role(target)
        self.sent.append((role, text))
        if self.relay_gate is not None and _is_relay(text):
            await self.relay_gate.wait()
            return SendResult(success=True, reply="noted")
        gate = self.gates.get(role)
        if gate is not None:
            await gate.wait()
        if role in self.fail_send:
            return SendResult(success=False, error="agent unavailable")
        return SendResult(success=True, reply=self.replies.get(role, f"{role} reply"))

    async def list_sessions(self, limit=10):
        return [SessionDescriptor(handle=h, label=f"council-{r}") for h, r in self._roles.items()][:limit]

    async def terminate_session(self, target):
        self.terminated.append(self._role(target))

    async def close(self):
        self.closed = True

    def prompts_to(self, role: str) -> list[str]:
        """Texts sent to *role*, excluding context relays."""
        return [t for r, t in self.sent if r == role and not _is_relay(t)]

    def relays_to(self, role: str) -> list[str]:
        return [t for r, t in self.sent if r == role and _is_relay(t)]


def _is_relay(text: str) -> bool:
    head = text.split(":", 1)[0]
    return head in {p.role for p in BUILTIN_PERSONAS}


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def trio() -> list[Persona]:
    """visionary, pragmatist and critic from the built-in roster."""
    wanted = ("visionary", "pragmatist", "critic")
    return [p for p in BUILTIN_PERSONAS if p.role in wanted]
