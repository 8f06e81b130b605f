"""Agent orchestrator: roster, prompt fan-out, reply fan-in and context relays."""

from __future__ import annotations

import asyncio
import re
from typing import Iterable, Sequence

from loguru import logger

from council.agents.persona import Persona, load_personas
from council.agents.types import HUMAN_AUTHOR, SYSTEM_AUTHOR, AgentInstance, AgentStatus, Message
from council.engine.signals import SignalEmitter
from council.errors import ConfigurationError, PartialRosterFailure, RemoteCallFailure, SilentAgentFailure
from council.gateway.base import BySessionHandle, RemoteAgentGateway
from council.utils.tasks import BackgroundTasks

VISIONARY_ROLE = "visionary"

_MENTION = re.compile(r"@([\w-]+)")


class AgentOrchestrator(SignalEmitter):
    """
    Owns the roster of agents for one council and all traffic to them.

    Round-level sends fan out concurrently and are awaited together; one
    agent's failure never aborts the others. Every reply is also relayed to
    the other agents in the background so each keeps the whole discussion in
    its own context (N agents replying means up to N*(N-1) relay sends).

    Signals:
        agent_spawned(role, session_handle)
        all_agents_ready(agents)
        agent_status(role, status)
        message(message)
        terminated()
    """

    def __init__(
        self,
        session_id: str,
        gateway: RemoteAgentGateway,
        personas: Sequence[Persona] | None = None,
    ):
        super().__init__()
        self.session_id = session_id
        self.gateway = gateway
        self.personas = list(personas) if personas is not None else load_personas()
        self._agents: dict[str, AgentInstance] = {}
        self._messages: list[Message] = []
        self._current_round = 0
        self._active = False
        self._relays = BackgroundTasks(f"relays:{session_id}")

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def agents(self) -> list[AgentInstance]:
        return list(self._agents.values())

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def current_round(self) -> int:
        return self._current_round

    @property
    def pending_relays(self) -> int:
        return len(self._relays)

    def get_agent(self, role: str) -> AgentInstance | None:
        return self._agents.get(role)

    async def initialize_agents(self, context_prompt: str | None = None) -> list[AgentInstance]:
        """
        Spawn one remote session per persona, concurrently.

        Returns:
            The full roster once every spawn succeeded.

        Raises:
            ConfigurationError: Agents were already initialized.
            PartialRosterFailure: Some spawns failed. Spawned agents stay
                registered until terminate().
            RemoteCallFailure: Every spawn failed.
        """
        if self._active or self._agents:
            raise ConfigurationError("Agents already initialized")

        logger.info("Spawning {} agents for session {}", len(self.personas), self.session_id)
        results = await asyncio.gather(
            *(self._spawn(persona, context_prompt) for persona in self.personas),
            return_exceptions=True,
        )

        failures: dict[str, BaseException] = {}
        for persona, result in zip(self.personas, results):
            if isinstance(result, BaseException):
                logger.error("Failed to initialize agent {}: {}", persona.role, result)
                failures[persona.role] = result

        if failures:
            spawned = [r for r in self._agents if r not in failures]
            if not spawned:
                first = next(iter(failures.values()))
                raise RemoteCallFailure(
                    "spawn", f"No agents could be spawned: {first}", cause=first
                )
            raise PartialRosterFailure(spawned, failures)

        self._active = True
        agents = self.agents
        self.emit("all_agents_ready", agents)
        return agents

    async def _spawn(self, persona: Persona, context_prompt: str | None) -> AgentInstance:
        session = await self.gateway.spawn_session(persona.role, persona, context_prompt)
        agent = AgentInstance(
            role=persona.role,
            model=persona.model,
            session=session.handle,
            persona=persona,
        )
        self._agents[persona.role] = agent
        self.emit("agent_spawned", persona.role, session.handle)
        return agent

    async def broadcast_round_prompt(self, index: int, prompt: str) -> None:
        """Send a round's prompt to the roster and wait for every reply."""
        self._current_round = index
        self._record(Message(author=SYSTEM_AUTHOR, content=prompt, round=index, is_system_message=True))

        if index == 0:
            await self._open_with_visionary(prompt)
            return

        await self._fan_out((agent, prompt) for agent in self.agents)

    async def _open_with_visionary(self, prompt: str) -> None:
        """Round 0: the visionary answers first, then everyone reacts to it."""
        visionary = self._agents.get(VISIONARY_ROLE)
        if visionary is None:
            logger.warning("No {} in the roster; opening round sends nothing", VISIONARY_ROLE)
            return

        reply = await self.send_to_agent(visionary, prompt)
        if reply is None:
            logger.warning("Visionary gave no opening reply; skipping the reaction broadcast")
            return

        follow_up = (
            f"The Visionary proposed:\n\n{reply}\n\n"
            "React through your specific lens. Be direct."
        )
        await self._fan_out(
            (agent, follow_up) for agent in self.agents if agent.role != VISIONARY_ROLE
        )

    async def broadcast_wrap_up(self, wrap_up_prompt: str) -> None:
        """Nudge every agent that is not waiting to wrap up the round."""
        self._record(Message(
            author=SYSTEM_AUTHOR,
            content=f"⏰ {wrap_up_prompt}",
            round=self._current_round,
            is_system_message=True,
        ))
        await self._fan_out(
            (agent, wrap_up_prompt) for agent in self.agents if agent.status != "waiting"
        )

    async def handle_armaan_message(self, content: str) -> Message:
        """
        Route a message from the human moderator to every agent.

        The first ``@role`` naming a known agent addresses that agent
        directly; everyone else hears it as general remarks.
        """
        reply_to = None
        mention = _MENTION.search(content)
        if mention and mention.group(1).lower() in self._agents:
            reply_to = mention.group(1).lower()

        message = Message(
            author=HUMAN_AUTHOR,
            content=content,
            round=self._current_round,
            reply_to=reply_to,
        )
        self._record(message)

        await self._fan_out(
            (
                agent,
                f"Armaan asked you directly: {content}"
                if agent.role == reply_to
                else f"Armaan says: {content}",
            )
            for agent in self.agents
        )
        return message

    async def send_to_agent(self, agent: AgentInstance, text: str) -> str | None:
        """
        Send *text* to one agent and record its reply.

        Returns:
            The reply text, or None when the agent stayed silent. Failures
            are logged and never raised.
        """
        self._set_status(agent, "typing")
        try:
            reply = await self._request_reply(agent, text)
        except SilentAgentFailure as e:
            logger.warning("{}", e)
            self._set_status(agent, "idle")
            return None
        except Exception as e:
            logger.error("Error sending to agent {}: {}", agent.role, e)
            self._set_status(agent, "idle")
            return None

        message = Message(author=agent.role, content=reply, round=self._current_round)
        self._messages.append(message)
        self._set_status(agent, "idle")
        self.emit("message", message)
        self._relay_to_others(message)
        return reply

    async def _request_reply(self, agent: AgentInstance, text: str) -> str:
        result = await self.gateway.send_message(BySessionHandle(agent.session), text)
        if not result.success:
            raise SilentAgentFailure(agent.role, result.error or "send failed")
        if not result.reply or not result.reply.strip():
            raise SilentAgentFailure(agent.role, "empty reply")
        if result.session_handle and result.session_handle != agent.session:
            logger.debug("Agent {} rebound to session {}", agent.role, result.session_handle)
            agent.session = result.session_handle
        return result.reply

    def _relay_to_others(self, message: Message) -> None:
        text = f"{message.author}: {message.content}"
        for agent in self.agents:
            if agent.role == message.author:
                continue
            self._relays.spawn(self._relay(agent, text), label=f"{message.author}->{agent.role}")

    async def _relay(self, agent: AgentInstance, text: str) -> None:
        result = await self.gateway.send_message(BySessionHandle(agent.session), text)
        if not result.success:
            logger.warning("Failed to relay context to {}: {}", agent.role, result.error)

    async def _fan_out(self, sends: Iterable[tuple[AgentInstance, str]]) -> None:
        pairs = list(sends)
        results = await asyncio.gather(
            *(self.send_to_agent(agent, text) for agent, text in pairs),
            return_exceptions=True,
        )
        for (agent, _), result in zip(pairs, results):
            if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                logger.error("Send to {} raised: {}", agent.role, result)

    async def terminate(self) -> None:
        """End every agent session and clear the roster."""
        if not self._active and not self._agents:
            return

        await self._relays.cancel_all()
        agents = self.agents
        results = await asyncio.gather(
            *(self.gateway.terminate_session(BySessionHandle(a.session)) for a in agents),
            return_exceptions=True,
        )
        for agent, result in zip(agents, results):
            if isinstance(result, Exception):
                logger.warning("Failed to terminate session for {}: {}", agent.role, result)

        self._agents.clear()
        self._active = False
        logger.info("Terminated {} agents for session {}", len(agents), self.session_id)
        self.emit("terminated")

    def _record(self, message: Message) -> None:
        self._messages.append(message)
        self.emit("message", message)

    def _set_status(self, agent: AgentInstance, status: AgentStatus) -> None:
        if self._agents.get(agent.role) is not agent:
            return
        agent.status = status
        self.emit("agent_status", agent.role, status)
