"""Coordinator: owns council sessions and binds the session protocol to them."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

from loguru import logger

from council.agents.orchestrator import AgentOrchestrator
from council.agents.persona import Persona
from council.agents.types import AgentInstance, AgentStatus, Message
from council.bus.events import InboundMessage, OutboundEvent
from council.bus.queue import MessageBus
from council.engine.rounds import CouncilConfig, Round, resolve_council_config
from council.engine.state_machine import CouncilStatus, RoundStateMachine
from council.engine.timer import IntervalTimer, TimerState
from council.errors import CouncilError, SessionNotFoundError
from council.export import format_transcript, summarize_session
from council.gateway.base import RemoteAgentGateway
from council.utils.helpers import new_id
from council.utils.tasks import BackgroundTasks

GatewayFactory = Callable[[str], RemoteAgentGateway]


@dataclass
class CouncilSession:
    """One council: its components, config and detached work."""

    id: str
    config: CouncilConfig
    state_machine: RoundStateMachine
    timer: IntervalTimer
    orchestrator: AgentOrchestrator
    gateway: RemoteAgentGateway
    created_at: datetime = field(default_factory=datetime.now)
    tasks: BackgroundTasks | None = None

    def __post_init__(self) -> None:
        if self.tasks is None:
            self.tasks = BackgroundTasks(f"session:{self.id}")

    @property
    def status(self) -> CouncilStatus:
        return self.state_machine.status


class Coordinator:
    """
    Session registry and protocol entry point.

    Each session gets its own state machine, timer, orchestrator and gateway.
    The coordinator only wires their signals together and forwards them to
    observers on the bus as OutboundEvents; it schedules nothing itself.

    Outbound events: created, started, message, agent_status, agents_ready,
    round, timer, status, error.
    """

    def __init__(
        self,
        bus: MessageBus,
        gateway_factory: GatewayFactory,
        personas: Sequence[Persona] | None = None,
        message_grace_seconds: float = 5.0,
        tick_seconds: float = 1.0,
        wrap_up_at: int = 30,
        final_countdown_at: int = 10,
    ):
        self.bus = bus
        self.gateway_factory = gateway_factory
        self.personas = list(personas) if personas is not None else None
        self.message_grace_seconds = message_grace_seconds
        self.tick_seconds = tick_seconds
        self.wrap_up_at = wrap_up_at
        self.final_countdown_at = final_countdown_at
        self._sessions: dict[str, CouncilSession] = {}
        self._running = False

    # ------------------------------------------------------------------
    # Session protocol
    # ------------------------------------------------------------------

    def create(
        self,
        template: str | None = None,
        custom_rounds: list[Round | dict[str, Any]] | None = None,
        context_prompt: str | None = None,
    ) -> tuple[str, CouncilConfig]:
        """
        Register a new session in the configuring state.

        Raises:
            ConfigurationError: Unknown template or invalid rounds.
        """
        try:
            config = resolve_council_config(template, custom_rounds, context_prompt)
        except CouncilError as e:
            self._publish(None, "error", {"error": "Failed to create council session", "details": str(e)})
            raise

        session_id = new_id("council")
        gateway = self.gateway_factory(session_id)
        session = CouncilSession(
            id=session_id,
            config=config,
            state_machine=RoundStateMachine(config),
            timer=IntervalTimer(self.tick_seconds, self.wrap_up_at, self.final_countdown_at),
            orchestrator=AgentOrchestrator(session_id, gateway, self.personas),
            gateway=gateway,
        )
        self._wire_orchestrator(session)
        self._wire_state_machine(session)
        self._wire_timer(session)
        self._sessions[session_id] = session

        logger.info("Created council {} ({} rounds)", session_id, len(config.rounds))
        self._publish(session_id, "created", {"sessionId": session_id, "config": config.model_dump(by_alias=True)})
        return session_id, config

    async def start(self, session_id: str) -> None:
        """
        Spawn the agents, then start the state machine.

        Raises:
            SessionNotFoundError: Unknown session.
            CouncilError: Agent initialization failed or already started.
        """
        session = self._get(session_id)
        try:
            await session.orchestrator.initialize_agents(session.config.context_prompt)
            session.state_machine.start()
        except CouncilError as e:
            self._publish(session_id, "error", {"error": "Failed to start council", "details": str(e)})
            raise

        logger.info("Council {} started", session_id)
        self._publish(session_id, "started", {"sessionId": session_id})

    def join(self, session_id: str) -> dict[str, Any]:
        """Snapshot of a session for a late subscriber."""
        session = self._get(session_id)
        return {
            "sessionId": session_id,
            "status": session.status,
            "config": session.config.model_dump(by_alias=True),
            "agents": [a.to_dict() for a in session.orchestrator.agents],
            "messages": [m.to_dict() for m in session.orchestrator.messages],
            "currentRound": session.state_machine.current_round_index,
            "timerState": session.timer.get_state().to_dict(),
        }

    async def message(self, session_id: str, content: str) -> Message:
        """
        Route a moderator message in.

        The timer pauses while the agents answer and resumes after a short
        grace window, unless someone else paused it in the meantime.
        """
        session = self._get(session_id)
        session.timer.pause("armaan")
        message = await session.orchestrator.handle_armaan_message(content)
        session.tasks.spawn(self._resume_after_grace(session), label="grace")
        return message

    async def _resume_after_grace(self, session: CouncilSession) -> None:
        await asyncio.sleep(self.message_grace_seconds)
        if session.state_machine.status == "running" and session.timer.get_state().paused_by == "armaan":
            session.timer.resume()

    def pause(self, session_id: str) -> None:
        session = self._get(session_id)
        session.state_machine.pause()
        session.timer.pause("system")

    def resume(self, session_id: str) -> None:
        session = self._get(session_id)
        session.state_machine.resume()
        session.timer.resume()

    def advance(self, session_id: str) -> None:
        """End the current round now. In-flight agent sends keep running."""
        self._get(session_id).timer.force_advance()

    async def end(self, session_id: str) -> None:
        """Stop the session, terminate its agents and drop it from the registry."""
        session = self._get(session_id)
        session.timer.stop()
        session.state_machine.force_end()
        await session.tasks.cancel_all()
        await session.orchestrator.terminate()
        await session.gateway.close()
        self._sessions.pop(session_id, None)
        logger.info("Council {} ended", session_id)

    def list(self) -> list[dict[str, Any]]:
        return [
            {
                "id": sid,
                "status": s.status,
                "createdAt": s.created_at.isoformat(),
                "currentRound": s.state_machine.current_round_index,
                "totalRounds": s.state_machine.total_rounds,
            }
            for sid, s in self._sessions.items()
        ]

    def export(self, session_id: str) -> dict[str, Any]:
        """Summary payload plus Markdown transcript of a session."""
        session = self._get(session_id)
        messages = session.orchestrator.messages
        summary = summarize_session(session_id, messages, session.config)
        summary["transcript"] = format_transcript(
            messages, session.config, session.orchestrator.personas
        )
        return summary

    def get_session(self, session_id: str) -> CouncilSession | None:
        return self._sessions.get(session_id)

    def _get(self, session_id: str) -> CouncilSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    # ------------------------------------------------------------------
    # Inbound loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Consume inbound bus traffic until stop() is called."""
        self._running = True
        logger.info("Coordinator started")

        while self._running:
            try:
                msg = await asyncio.wait_for(self.bus.consume_inbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue

            try:
                await self._dispatch(msg)
            except CouncilError as e:
                logger.warning("Request from {} failed: {}", msg.channel, e)
                self._publish(msg.session_id, "error", {"error": e.message})
            except Exception as e:
                logger.error("Error handling request from {}: {}", msg.channel, e)
                self._publish(msg.session_id, "error", {"error": "Internal error", "details": str(e)})

    def stop(self) -> None:
        self._running = False
        logger.info("Coordinator stopping")

    async def shutdown(self) -> None:
        """End every session."""
        for session_id in list(self._sessions):
            try:
                await self.end(session_id)
            except Exception as e:
                logger.error("Error ending session {}: {}", session_id, e)

    async def _dispatch(self, msg: InboundMessage) -> None:
        command = msg.command
        if command is None:
            await self.message(msg.session_id, msg.content)
        elif command == "start":
            await self.start(msg.session_id)
        elif command == "pause":
            self.pause(msg.session_id)
        elif command == "resume":
            self.resume(msg.session_id)
        elif command == "advance":
            self.advance(msg.session_id)
        elif command == "end":
            await self.end(msg.session_id)
        else:
            self._publish(msg.session_id, "error", {"error": f"Unknown command: {command}"})

    # ------------------------------------------------------------------
    # Signal wiring
    # ------------------------------------------------------------------

    def _wire_orchestrator(self, session: CouncilSession) -> None:
        sid = session.id

        def on_message(message: Message) -> None:
            self._publish(sid, "message", {"sessionId": sid, "message": message.to_dict()})

        def on_agent_status(role: str, status: AgentStatus) -> None:
            self._publish(sid, "agent_status", {"sessionId": sid, "role": role, "status": status})

        def on_ready(agents: list[AgentInstance]) -> None:
            self._publish(sid, "agents_ready", {"sessionId": sid, "agents": [a.to_dict() for a in agents]})

        def on_spawned(role: str, handle: str) -> None:
            logger.debug("Session {}: agent {} spawned", sid, role)

        orchestrator = session.orchestrator
        orchestrator.on("message", on_message)
        orchestrator.on("agent_status", on_agent_status)
        orchestrator.on("all_agents_ready", on_ready)
        orchestrator.on("agent_spawned", on_spawned)

    def _wire_state_machine(self, session: CouncilSession) -> None:
        sid = session.id

        def on_round_start(index: int, round_: Round, total: int) -> None:
            session.timer.start_round(index, round_.name, round_.duration_seconds)
            self._publish(sid, "round", {
                "sessionId": sid,
                "roundIndex": index,
                "round": round_.model_dump(by_alias=True),
                "totalRounds": total,
            })
            session.tasks.spawn(
                session.orchestrator.broadcast_round_prompt(index, round_.prompt),
                label=f"round-{index}",
            )

        def on_status(status: str) -> Callable[[], None]:
            return lambda: self._publish(sid, "status", {"sessionId": sid, "status": status})

        machine = session.state_machine
        machine.on("round_start", on_round_start)
        machine.on("paused", on_status("paused"))
        machine.on("resumed", on_status("running"))
        machine.on("council_complete", on_status("completed"))

    def _wire_timer(self, session: CouncilSession) -> None:
        sid = session.id

        def on_timer(state: TimerState) -> None:
            self._publish(sid, "timer", {"sessionId": sid, "timerState": state.to_dict()})

        def on_wrap_up(state: TimerState) -> None:
            round_ = session.state_machine.get_current_round()
            if round_ and round_.wrap_up_prompt and not round_.wrap_up_sent:
                session.state_machine.mark_wrap_up_sent()
                session.tasks.spawn(
                    session.orchestrator.broadcast_wrap_up(round_.wrap_up_prompt),
                    label=f"wrap-up-{state.current_round}",
                )

        def on_final_countdown(state: TimerState) -> None:
            logger.debug("Session {}: '{}' final countdown", sid, state.round_name)

        def on_round_complete(state: TimerState) -> None:
            session.state_machine.next_round()

        timer = session.timer
        for signal in ("tick", "paused", "resumed", "round_start"):
            timer.on(signal, on_timer)
        timer.on("wrap_up", on_wrap_up)
        timer.on("final_countdown", on_final_countdown)
        timer.on("round_complete", on_round_complete)

    def _publish(self, session_id: str | None, event: str, data: dict[str, Any]) -> None:
        self.bus.publish_outbound_nowait(OutboundEvent(event=event, session_id=session_id, data=data))
