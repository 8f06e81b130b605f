"""Per-session countdown timer driven by the asyncio event loop."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger

from council.engine.signals import SignalEmitter

PausedBy = Literal["armaan", "system"]


@dataclass(frozen=True)
class TimerState:
    """Immutable snapshot of a timer."""

    remaining: int
    paused: bool
    current_round: int
    round_name: str
    paused_by: PausedBy | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "remaining": self.remaining,
            "paused": self.paused,
            "currentRound": self.current_round,
            "roundName": self.round_name,
            "pausedBy": self.paused_by,
        }


class IntervalTimer(SignalEmitter):
    """
    Cooperative countdown clock for one council session.

    Each tick is a loop callback scheduled ``tick_seconds`` after the
    previous one; pausing cancels the pending callback, so a paused timer
    does no work at all.

    Signals (each receives a TimerState snapshot):
        round_start, tick, wrap_up, final_countdown, round_complete,
        paused, resumed
    """

    def __init__(
        self,
        tick_seconds: float = 1.0,
        wrap_up_at: int = 30,
        final_countdown_at: int = 10,
    ):
        super().__init__()
        self.tick_seconds = tick_seconds
        self.wrap_up_at = wrap_up_at
        self.final_countdown_at = final_countdown_at

        self._remaining = 0
        self._paused = False
        self._paused_by: PausedBy | None = None
        self._round_index = 0
        self._round_name = ""
        self._wrap_up_sent = False
        self._handle: asyncio.TimerHandle | None = None
        # Bumped whenever the running round is replaced or ended, so a tick
        # in progress can tell its round is gone.
        self._generation = 0

    def start_round(self, index: int, name: str, duration_seconds: int) -> None:
        """Reset the clock for a new round and start ticking."""
        self._cancel()
        self._generation += 1
        self._remaining = duration_seconds
        self._paused = False
        self._paused_by = None
        self._round_index = index
        self._round_name = name
        self._wrap_up_sent = False

        self.emit("round_start", self.get_state())
        self._schedule()

    def pause(self, paused_by: PausedBy) -> None:
        """
        Stop ticking. A system pause takes over an existing moderator pause
        so the grace resume leaves it alone; no second paused signal fires.
        """
        if self._paused:
            if paused_by == "system" and self._paused_by == "armaan":
                self._paused_by = "system"
                logger.debug("Timer pause taken over by system at {}s", self._remaining)
            return
        self._paused = True
        self._paused_by = paused_by
        self._cancel()
        logger.debug("Timer paused by {} at {}s", paused_by, self._remaining)
        self.emit("paused", self.get_state())

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        self._paused_by = None
        self._schedule()
        logger.debug("Timer resumed at {}s", self._remaining)
        self.emit("resumed", self.get_state())

    def force_advance(self) -> None:
        """End the current round now."""
        self._cancel()
        self._generation += 1
        self._remaining = 0
        self.emit("round_complete", self.get_state())

    def stop(self) -> None:
        """Cancel ticking and return to an idle zero state."""
        self._cancel()
        self._generation += 1
        self._remaining = 0
        self._paused = False
        self._paused_by = None
        self._round_index = 0
        self._round_name = ""

    def get_state(self) -> TimerState:
        return TimerState(
            remaining=self._remaining,
            paused=self._paused,
            current_round=self._round_index,
            round_name=self._round_name,
            paused_by=self._paused_by,
        )

    @property
    def is_ticking(self) -> bool:
        return self._handle is not None

    def _schedule(self) -> None:
        if self._handle is not None or self._remaining <= 0:
            return
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.tick_seconds, self._tick)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self._paused or self._remaining <= 0:
            return

        self._remaining -= 1
        remaining = self._remaining
        generation = self._generation
        if remaining > 0:
            self._schedule()

        self.emit("tick", self.get_state())
        if generation != self._generation:
            return

        if remaining == self.wrap_up_at and not self._wrap_up_sent:
            self._wrap_up_sent = True
            self.emit("wrap_up", self.get_state())
            if generation != self._generation:
                return

        if remaining == self.final_countdown_at:
            self.emit("final_countdown", self.get_state())
            if generation != self._generation:
                return

        if remaining == 0:
            self._generation += 1
            self.emit("round_complete", self.get_state())
