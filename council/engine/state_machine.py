"""Round state machine: session status and round advancement."""

from typing import Literal

from loguru import logger

from council.engine.rounds import CouncilConfig, Round
from council.engine.signals import SignalEmitter
from council.errors import ConfigurationError

CouncilStatus = Literal["configuring", "running", "paused", "completed"]


class RoundStateMachine(SignalEmitter):
    """
    Tracks a council's status and its current round.

    Status moves configuring -> running <-> paused -> completed and never
    goes back. The round index is -1 until the first round begins.

    Signals:
        council_start(config)
        round_start(index, round, total_rounds)
        paused(), resumed()
        council_complete()
    """

    def __init__(self, config: CouncilConfig):
        super().__init__()
        self.config = config
        self._status: CouncilStatus = "configuring"
        self._index = -1

    @property
    def status(self) -> CouncilStatus:
        return self._status

    @property
    def current_round_index(self) -> int:
        return self._index

    @property
    def total_rounds(self) -> int:
        return len(self.config.rounds)

    def start(self) -> None:
        """Start the council and begin round 0 when there is one."""
        if self._status != "configuring":
            raise ConfigurationError("Council already started")

        self._status = "running"
        if self.config.rounds:
            self._index = 0
        self.emit("council_start", self.config)

        if not self.config.free_for_all and self.config.rounds:
            self._begin_round()

    def next_round(self) -> bool:
        """
        Advance to the next round.

        Returns:
            True if a new round began. False in free-for-all mode, before
            start, after completion, or when the last round just finished (which
            completes the council).
        """
        if self.config.free_for_all or self._status in ("configuring", "completed"):
            return False

        if self._index >= len(self.config.rounds) - 1:
            self.complete()
            return False

        self._index += 1
        self._begin_round()
        return True

    def get_current_round(self) -> Round | None:
        if self.config.free_for_all or self._index < 0:
            return None
        return self.config.rounds[self._index]

    def pause(self) -> None:
        if self._status == "running":
            self._status = "paused"
            self.emit("paused")

    def resume(self) -> None:
        if self._status == "paused":
            self._status = "running"
            self.emit("resumed")

    def mark_wrap_up_sent(self) -> None:
        round_ = self.get_current_round()
        if round_ is not None:
            round_.wrap_up_sent = True

    def complete(self) -> None:
        """Finish the council. Repeated calls are ignored."""
        if self._status == "completed":
            return
        self._status = "completed"
        logger.info("Council completed after round {}/{}", self._index + 1, self.total_rounds)
        self.emit("council_complete")

    def force_end(self) -> None:
        self.complete()

    def _begin_round(self) -> None:
        round_ = self.get_current_round()
        if round_ is None:
            return
        round_.wrap_up_sent = False
        logger.info("Round {}/{} '{}' begins", self._index + 1, self.total_rounds, round_.name)
        self.emit("round_start", self._index, round_, self.total_rounds)
