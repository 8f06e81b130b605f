"""Round scheduling engine: round plans, state machine and timer."""

from council.engine.rounds import ROUND_TEMPLATES, CouncilConfig, Round, resolve_council_config
from council.engine.state_machine import RoundStateMachine
from council.engine.timer import IntervalTimer, TimerState

__all__ = [
    "ROUND_TEMPLATES",
    "CouncilConfig",
    "IntervalTimer",
    "Round",
    "RoundStateMachine",
    "TimerState",
    "resolve_council_config",
]
