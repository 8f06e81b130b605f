"""Synchronous signal registration shared by the engine components."""

from collections import defaultdict
from typing import Any, Callable

Listener = Callable[..., Any]


class SignalEmitter:
    """
    Minimal named-signal dispatcher.

    Listeners run synchronously, in registration order, inside emit(). The
    coordinator relies on this: a timer's round_complete advances the state
    machine in the same tick. Exceptions raised by a listener propagate to
    the emitter's caller.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def on(self, signal: str, listener: Listener) -> None:
        """Register *listener* for *signal*."""
        self._listeners[signal].append(listener)

    def emit(self, signal: str, *args: Any) -> None:
        for listener in list(self._listeners.get(signal, ())):
            listener(*args)
