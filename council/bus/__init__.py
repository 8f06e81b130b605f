"""Message bus between the coordinator and observer channels."""

from council.bus.events import InboundMessage, OutboundEvent
from council.bus.queue import MessageBus

__all__ = ["InboundMessage", "MessageBus", "OutboundEvent"]
