"""Event types carried by the message bus."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class InboundMessage:
    """Input from an observer channel: a moderator message or a session command."""

    channel: str
    sender_id: str
    session_id: str
    content: str = ""
    command: str | None = None  # start | pause | resume | advance | end
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class OutboundEvent:
    """A session event for observers subscribed to ``session_id``."""

    event: str
    session_id: str | None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
