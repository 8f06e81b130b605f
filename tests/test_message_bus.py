"""Tests for MessageBus (bus/queue.py)."""

import asyncio

import pytest

from council.bus.events import InboundMessage, OutboundEvent
from council.bus.queue import MessageBus


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


# --- Tests ---


@pytest.mark.asyncio
async def test_publish_consume_inbound(bus: MessageBus) -> None:
    msg = InboundMessage(
        channel="console",
        sender_id="armaan",
        session_id="council_1",
        content="@critic too vague?",
    )
    await bus.publish_inbound(msg)
    assert bus.inbound_size == 1
    received = await bus.consume_inbound()
    assert received.content == "@critic too vague?"
    assert received.command is None
    assert bus.inbound_size == 0


@pytest.mark.asyncio
async def test_publish_consume_outbound(bus: MessageBus) -> None:
    event = OutboundEvent(event="status", session_id="council_1", data={"status": "paused"})
    await bus.publish_outbound(event)
    assert bus.outbound_size == 1
    received = await bus.consume_outbound()
    assert received.data == {"status": "paused"}
    assert received.session_id == "council_1"
    assert bus.outbound_size == 0


@pytest.mark.asyncio
async def test_publish_outbound_from_sync_code(bus: MessageBus) -> None:
    """Signal listeners are synchronous; they publish without awaiting."""
    bus.publish_outbound_nowait(OutboundEvent(event="timer", session_id="council_1"))
    bus.publish_outbound_nowait(OutboundEvent(event="round", session_id="council_1"))
    assert [(await bus.consume_outbound()).event for _ in range(2)] == ["timer", "round"]


@pytest.mark.asyncio
async def test_consume_timeout(bus: MessageBus) -> None:
    """Consuming from an empty queue should block; with a timeout it raises."""
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(bus.consume_inbound(), timeout=0.05)
