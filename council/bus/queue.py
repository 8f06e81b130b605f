"""Async message queue decoupling channels from the coordinator."""

import asyncio

from council.bus.events import InboundMessage, OutboundEvent


class MessageBus:
    """
    Two asyncio queues: inbound (channels -> coordinator) and outbound
    (coordinator -> channels).
    """

    def __init__(self):
        self.inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self.outbound: asyncio.Queue[OutboundEvent] = asyncio.Queue()

    async def publish_inbound(self, msg: InboundMessage) -> None:
        await self.inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        """Wait for the next inbound message."""
        return await self.inbound.get()

    async def publish_outbound(self, event: OutboundEvent) -> None:
        await self.outbound.put(event)

    def publish_outbound_nowait(self, event: OutboundEvent) -> None:
        """Publish from synchronous code such as signal listeners."""
        self.outbound.put_nowait(event)

    async def consume_outbound(self) -> OutboundEvent:
        """Wait for the next outbound event."""
        return await self.outbound.get()

    @property
    def inbound_size(self) -> int:
        return self.inbound.qsize()

    @property
    def outbound_size(self) -> int:
        return self.outbound.qsize()
