"""Base interface for observer channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from loguru import logger

from council.bus.events import InboundMessage, OutboundEvent
from council.bus.queue import MessageBus

if TYPE_CHECKING:
    from council.channels.rate_limit import RateLimiter

SESSION_COMMANDS = ("start", "pause", "resume", "advance", "end")


class BaseChannel(ABC):
    """
    Abstract observer of council sessions.

    A channel renders the OutboundEvents of the sessions it joined and
    forwards moderator input (messages and session commands) to the bus.
    """

    name: str = "base"

    def __init__(self, config: Any, bus: MessageBus):
        """
        Args:
            config: Channel-specific configuration.
            bus: The message bus shared with the coordinator.
        """
        self.config = config
        self.bus = bus
        self._running = False
        self._rate_limiter: RateLimiter | None = None

    @abstractmethod
    async def start(self) -> None:
        """Start listening for moderator input. Long-running."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the channel and clean up resources."""

    @abstractmethod
    async def send(self, event: OutboundEvent) -> None:
        """Deliver one session event to this channel's observers."""

    def is_allowed(self, sender_id: str) -> bool:
        allow_list = getattr(self.config, "allow_from", [])
        if not allow_list:
            return True
        return str(sender_id) in allow_list

    async def _handle_message(
        self,
        sender_id: str,
        session_id: str,
        content: str,
        command: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Check permissions and limits, then forward input to the coordinator.

        Commands are never rate limited; moderator messages are.
        """
        if not self.is_allowed(sender_id):
            logger.warning(
                "Access denied for sender {} on channel {}. "
                "Add them to allow_from in config to grant access.",
                sender_id, self.name,
            )
            return

        if command is not None and command not in SESSION_COMMANDS:
            await self.bus.publish_outbound(OutboundEvent(
                event="error",
                session_id=session_id,
                data={"error": f"Unknown command: {command}"},
            ))
            return

        if command is None and self._rate_limiter:
            allowed, retry_after = self._rate_limiter.check(str(sender_id))
            if not allowed:
                logger.warning("Rate limited sender {} on channel {} (retry in {}s)",
                               sender_id, self.name, retry_after)
                await self.bus.publish_outbound(OutboundEvent(
                    event="error",
                    session_id=session_id,
                    data={"error": f"Too many messages. Please try again in {retry_after} seconds."},
                ))
                return

        await self.bus.publish_inbound(InboundMessage(
            channel=self.name,
            sender_id=str(sender_id),
            session_id=session_id,
            content=content,
            command=command,
            metadata=metadata or {},
        ))

    @property
    def is_running(self) -> bool:
        return self._running
