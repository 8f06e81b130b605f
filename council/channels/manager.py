"""Channel manager: observer channels and per-session rooms."""

from __future__ import annotations

import asyncio
import importlib
from collections import defaultdict

from loguru import logger

from council.bus.events import OutboundEvent
from council.bus.queue import MessageBus
from council.channels.base import BaseChannel
from council.channels.rate_limit import RateLimiter
from council.config.schema import Config

# (config_attr, module_path, class_name)
_CHANNEL_REGISTRY: list[tuple[str, str, str]] = [
    ("console", "council.channels.console", "ConsoleChannel"),
]


class ChannelManager:
    """
    Starts the enabled channels and routes session events to them.

    Each session id is a room. A channel receives an event only if it joined
    the event's room; events without a session id go to every channel.
    """

    def __init__(self, config: Config, bus: MessageBus, channels: dict[str, BaseChannel] | None = None):
        self.config = config
        self.bus = bus
        self.channels: dict[str, BaseChannel] = {}
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._dispatch_task: asyncio.Task | None = None

        if channels is None:
            self._init_channels()
        else:
            limiter = self._rate_limiter()
            for name, channel in channels.items():
                self._register(name, channel, limiter)

    def _rate_limiter(self) -> RateLimiter | None:
        rl_cfg = self.config.rate_limit
        if not rl_cfg.enabled:
            return None
        return RateLimiter(
            max_per_minute=rl_cfg.max_messages_per_minute,
            max_per_hour=rl_cfg.max_messages_per_hour,
        )

    def _register(self, name: str, channel: BaseChannel, limiter: RateLimiter | None = None) -> None:
        if limiter is not None:
            channel._rate_limiter = limiter
        self.channels[name] = channel

    def _init_channels(self) -> None:
        limiter = self._rate_limiter()
        for config_attr, module_path, class_name in _CHANNEL_REGISTRY:
            channel_config = getattr(self.config.channels, config_attr, None)
            if not channel_config or not channel_config.enabled:
                continue
            try:
                module = importlib.import_module(module_path)
                channel = getattr(module, class_name)(channel_config, self.bus)
                self._register(config_attr, channel, limiter)
                logger.info("{} channel enabled", config_attr.capitalize())
            except Exception as e:
                logger.error("Failed to initialize {} channel: {}", config_attr, e)

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    def join(self, channel_name: str, session_id: str) -> None:
        if channel_name not in self.channels:
            raise KeyError(f"Unknown channel: {channel_name}")
        self._rooms[session_id].add(channel_name)

    def leave(self, channel_name: str, session_id: str) -> None:
        members = self._rooms.get(session_id)
        if members is None:
            return
        members.discard(channel_name)
        if not members:
            del self._rooms[session_id]

    def members(self, session_id: str) -> set[str]:
        return set(self._rooms.get(session_id, ()))

    def recipients(self, event: OutboundEvent) -> list[BaseChannel]:
        if event.session_id is None:
            return list(self.channels.values())
        return [self.channels[name] for name in self._rooms.get(event.session_id, ()) if name in self.channels]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _start_channel(self, name: str, channel: BaseChannel) -> None:
        try:
            await channel.start()
        except Exception as e:
            logger.error("Failed to start channel {}: {}", name, e)

    async def start_all(self) -> None:
        """Start the outbound dispatcher and every channel."""
        if not self.channels:
            logger.warning("No channels enabled")
            return

        self._dispatch_task = asyncio.create_task(self._dispatch_outbound())
        await asyncio.gather(
            *(self._start_channel(name, channel) for name, channel in self.channels.items()),
            return_exceptions=True,
        )

    async def stop_all(self) -> None:
        logger.info("Stopping all channels...")
        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None

        for name, channel in self.channels.items():
            try:
                await channel.stop()
                logger.info("Stopped {} channel", name)
            except Exception as e:
                logger.error("Error stopping {}: {}", name, e)

    async def dispatch(self, event: OutboundEvent) -> None:
        """Deliver one event to every channel in its room."""
        for channel in self.recipients(event):
            try:
                await channel.send(event)
            except Exception as e:
                logger.error("Error sending {} to {}: {}", event.event, channel.name, e)

    async def _dispatch_outbound(self) -> None:
        logger.info("Outbound dispatcher started")
        while True:
            try:
                event = await asyncio.wait_for(self.bus.consume_outbound(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break
            await self.dispatch(event)

    def get_channel(self, name: str) -> BaseChannel | None:
        return self.channels.get(name)

    @property
    def enabled_channels(self) -> list[str]:
        return list(self.channels.keys())
