"""Tests for observer channels, rooms and the console channel."""

import asyncio
import io
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console

from council.bus.events import OutboundEvent
from council.bus.queue import MessageBus
from council.channels.base import BaseChannel
from council.channels.console import ConsoleChannel, parse_input
from council.channels.manager import ChannelManager
from council.channels.rate_limit import RateLimiter
from council.config.schema import Config, ConsoleChannelConfig


class RecordingChannel(BaseChannel):
    name = "recording"

    def __init__(self, config, bus):
        super().__init__(config, bus)
        self.received: list[OutboundEvent] = []

    async def start(self):
        self._running = True

    async def stop(self):
        self._running = False

    async def send(self, event):
        self.received.append(event)


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


def _console() -> Console:
    return Console(file=io.StringIO(), width=100, color_system=None)


# ---------------------------------------------------------------------------
# BaseChannel input handling
# ---------------------------------------------------------------------------


class TestHandleMessage:
    @pytest.mark.asyncio
    async def test_forwards_message(self, bus):
        channel = RecordingChannel(ConsoleChannelConfig(), bus)

        await channel._handle_message("armaan", "council_1", "@critic why?")

        msg = await bus.consume_inbound()
        assert (msg.channel, msg.sender_id, msg.session_id) == ("recording", "armaan", "council_1")
        assert msg.content == "@critic why?"
        assert msg.command is None

    @pytest.mark.asyncio
    async def test_allow_list_blocks_strangers(self, bus):
        channel = RecordingChannel(ConsoleChannelConfig(allow_from=["armaan"]), bus)

        await channel._handle_message("stranger", "council_1", "hi")

        assert bus.inbound_size == 0
        assert bus.outbound_size == 0

    @pytest.mark.asyncio
    async def test_rate_limited_message_publishes_error(self, bus):
        channel = RecordingChannel(ConsoleChannelConfig(), bus)
        channel._rate_limiter = RateLimiter(max_per_minute=1, max_per_hour=10)

        await channel._handle_message("armaan", "council_1", "one")
        await channel._handle_message("armaan", "council_1", "two")
        await channel._handle_message("armaan", "council_1", "", command="pause")

        assert bus.inbound_size == 2
        error = await bus.consume_outbound()
        assert error.event == "error"
        assert error.session_id == "council_1"
        assert "Too many messages" in error.data["error"]

    @pytest.mark.asyncio
    async def test_unknown_command_is_rejected(self, bus):
        channel = RecordingChannel(ConsoleChannelConfig(), bus)

        await channel._handle_message("armaan", "council_1", "", command="rewind")

        assert bus.inbound_size == 0
        error = await bus.consume_outbound()
        assert "rewind" in error.data["error"]


# ---------------------------------------------------------------------------
# ChannelManager rooms
# ---------------------------------------------------------------------------


class TestRooms:
    def _manager(self, bus) -> tuple[ChannelManager, RecordingChannel, RecordingChannel]:
        a = RecordingChannel(ConsoleChannelConfig(), bus)
        b = RecordingChannel(ConsoleChannelConfig(), bus)
        return ChannelManager(Config(), bus, channels={"a": a, "b": b}), a, b

    @pytest.mark.asyncio
    async def test_events_reach_only_room_members(self, bus):
        manager, a, b = self._manager(bus)
        manager.join("a", "council_1")
        manager.join("b", "council_2")

        await manager.dispatch(OutboundEvent(event="timer", session_id="council_1"))

        assert [e.event for e in a.received] == ["timer"]
        assert b.received == []

    @pytest.mark.asyncio
    async def test_sessionless_events_reach_everyone(self, bus):
        manager, a, b = self._manager(bus)

        await manager.dispatch(OutboundEvent(event="error", session_id=None, data={"error": "x"}))

        assert len(a.received) == len(b.received) == 1

    @pytest.mark.asyncio
    async def test_leave(self, bus):
        manager, a, _ = self._manager(bus)
        manager.join("a", "council_1")
        manager.leave("a", "council_1")
        manager.leave("a", "council_1")

        await manager.dispatch(OutboundEvent(event="timer", session_id="council_1"))

        assert a.received == []
        assert manager.members("council_1") == set()

    def test_join_unknown_channel(self, bus):
        manager, _, _ = self._manager(bus)
        with pytest.raises(KeyError):
            manager.join("slack", "council_1")

    def test_rate_limiter_shared_from_config(self, bus):
        manager, a, b = self._manager(bus)
        assert a._rate_limiter is not None
        assert a._rate_limiter is b._rate_limiter
        assert a._rate_limiter.max_per_minute == 20

    def test_console_channel_from_config(self, bus):
        manager = ChannelManager(Config(), bus)
        assert manager.enabled_channels == ["console"]
        assert isinstance(manager.get_channel("console"), ConsoleChannel)


# ---------------------------------------------------------------------------
# ConsoleChannel
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "line, expected",
    [
        ("/pause", ("pause", "")),
        ("  /Advance now ", ("advance", "")),
        ("hello @critic", (None, "hello @critic")),
        ("   ", (None, "")),
        ("/", ("", "")),
    ],
)
def test_parse_input(line, expected):
    assert parse_input(line) == expected


class TestConsoleChannel:
    @pytest.mark.asyncio
    async def test_lines_become_messages_and_commands(self, bus):
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=_console())
        channel.attach("council_1")

        assert await channel.on_line("what about cost?") is True
        assert await channel.on_line("/pause") is True
        assert await channel.on_line("/quit") is False

        received = [await bus.consume_inbound() for _ in range(3)]
        assert [(m.command, m.content) for m in received] == [
            (None, "what about cost?"),
            ("pause", ""),
            ("end", ""),
        ]

    @pytest.mark.asyncio
    async def test_unknown_slash_command_stays_local(self, bus):
        console = _console()
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=console)
        channel.attach("council_1")

        assert await channel.on_line("/rewind") is True

        assert bus.inbound_size == 0
        assert "Unknown command /rewind" in console.file.getvalue()

    @pytest.mark.asyncio
    async def test_input_without_session_is_ignored(self, bus):
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=_console())
        await channel.on_line("hello")
        assert bus.inbound_size == 0

    @pytest.mark.asyncio
    async def test_start_reads_until_end(self, bus):
        lines = iter(["first thought", "/end"])

        def read_line():
            try:
                return next(lines)
            except StopIteration:
                raise EOFError

        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=_console(), read_line=read_line)
        channel.attach("council_1")

        await channel.start()

        assert [(await bus.consume_inbound()).command for _ in range(2)] == [None, "end"]
        assert not channel.is_running

    @pytest.mark.asyncio
    async def test_eof_ends_the_session(self, bus):
        def eof():
            raise EOFError

        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=_console(), read_line=eof)
        channel.attach("council_1")

        await channel.start()

        assert (await bus.consume_inbound()).command == "end"

    @pytest.mark.asyncio
    async def test_prompt_session_reads_input_with_stdout_patched(self, bus):
        session = MagicMock()
        session.prompt_async = AsyncMock(side_effect=["@critic really?", KeyboardInterrupt()])
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=_console())
        channel.attach("council_1")

        with patch("council.channels.console.PromptSession", return_value=session), \
                patch("council.channels.console.FileHistory"), \
                patch("council.channels.console.patch_stdout") as patched:
            await channel.start()

        patched.assert_called_once()
        assert session.prompt_async.await_count == 2
        received = [await bus.consume_inbound() for _ in range(2)]
        assert [(m.command, m.content) for m in received] == [(None, "@critic really?"), ("end", "")]

    @pytest.mark.asyncio
    async def test_stop_cancels_pending_read_without_ending(self, bus):
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=_console(), read_line=lambda: "")
        channel.attach("council_1")
        never = asyncio.Event()

        async def blocked() -> str:
            await never.wait()
            return ""

        channel._read_input = blocked
        task = asyncio.create_task(channel.start())
        await asyncio.sleep(0.01)
        assert channel.is_running

        await channel.stop()
        await asyncio.wait_for(task, timeout=1)

        assert not channel.is_running
        assert bus.inbound_size == 0

    @pytest.mark.asyncio
    async def test_renders_session_events(self, bus):
        console = _console()
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=console)
        persona = {"name": "The Critic"}

        await channel.send(OutboundEvent("agents_ready", "council_1", {
            "agents": [{"role": "critic", "emoji": "🎯", "model": "sonnet", "persona": persona}],
        }))
        await channel.send(OutboundEvent("round", "council_1", {
            "roundIndex": 0, "totalRounds": 3, "round": {"name": "Pitch", "durationSeconds": 180},
        }))
        await channel.send(OutboundEvent("message", "council_1", {
            "message": {"author": "critic", "content": "Too broad.", "isSystemMessage": False},
        }))
        await channel.send(OutboundEvent("timer", "council_1", {
            "timerState": {"remaining": 30, "roundName": "Pitch"},
        }))
        await channel.send(OutboundEvent("status", "council_1", {"status": "completed"}))

        out = console.file.getvalue()
        assert "The Critic" in out
        assert "Round 1/3: Pitch (03:00)" in out
        assert "Too broad." in out
        assert "00:30" in out
        assert "Council complete." in out
        assert channel.finished.is_set()

    @pytest.mark.asyncio
    async def test_quiet_ticks_by_default(self, bus):
        console = _console()
        channel = ConsoleChannel(ConsoleChannelConfig(), bus, console=console)

        await channel.send(OutboundEvent("timer", "council_1", {"timerState": {"remaining": 47, "roundName": "Pitch"}}))

        assert console.file.getvalue() == ""
