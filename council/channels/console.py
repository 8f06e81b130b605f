"""Terminal channel: renders one session with rich and reads moderator input."""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from typing import Any, Callable

from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from council.bus.events import OutboundEvent
from council.bus.queue import MessageBus
from council.channels.base import SESSION_COMMANDS, BaseChannel
from council.utils.helpers import format_clock, get_data_dir

EXIT_COMMANDS = ("/quit", "/exit")


def parse_input(line: str) -> tuple[str | None, str]:
    """
    Split a typed line into (command, content).

    ``/pause`` style lines become commands; anything else is a message.
    """
    text = line.strip()
    if text.startswith("/"):
        return text[1:].split()[0].lower() if len(text) > 1 else "", ""
    return None, text


class ConsoleChannel(BaseChannel):
    """
    The moderator's terminal.

    Input goes through prompt_toolkit's async prompt with stdout patched, so
    agent output printed while the prompt is open lands above it.
    """

    name = "console"

    def __init__(
        self,
        config: Any,
        bus: MessageBus,
        console: Console | None = None,
        sender_id: str = "armaan",
        read_line: Callable[[], str] | None = None,
    ):
        super().__init__(config, bus)
        self.console = console or Console()
        self.sender_id = sender_id
        self.session_id: str | None = None
        self.finished = asyncio.Event()
        self._read_line = read_line
        self._prompt_session: PromptSession | None = None
        self._pending: asyncio.Future[str] | None = None
        self._emojis: dict[str, str] = {}

    def attach(self, session_id: str) -> None:
        self.session_id = session_id

    async def _read_input(self) -> str:
        if self._read_line is not None:
            return self._read_line()
        if self._prompt_session is None:
            self._prompt_session = PromptSession(history=FileHistory(str(get_data_dir() / "history")))
        try:
            return await self._prompt_session.prompt_async(HTML("<b><ansicyan>armaan&gt;</ansicyan></b> "))
        except KeyboardInterrupt:
            raise EOFError from None

    async def start(self) -> None:
        self._running = True
        with patch_stdout() if self._read_line is None else nullcontext():
            while self._running:
                self._pending = asyncio.ensure_future(self._read_input())
                try:
                    line = await self._pending
                except EOFError:
                    # Ctrl-D / Ctrl-C end the session; stop() only ends input.
                    if self._running:
                        await self._submit("end", "")
                    break
                except asyncio.CancelledError:
                    if self._running:
                        raise
                    break
                finally:
                    self._pending = None
                if not await self.on_line(line):
                    break
        self._running = False

    async def stop(self) -> None:
        self._running = False
        if self._pending is not None:
            self._pending.cancel()

    async def on_line(self, line: str) -> bool:
        """Handle one typed line. Returns False when input should stop."""
        command, content = parse_input(line)
        if command is None:
            if content:
                await self._submit(None, content)
            return True

        if f"/{command}" in EXIT_COMMANDS:
            command = "end"
        if command not in SESSION_COMMANDS:
            self.console.print(f"[yellow]Unknown command /{command}. "
                               "Try /pause, /resume, /advance or /end.[/yellow]")
            return True

        await self._submit(command, "")
        return command != "end"

    async def _submit(self, command: str | None, content: str) -> None:
        if self.session_id is None:
            logger.warning("Console input ignored: no session attached")
            return
        await self._handle_message(self.sender_id, self.session_id, content, command=command)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def send(self, event: OutboundEvent) -> None:
        handler = getattr(self, f"_render_{event.event}", None)
        if handler is None:
            logger.debug("Console has no renderer for {}", event.event)
            return
        handler(event.data)

    def _render_created(self, data: dict[str, Any]) -> None:
        rounds = data["config"].get("rounds") or []
        self.console.print(f"[green]✓[/green] Council {data['sessionId']} created ({len(rounds)} rounds)")

    def _render_started(self, data: dict[str, Any]) -> None:
        self.console.print("[green]✓[/green] Council started. Type to speak, @role to address one agent.")
        self.console.print("[dim]/pause  /resume  /advance  /end[/dim]\n")

    def _render_agents_ready(self, data: dict[str, Any]) -> None:
        table = Table(title="Council")
        table.add_column("", no_wrap=True)
        table.add_column("Role", style="cyan")
        table.add_column("Name")
        table.add_column("Model", style="dim")
        for agent in data["agents"]:
            self._emojis[agent["role"]] = agent.get("emoji", "")
            table.add_row(agent.get("emoji", ""), agent["role"], agent["persona"]["name"], agent["model"])
        self.console.print(table)

    def _render_round(self, data: dict[str, Any]) -> None:
        round_ = data["round"]
        self.console.rule(
            f"Round {data['roundIndex'] + 1}/{data['totalRounds']}: {round_['name']} "
            f"({format_clock(round_['durationSeconds'])})"
        )

    def _render_message(self, data: dict[str, Any]) -> None:
        msg = data["message"]
        if msg.get("isSystemMessage"):
            self.console.print(f"[bold yellow]{msg['content']}[/bold yellow]\n")
            return
        author = msg["author"]
        if author == "armaan":
            return
        self.console.print(f"[bold]{self._emojis.get(author, '')} {author}[/bold]")
        self.console.print(Markdown(msg["content"]))
        self.console.print()

    def _render_agent_status(self, data: dict[str, Any]) -> None:
        if data["status"] == "typing" and getattr(self.config, "show_ticks", False):
            self.console.print(f"[dim]{data['role']} is typing...[/dim]")

    def _render_timer(self, data: dict[str, Any]) -> None:
        state = data["timerState"]
        remaining = state["remaining"]
        if getattr(self.config, "show_ticks", False) or remaining in (60, 30, 10):
            self.console.print(f"[dim]⏱ {state['roundName']} {format_clock(remaining)}[/dim]")

    def _render_status(self, data: dict[str, Any]) -> None:
        status = data["status"]
        if status == "completed":
            self.console.print("\n[bold green]Council complete.[/bold green]")
            self.finished.set()
        else:
            self.console.print(f"[dim]Council {status}[/dim]")

    def _render_error(self, data: dict[str, Any]) -> None:
        details = f": {data['details']}" if data.get("details") else ""
        self.console.print(f"[red]Error: {data['error']}{details}[/red]")
