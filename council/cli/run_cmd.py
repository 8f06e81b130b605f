"""Interactive council session in the terminal."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from council import __logo__

console = Console()


def run(
    template: str = typer.Option(None, "--template", "-t", help="Round template (standard, quick, freeForAll)"),
    rounds_file: Path = typer.Option(None, "--rounds-file", "-r", help="YAML file with custom rounds"),
    context: str = typer.Option(None, "--context", "-c", help="Context prompt shared with every agent"),
    transcript: Path = typer.Option(None, "--transcript", help="Write a Markdown transcript here when done"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show council runtime logs"),
):
    """Run a council session with you as the moderator."""
    from loguru import logger

    from council.agents.persona import load_personas
    from council.bus.queue import MessageBus
    from council.channels.console import ConsoleChannel
    from council.channels.manager import ChannelManager
    from council.cli.commands import _make_gateway_factory, _setup_logging
    from council.config.loader import load_config
    from council.coordinator import Coordinator
    from council.engine.rounds import load_rounds_file
    from council.errors import CouncilError
    from council.export import format_transcript, summarize_session

    config = load_config()
    _setup_logging()
    if logs:
        logger.enable("council")
    else:
        logger.disable("council")

    custom_rounds = None
    if rounds_file:
        try:
            custom_rounds = load_rounds_file(rounds_file)
        except (OSError, CouncilError) as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    personas = load_personas(config.personas_path)
    factory = _make_gateway_factory(config)
    defaults = config.council

    async def run_session() -> int:
        bus = MessageBus()
        coordinator = Coordinator(
            bus,
            factory,
            personas=personas,
            message_grace_seconds=defaults.message_grace_seconds,
            tick_seconds=defaults.tick_seconds,
            wrap_up_at=defaults.wrap_up_at,
            final_countdown_at=defaults.final_countdown_at,
        )
        channel = ConsoleChannel(config.channels.console, bus, console=console)
        channels = ChannelManager(config, bus, channels={"console": channel})

        try:
            session_id, council_config = coordinator.create(
                template=template or (None if custom_rounds else defaults.template),
                custom_rounds=custom_rounds,
                context_prompt=context,
            )
        except CouncilError as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1

        session = coordinator.get_session(session_id)
        channels.join("console", session_id)
        channel.attach(session_id)

        coordinator_task = asyncio.create_task(coordinator.run())
        channels_task = asyncio.create_task(channels.start_all())
        try:
            with console.status(f"[dim]Seating {len(personas)} agents...[/dim]", spinner="dots"):
                await coordinator.start(session_id)
        except CouncilError:
            # Already published as an error event; give the dispatcher a beat.
            await asyncio.sleep(0.1)
            await coordinator.end(session_id)
            coordinator.stop()
            await channels.stop_all()
            await asyncio.gather(coordinator_task, channels_task, return_exceptions=True)
            return 1

        try:
            await channel.finished.wait()
        finally:
            await coordinator.shutdown()
            coordinator.stop()
            await channels.stop_all()
            await asyncio.gather(coordinator_task, channels_task, return_exceptions=True)

        messages = session.orchestrator.messages
        summary = summarize_session(session_id, messages, council_config)
        console.print(
            f"\n{__logo__} {summary['summary']} in {summary['durationMinutes']} minutes"
        )
        if transcript:
            transcript.write_text(format_transcript(messages, council_config, personas), encoding="utf-8")
            console.print(f"[green]✓[/green] Transcript written to {transcript}")
        return 0

    try:
        code = asyncio.run(run_session())
    except KeyboardInterrupt:
        console.print("\nGoodbye!")
        code = 130
    if code:
        raise typer.Exit(code)
