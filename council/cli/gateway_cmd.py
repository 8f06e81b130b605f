"""Remote gateway CLI command."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from council import __logo__

console = Console()


def sessions(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of sessions to list"),
):
    """List recent sessions on the agent-hosting gateway."""
    from council.cli.commands import _make_gateway_factory, _setup_logging
    from council.config.loader import load_config

    _setup_logging()
    config = load_config()
    gateway = _make_gateway_factory(config)("cli")

    async def fetch():
        try:
            return await gateway.list_sessions(limit=limit)
        finally:
            await gateway.close()

    found = asyncio.run(fetch())
    if not found:
        console.print(f"{__logo__} No sessions on {config.gateway.url}")
        return

    table = Table(title=f"Gateway sessions ({config.gateway.url})")
    table.add_column("Label", style="cyan")
    table.add_column("Session")
    table.add_column("Details", style="dim")
    for s in found:
        details = ", ".join(f"{k}={v}" for k, v in s.extra.items())
        table.add_row(s.label or "-", s.handle, details)
    console.print(table)
