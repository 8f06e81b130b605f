"""CLI commands for council: main entry point and shared utilities."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from council import __logo__, __version__
from council.config.schema import Config

# ---------------------------------------------------------------------------
# Typer app (entry point registered in pyproject.toml)
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="council",
    help=f"{__logo__} council - timed multi-agent discussions",
    no_args_is_help=True,
)

console = Console()


# ---------------------------------------------------------------------------
# Version callback
# ---------------------------------------------------------------------------

def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} council v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """council - timed multi-agent discussions."""
    pass


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

_logging_configured = False


def _setup_logging() -> None:
    """Configure persistent file logging with loguru (idempotent)."""
    global _logging_configured
    if _logging_configured:
        return
    _logging_configured = True

    from loguru import logger

    log_dir = Path.home() / ".council" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / "council.log",
        rotation="10 MB",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {name}:{function}:{line} | {message}",
        level="DEBUG",
    )


# ---------------------------------------------------------------------------
# Gateway factory (shared by run_cmd and gateway_cmd)
# ---------------------------------------------------------------------------

def _make_gateway_factory(config: Config):
    """Return a callable building one HttpAgentGateway per session."""
    from council.gateway.http import HttpAgentGateway

    gw = config.gateway
    if not gw.get_token_value():
        console.print("[red]Error: No gateway token configured.[/red]")
        console.print("Set gateway.token in ~/.council/config.json or COUNCIL_GATEWAY__TOKEN")
        raise typer.Exit(1)

    def factory(session_id: str) -> HttpAgentGateway:
        return HttpAgentGateway(
            base_url=gw.url,
            token=gw.get_token_value(),
            models=gw.models,
            spawn_timeout_seconds=gw.spawn_timeout_seconds,
            send_timeout_seconds=gw.send_timeout_seconds,
            request_timeout=gw.request_timeout,
        )

    return factory


# ---------------------------------------------------------------------------
# Register commands from sub-modules
# ---------------------------------------------------------------------------

# Onboard
from council.cli.onboard_cmd import onboard as _onboard_fn  # noqa: E402
app.command()(_onboard_fn)

# Run
from council.cli.run_cmd import run as _run_fn  # noqa: E402
app.command()(_run_fn)

# Remote sessions
from council.cli.gateway_cmd import sessions as _sessions_fn  # noqa: E402
app.command()(_sessions_fn)


# Small commands, kept inline
@app.command()
def status():
    """Show council configuration status."""
    from council.config.loader import get_config_path, load_config

    config_path = get_config_path()
    config = load_config()

    console.print(f"{__logo__} council Status\n")
    console.print(f"Config: {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Gateway: {config.gateway.url}")
    has_token = bool(config.gateway.get_token_value())
    console.print(f"Token: {'[green]✓[/green]' if has_token else '[dim]not set[/dim]'}")
    console.print(f"Default template: {config.council.template}")

    personas_path = config.personas_path
    if personas_path:
        mark = "[green]✓[/green]" if personas_path.is_dir() else "[red]✗[/red]"
        console.print(f"Personas: {personas_path} {mark}")
    else:
        console.print("Personas: [dim]built-in[/dim]")


@app.command()
def templates():
    """List the round templates."""
    from council.engine.rounds import ROUND_TEMPLATES
    from council.utils.helpers import format_clock

    table = Table(title="Round templates")
    table.add_column("Template", style="cyan")
    table.add_column("Rounds")
    table.add_column("Duration", justify="right")
    table.add_column("Description", style="dim")

    for name, template in ROUND_TEMPLATES.items():
        if template.free_for_all:
            table.add_row(name, "[dim]free for all[/dim]", "-", template.description)
            continue
        rounds = ", ".join(r.name for r in template.rounds)
        total = sum(r.duration_seconds for r in template.rounds)
        table.add_row(name, rounds, format_clock(total), template.description)

    console.print(table)


@app.command()
def personas():
    """List the personas that sit on the council."""
    from council.agents.persona import load_personas
    from council.config.loader import load_config

    config = load_config()
    table = Table(title="Personas")
    table.add_column("", no_wrap=True)
    table.add_column("Role", style="cyan")
    table.add_column("Name")
    table.add_column("Model", style="dim")

    for persona in load_personas(config.personas_path):
        table.add_row(persona.emoji, persona.role, persona.name, persona.model)

    console.print(table)


if __name__ == "__main__":
    app()
