"""Onboard/setup CLI command."""

from pathlib import Path

import typer
from rich.console import Console

from council import __logo__

console = Console()

EXAMPLE_ROUNDS = """\
# Custom round plan: council run --rounds-file ~/.council/rounds/example.yaml
rounds:
  - name: Pitch
    durationSeconds: 120
    prompt: "Visionary: One idea. Make it count."
  - name: Pressure Test
    durationSeconds: 240
    prompt: "All: Find the weakest assumption in the pitch and attack it."
    wrapUpPrompt: "30 seconds. Land your strongest objection."
  - name: Verdict
    durationSeconds: 120
    prompt: "Converge: build it, change it, or drop it?"
"""

EXAMPLE_PERSONA = """\
# Rename to *.yaml to add this seat to the council.
# A file whose role matches a built-in persona replaces it.
role: skeptic
name: The Skeptic
emoji: "🧐"
model: sonnet
coreIdentity: You assume every idea is wrong until shown otherwise.
values:
  - Evidence over enthusiasm
  - Small experiments before big builds
discomfort: Claims nobody can test.
stayingTrue: Ask how the council would know the idea failed.
responseGuidelines: Name one falsifiable prediction per reply.
"""


def onboard():
    """Initialize council configuration and example files."""
    from council.config.loader import get_config_path, load_config, save_config
    from council.config.schema import Config

    config_path = get_config_path()

    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        console.print("  [bold]y[/bold] = overwrite with defaults (existing values will be lost)")
        console.print(
            "  [bold]N[/bold] = refresh config, keeping existing values and adding new fields"
        )
        if typer.confirm("Overwrite?"):
            save_config(Config())
            console.print(f"[green]✓[/green] Config reset to defaults at {config_path}")
        else:
            save_config(load_config())
            console.print(
                f"[green]✓[/green] Config refreshed at {config_path} (existing values preserved)"
            )
    else:
        save_config(Config())
        console.print(f"[green]✓[/green] Created config at {config_path}")

    _create_examples(config_path.parent)

    console.print(f"\n{__logo__} council is ready!")
    console.print("\nNext steps:")
    console.print("  1. Add your gateway token to [cyan]~/.council/config.json[/cyan] (gateway.token)")
    console.print("  2. Run a council: [cyan]council run --template quick[/cyan]")


def _create_examples(data_dir: Path):
    """Write example round and persona files (skip existing)."""
    examples = {
        data_dir / "rounds" / "example.yaml": EXAMPLE_ROUNDS,
        data_dir / "personas" / "skeptic.yaml.example": EXAMPLE_PERSONA,
    }
    for path, content in examples.items():
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.write_text(content, encoding="utf-8")
            console.print(f"  [dim]Created {path.relative_to(data_dir)}[/dim]")
