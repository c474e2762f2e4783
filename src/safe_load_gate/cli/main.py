# src/safe_load_gate/cli/main.py
# Main CLI entrypoint for safe-load-gate.
"""
Main Typer application with all sub-commands.

Usage:
    safe-load-gate wait --node-name N --config-path cfg.json    # Block until the gate opens
    safe-load-gate config show --config-path cfg.json            # Validate and print configuration
"""

import typer
from rich.console import Console

from safe_load_gate import __version__
from safe_load_gate.cli.commands import config, wait

app = typer.Typer(
    name="safe-load-gate",
    help="safe-load-gate - block node bring-up until the marker annotation is removed",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

# Register sub-commands
app.add_typer(config.app, name="config", help="Inspect the gate configuration")
app.command("wait")(wait.wait_command)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Show version and exit"),
) -> None:
    """safe-load-gate CLI."""
    if version:
        console.print(f"[bold]safe-load-gate[/bold] version {__version__}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


if __name__ == "__main__":
    app()
