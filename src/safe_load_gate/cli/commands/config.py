# src/safe_load_gate/cli/commands/config.py
"""
Commands for inspecting the gate configuration.

Usage:
    safe-load-gate config show --config-path cfg.json
    safe-load-gate config show --configmap-name gate --configmap-namespace ops --json
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from safe_load_gate.core.config import load_config
from safe_load_gate.errors import GateError
from safe_load_gate.store.kube import KubeConfigMapSource, load_kube_api

app = typer.Typer(help="Inspect the gate configuration")
console = Console()


@app.command("show")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None, "--config-path", "-c", help="Configuration file (JSON or YAML)"
    ),
    configmap_name: str = typer.Option("", "--configmap-name", help="ConfigMap name"),
    configmap_namespace: str = typer.Option("", "--configmap-namespace", help="ConfigMap namespace"),
    configmap_key: str = typer.Option("config.json", "--configmap-key", help="Key inside the ConfigMap"),
    kubeconfig: Optional[Path] = typer.Option(None, "--kubeconfig", help="Kubeconfig file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Validate the configuration and print it."""
    if config_path is None and not (configmap_name and configmap_namespace):
        console.print("[red]Error: Specify --config-path or --configmap-name and --configmap-namespace[/red]")
        raise typer.Exit(1)

    try:
        if config_path is not None:
            config = load_config(path=config_path)
            origin = str(config_path)
        else:
            source = KubeConfigMapSource(
                load_kube_api(kubeconfig), configmap_name, configmap_namespace, configmap_key
            )
            config = load_config(source=source)
            origin = f"configmap {configmap_namespace}/{configmap_name}[{configmap_key}]"
    except GateError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        console.print(config.to_json(), markup=False, highlight=False, soft_wrap=True)
        return

    status = "[green]enabled[/green]" if config.enabled else "[yellow]disabled[/yellow]"
    console.print(Panel(
        f"Safe driver load: {status}\n"
        f"Annotation: {config.marker_key or '-'}\n\n"
        f"Source: {origin}",
        title="Gate Configuration",
    ))
