# src/safe_load_gate/cli/commands/wait.py
"""
Implementation of `safe-load-gate wait`.

Usage:
    safe-load-gate wait --node-name node1 --config-path /etc/gate/config.json
    safe-load-gate wait --node-name node1 --configmap-name gate --configmap-namespace ops
    safe-load-gate wait --node-name node1 --config-path cfg.json --timeout 600
"""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from safe_load_gate import app as gate_app
from safe_load_gate.context import Context
from safe_load_gate.core.options import GateOptions
from safe_load_gate.errors import ConfigInvalidError, GateError
from safe_load_gate.gate.controller import DEFAULT_RECHECK_INTERVAL
from safe_load_gate.logs import configure_logging
from safe_load_gate.models import OutcomeStatus

console = Console(stderr=True)


def wait_command(
    node_name: str = typer.Option(
        "", "--node-name", "-n", envvar="NODE_NAME", help="Name of the k8s node on which this app runs"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config-path", "-c", help="Configuration file (JSON or YAML)"
    ),
    configmap_name: str = typer.Option(
        "", "--configmap-name", help="Name of the configmap with configuration for the app"
    ),
    configmap_namespace: str = typer.Option(
        "", "--configmap-namespace", help="Namespace of the configmap with configuration for the app"
    ),
    configmap_key: str = typer.Option(
        "config.json", "--configmap-key", help="Key inside the configmap with configuration for the app"
    ),
    kubeconfig: Optional[Path] = typer.Option(
        None, "--kubeconfig", help="Kubeconfig file, when running outside the cluster"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Give up after this many seconds"
    ),
    recheck_interval: float = typer.Option(
        DEFAULT_RECHECK_INTERVAL, "--recheck-interval", help="Seconds between direct re-reads of the node"
    ),
    log_level: str = typer.Option("info", "--log-level", help="debug, info, warning or error"),
    log_format: str = typer.Option("text", "--log-format", help="text or json"),
) -> None:
    """
    Mark the node and block until the marker annotation is removed.

    Exits 0 when the gate opens (or is disabled), 1 on any failure.
    """
    try:
        opts = GateOptions(
            node_name=node_name,
            config_path=config_path,
            configmap_name=configmap_name,
            configmap_namespace=configmap_namespace,
            configmap_key=configmap_key,
            kubeconfig=kubeconfig,
            timeout=timeout,
            recheck_interval=recheck_interval,
            log_level=log_level,
            log_format=log_format,
        )
        opts.validate_sources()
        log = configure_logging(opts.log_level, opts.log_format)
    except (ValidationError, ConfigInvalidError) as e:
        console.print(f"[red]invalid config: {e}[/red]")
        raise typer.Exit(1)

    context = Context.background()
    with gate_app.cancel_on_signals(context):
        try:
            outcome = gate_app.run(context.with_timeout(opts.timeout), opts, log=log)
        except GateError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)

    if outcome.status == OutcomeStatus.DISABLED:
        console.print("[yellow]safe driver loading is disabled[/yellow]")
    else:
        console.print("[green]✓ gate opened[/green]")
