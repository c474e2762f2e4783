# src/safe_load_gate/cli/__init__.py
# CLI package for safe-load-gate.
"""
CLI module providing the `safe-load-gate` command-line interface.

Commands:
- safe-load-gate wait: mark the node and block until the mark is removed
- safe-load-gate config show: validate and print the configuration
"""

from safe_load_gate.cli.main import app

__all__ = ["app"]
