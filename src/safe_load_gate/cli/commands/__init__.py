# src/safe_load_gate/cli/commands/__init__.py
"""Sub-command implementations."""
