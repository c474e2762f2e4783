# src/safe_load_gate/core/__init__.py
# Core modules for safe-load-gate.
"""
Core functionality:
- config: gate configuration document
- options: process options collected by the CLI
"""

from safe_load_gate.core.config import GateConfig, SafeDriverLoadConfig, load_config
from safe_load_gate.core.options import GateOptions

__all__ = ["GateConfig", "GateOptions", "SafeDriverLoadConfig", "load_config"]
