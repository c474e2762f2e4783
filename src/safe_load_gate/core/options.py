# src/safe_load_gate/core/options.py
# Process options collected by the CLI.

"""
Options of one `safe-load-gate wait` run.

These are the command-line inputs around the gate: which node to gate,
where the configuration document lives, how to reach the cluster and how
to log. They are validated before anything touches the cluster.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from safe_load_gate.errors import ConfigInvalidError
from safe_load_gate.gate.controller import DEFAULT_RECHECK_INTERVAL


class GateOptions(BaseModel):
    """Options for a single gate run."""

    node_name: str = Field(default="", description="Name of the node this process runs on")
    config_path: Optional[Path] = Field(default=None, description="Local configuration file")
    configmap_name: str = Field(default="", description="ConfigMap holding the configuration")
    configmap_namespace: str = Field(default="", description="Namespace of the ConfigMap")
    configmap_key: str = Field(default="config.json", description="Key inside the ConfigMap")
    kubeconfig: Optional[Path] = Field(default=None, description="Kubeconfig for out-of-cluster runs")
    timeout: Optional[float] = Field(default=None, description="Give up after this many seconds")
    recheck_interval: float = Field(default=DEFAULT_RECHECK_INTERVAL, gt=0)
    log_level: str = Field(default="info")
    log_format: str = Field(default="text")

    @property
    def uses_configmap(self) -> bool:
        return self.config_path is None

    def validate_sources(self) -> None:
        """Check required options; raise ConfigInvalidError on the first problem."""
        if not self.node_name:
            raise ConfigInvalidError("node-name is required parameter")

        if self.config_path is not None:
            if self.configmap_name or self.configmap_namespace:
                raise ConfigInvalidError(
                    "config-path and configmap-name/configmap-namespace are mutually exclusive"
                )
            return

        if not self.configmap_name:
            raise ConfigInvalidError("configmap-name is required parameter")
        if not self.configmap_namespace:
            raise ConfigInvalidError("configmap-namespace is required parameter")
        if not self.configmap_key:
            raise ConfigInvalidError("configmap-key is required parameter")

    def describe(self) -> dict[str, object]:
        """Options as loggable key/values."""
        return self.model_dump(mode="json", exclude_none=True)
