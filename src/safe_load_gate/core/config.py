# src/safe_load_gate/core/config.py
# Configuration management for the safe driver load gate.

"""
Configuration models and loading utilities.

The configuration document is JSON or YAML:

    safeDriverLoad:
      enable: true
      annotation: example.com/wait-for-safe-load

It is read once at startup, either from a file or from a key of a
ConfigMap, and never mutated afterwards.
"""

from pathlib import Path
from typing import Optional, Protocol

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from safe_load_gate.errors import ConfigInvalidError


class SafeDriverLoadConfig(BaseModel):
    """Options of the safe driver loading feature."""

    model_config = ConfigDict(frozen=True)

    enable: bool = Field(default=False, description="Enable safe driver loading")
    annotation: str = Field(default="", description="Annotation used as the gate marker")


class GateConfig(BaseModel):
    """Gate configuration document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    safe_driver_load: SafeDriverLoadConfig = Field(
        default_factory=SafeDriverLoadConfig,
        alias="safeDriverLoad",
        description="Configuration of the safe driver loading feature",
    )

    @property
    def enabled(self) -> bool:
        return self.safe_driver_load.enable

    @property
    def marker_key(self) -> str:
        return self.safe_driver_load.annotation

    def ensure_valid(self) -> None:
        """Raise ConfigInvalidError if the gate is enabled without a marker key."""
        if self.safe_driver_load.enable and not self.safe_driver_load.annotation:
            raise ConfigInvalidError(
                ".safeDriverLoad.annotation is required if safeDriverLoad feature is enabled"
            )

    def to_json(self) -> str:
        """String form of the configuration, as written in the source document."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_text(cls, text: str) -> "GateConfig":
        """Parse and validate a JSON or YAML configuration document."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigInvalidError(f"failed to unmarshal configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigInvalidError("failed to unmarshal configuration: expected a mapping")

        try:
            config = cls.model_validate(data)
        except ValidationError as e:
            raise ConfigInvalidError(f"failed to unmarshal configuration: {e}") from e

        try:
            config.ensure_valid()
        except ConfigInvalidError as e:
            raise ConfigInvalidError(f"configuration is invalid: {e}") from e
        return config

    @classmethod
    def from_file(cls, path: Path) -> "GateConfig":
        """Read configuration from a file."""
        try:
            text = Path(path).read_text()
        except OSError as e:
            raise ConfigInvalidError(f"failed to read data from the provided file: {e}") from e
        return cls.from_text(text)


class ConfigSource(Protocol):
    """Anything that can return the raw configuration document."""

    def read(self) -> str: ...


def load_config(
    path: Optional[Path] = None,
    source: Optional[ConfigSource] = None,
) -> GateConfig:
    """
    Load the gate configuration.

    Exactly one of `path` (a local file) or `source` (for example a
    ConfigMap reader) must be given.
    """
    if (path is None) == (source is None):
        raise ConfigInvalidError("exactly one configuration source must be provided")
    if path is not None:
        return GateConfig.from_file(path)
    return GateConfig.from_text(source.read())
