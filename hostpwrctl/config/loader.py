"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from ..errors import ConfigurationError
from .defaults import (
    BusParams,
    ConfirmationParams,
    EntityParams,
    PowerControlConfig,
    get_default_config,
)
from .validation import ConfigValidator

DEFAULT_CONFIG_FILE = Path("/etc/hostpwrctl/hostpwrctl.yaml")

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_file: Path
    defaults: PowerControlConfig
    explicit: bool = False

    @classmethod
    def create(cls, config_file: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        explicit = config_file is not None
        if config_file is None:
            config_file = DEFAULT_CONFIG_FILE

        return cls(
            config_file=Path(config_file),
            defaults=get_default_config(),
            explicit=explicit,
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the YAML file; a missing default file is not an error."""
        if not self.config_file.exists():
            if self.explicit:
                raise ConfigurationError(f"Configuration file not found: {self.config_file}")
            return {}

        try:
            with open(self.config_file) as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {self.config_file}: {e}") from e

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Top level of {self.config_file} must be a mapping")

        logger.debug("Loaded configuration file", path=str(self.config_file))
        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Command line overrides (highest priority)
        2. Configuration file
        3. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load(self, overrides: Optional[dict[str, Any]] = None) -> PowerControlConfig:
        """Merge, validate and build the typed configuration."""
        merged = self.merge_config(overrides)

        errors = ConfigValidator.validate_config(merged)
        if errors:
            details = "; ".join(f"{err.field}: {err.message} (got: {err.value!r})" for err in errors)
            raise ConfigurationError(f"Invalid configuration: {details}", errors=errors)

        return build_config(merged)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(merged: dict[str, Any]) -> PowerControlConfig:
    """Build typed configuration from a validated, merged dictionary."""
    confirmation = dict(merged["confirmation"])
    confirmation["timeout_seconds"] = float(confirmation["timeout_seconds"])

    return PowerControlConfig(
        bus=BusParams(**merged["bus"]),
        chassis=EntityParams(**merged["chassis"]),
        host=EntityParams(**merged["host"]),
        confirmation=ConfirmationParams(**confirmation),
    )
