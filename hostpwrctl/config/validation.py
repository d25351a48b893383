"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

BUS_TYPES = ("system", "session")
ENTITY_FIELDS = ("path", "interface", "state_property", "transition_property")

KNOWN_KEYS = {
    "bus": ("bus_type", "mapper_service", "mapper_path", "mapper_interface"),
    "chassis": ENTITY_FIELDS,
    "host": ENTITY_FIELDS,
    "confirmation": ("timeout_seconds", "fail_on_write_error"),
}


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_object_path(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("/") and "//" not in value


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value) and not value.startswith(".")


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_bus_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate bus parameters."""
        errors = []

        if "bus_type" in params and params["bus_type"] not in BUS_TYPES:
            errors.append(ValidationError(
                field="bus.bus_type",
                message=f"Must be one of {', '.join(BUS_TYPES)}",
                value=params["bus_type"]
            ))

        if "mapper_path" in params and not _is_object_path(params["mapper_path"]):
            errors.append(ValidationError(
                field="bus.mapper_path",
                message="Must be an absolute D-Bus object path",
                value=params["mapper_path"]
            ))

        for name in ("mapper_service", "mapper_interface"):
            if name in params and not _is_name(params[name]):
                errors.append(ValidationError(
                    field=f"bus.{name}",
                    message="Must be a non-empty D-Bus name",
                    value=params[name]
                ))

        return errors

    @staticmethod
    def validate_entity_params(section: str, params: Any) -> list[ValidationError]:
        """Validate the binding of one entity (chassis or host)."""
        if not isinstance(params, dict):
            return [ValidationError(field=section, message="Must be a mapping", value=params)]

        errors = []

        for name in ENTITY_FIELDS:
            if name not in params:
                errors.append(ValidationError(
                    field=f"{section}.{name}",
                    message="Is required",
                    value=None
                ))

        if "path" in params and not _is_object_path(params["path"]):
            errors.append(ValidationError(
                field=f"{section}.path",
                message="Must be an absolute D-Bus object path",
                value=params["path"]
            ))

        for name in ENTITY_FIELDS[1:]:
            if name in params and not _is_name(params[name]):
                errors.append(ValidationError(
                    field=f"{section}.{name}",
                    message="Must be a non-empty D-Bus name",
                    value=params[name]
                ))

        return errors

    @staticmethod
    def validate_confirmation_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate confirmation parameters."""
        errors = []

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="confirmation.timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "fail_on_write_error" in params:
            value = params["fail_on_write_error"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="confirmation.fail_on_write_error",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_known_keys(config: dict[str, Any]) -> list[ValidationError]:
        """Reject unknown sections and keys so typos do not pass silently."""
        errors = []

        for section, params in config.items():
            if section not in KNOWN_KEYS:
                errors.append(ValidationError(field=section, message="Unknown section", value=params))
                continue
            if not isinstance(params, dict):
                errors.append(ValidationError(field=section, message="Must be a mapping", value=params))
                continue
            for key in params:
                if key not in KNOWN_KEYS[section]:
                    errors.append(ValidationError(
                        field=f"{section}.{key}",
                        message="Unknown key",
                        value=params[key]
                    ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = ConfigValidator.validate_known_keys(config)
        if errors:
            return errors

        if "bus" in config:
            errors.extend(ConfigValidator.validate_bus_params(config["bus"]))

        for section in ("chassis", "host"):
            if section in config:
                errors.extend(ConfigValidator.validate_entity_params(section, config[section]))

        if "confirmation" in config:
            errors.extend(ConfigValidator.validate_confirmation_params(config["confirmation"]))

        return errors
