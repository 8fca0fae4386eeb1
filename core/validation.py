"""Configuration checks run before any policy document is generated."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from pydantic import ValidationError

from core.constants import (
    MAX_SESSION_DURATION,
    MIN_SESSION_DURATION,
    MIRRORED_ENVIRONMENTS,
    PERMISSION_MODES,
    RECOGNIZED_ENVIRONMENTS,
)
from core.errors import ConfigurationValidationError
from core.matching import grants_iam_write
from core.models import PermissionMode, PolicyStatement

if TYPE_CHECKING:  # pragma: no cover
    from core.config import StackSettings

STATEMENT_EFFECTS = ("Allow", "Deny")

_STATEMENT_KEYS = {
    "sid": "Sid",
    "effect": "Effect",
    "actions": "Action",
    "resources": "Resource",
    "conditions": "Condition",
    "not_actions": "NotAction",
}


def validate_permissions_mode(value: Any, field: str = "permissions_mode") -> PermissionMode:
    try:
        return PermissionMode(value)
    except ValueError as exc:
        raise ConfigurationValidationError(field, value, PERMISSION_MODES) from exc


def validate_session_duration(value: Any, field: str = "max_session_duration") -> int | None:
    if value is None:
        return None
    allowed = f"[{MIN_SESSION_DURATION}, {MAX_SESSION_DURATION}] seconds"
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationValidationError(field, value, allowed)
    if not MIN_SESSION_DURATION <= value <= MAX_SESSION_DURATION:
        raise ConfigurationValidationError(field, value, allowed)
    return value


def validate_environments(names: Iterable[str], field: str = "environments") -> list[str]:
    environments = list(names)
    if not environments:
        raise ConfigurationValidationError(field, environments, RECOGNIZED_ENVIRONMENTS, f"{field}: at least one environment is required")
    seen: set[str] = set()
    for name in environments:
        if name not in RECOGNIZED_ENVIRONMENTS:
            raise ConfigurationValidationError(field, name, RECOGNIZED_ENVIRONMENTS)
        if name in seen:
            raise ConfigurationValidationError(field, name, message=f"{field}: duplicate environment '{name}'")
        seen.add(name)
    return environments


def parse_statement(raw: dict[str, Any] | PolicyStatement, field: str) -> PolicyStatement:
    """Build and check one caller-supplied statement."""
    if isinstance(raw, PolicyStatement):
        statement = raw
    else:
        item = {_STATEMENT_KEYS.get(key, key): value for key, value in raw.items()}
        if "Effect" not in item:
            raise ConfigurationValidationError(field, raw, STATEMENT_EFFECTS, f"{field}: effect must not be empty")
        for key in ("Action", "NotAction", "Resource"):
            if isinstance(item.get(key), str):
                item[key] = [item[key]]
        try:
            statement = PolicyStatement.model_validate(item)
        except ValidationError as exc:
            raise ConfigurationValidationError(field, raw, message=f"{field}: {exc.errors()[0]['msg']}") from exc

    if statement.effect not in STATEMENT_EFFECTS:
        raise ConfigurationValidationError(f"{field}.effect", statement.effect, STATEMENT_EFFECTS)
    if statement.not_actions:
        raise ConfigurationValidationError(f"{field}.not_actions", statement.not_actions, message=f"{field}: NotAction is not supported in additional permissions")
    if not statement.actions or not all(statement.actions):
        raise ConfigurationValidationError(f"{field}.actions", statement.actions, message=f"{field}: actions must not be empty")
    if not statement.resources or not all(statement.resources):
        raise ConfigurationValidationError(f"{field}.resources", statement.resources, message=f"{field}: resources must not be empty")
    for action in statement.actions:
        if grants_iam_write(action):
            raise ConfigurationValidationError(
                f"{field}.actions",
                action,
                message=f"{field}: '{action}' grants IAM write access, which execution roles never receive",
            )
    return statement


def validate_extra_statements(
    statements: Iterable[dict[str, Any] | PolicyStatement] | None,
    mode: PermissionMode,
    field: str = "additional_permissions",
) -> list[PolicyStatement]:
    parsed = [parse_statement(raw, f"{field}[{index}]") for index, raw in enumerate(statements or [])]
    if mode == PermissionMode.CUSTOM and not parsed:
        raise ConfigurationValidationError(
            field, [], message=f"{field}: must not be empty when permissions_mode is 'custom'"
        )
    return parsed


def validate_settings(settings: "StackSettings") -> None:
    """Raise ConfigurationValidationError on the first invalid setting."""
    environments = validate_environments(settings.environments)
    default_mode = validate_permissions_mode(settings.permissions_mode)
    validate_session_duration(settings.max_session_duration)

    for name in settings.environment_modes:
        if name not in environments:
            raise ConfigurationValidationError("environment_modes", name, environments)

    modes = {name: default_mode for name in environments}
    for name, value in settings.environment_modes.items():
        modes[name] = validate_permissions_mode(value, f"environment_modes.{name}")

    for mode in sorted(set(modes.values()), key=lambda item: item.value):
        validate_extra_statements(settings.additional_permissions, mode)

    mirrored = {modes[name] for name in MIRRORED_ENVIRONMENTS if name in modes}
    if len(mirrored) > 1:
        raise ConfigurationValidationError(
            "environment_modes",
            {name: modes[name].value for name in MIRRORED_ENVIRONMENTS if name in modes},
            message="environment_modes: stage and prod must use the same permissions mode",
        )

    if not settings.trusted_principals:
        raise ConfigurationValidationError("trusted_principals", [], message="trusted_principals: at least one principal pattern is required")
    if not settings.region:
        raise ConfigurationValidationError("region", settings.region, message="region: must not be empty")


__all__ = [
    "parse_statement",
    "validate_environments",
    "validate_extra_statements",
    "validate_permissions_mode",
    "validate_session_duration",
    "validate_settings",
]
