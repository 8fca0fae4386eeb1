"""Stack configuration: project naming, environments and role options."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import SSO_ADMIN_PRINCIPAL
from core.errors import ConfigurationValidationError

DEFAULTS: dict[str, Any] = {
    "project_name": "orgstate",
    "region": "us-east-1",
    "environments": ["dev", "stage", "prod"],
    "permissions_mode": "hardened",
    "require_mfa": False,
    "max_session_duration": None,
    "trusted_principals": [SSO_ADMIN_PRINCIPAL],
}


@dataclass(slots=True)
class StackSettings:
    project_name: str = DEFAULTS["project_name"]
    region: str = DEFAULTS["region"]
    environments: list[str] = field(default_factory=lambda: list(DEFAULTS["environments"]))
    permissions_mode: str = DEFAULTS["permissions_mode"]
    environment_modes: dict[str, str] = field(default_factory=dict)
    require_mfa: bool = DEFAULTS["require_mfa"]
    max_session_duration: int | None = DEFAULTS["max_session_duration"]
    additional_permissions: list[dict[str, Any]] = field(default_factory=list)
    trusted_principals: list[str] = field(default_factory=lambda: list(DEFAULTS["trusted_principals"]))
    account_prefix: str | None = None
    state_bucket: str | None = None
    lock_table: str | None = None
    execution_role_name: str | None = None
    management_account_id: str | None = None

    @property
    def effective_prefix(self) -> str:
        return self.account_prefix if self.account_prefix is not None else f"{self.project_name}-"

    @property
    def bucket_name(self) -> str:
        return self.state_bucket or f"{self.project_name}-terraform-state"

    @property
    def table_name(self) -> str:
        return self.lock_table or f"{self.project_name}-terraform-locks"

    @property
    def role_name(self) -> str:
        return self.execution_role_name or f"{self.project_name}-terraform-execution"

    def mode_for(self, environment: str) -> str:
        return self.environment_modes.get(environment, self.permissions_mode)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "StackSettings":
        return cls(
            project_name=str(data.get("project_name", DEFAULTS["project_name"])),
            region=str(data.get("region", DEFAULTS["region"])),
            environments=_string_list(data, "environments", DEFAULTS["environments"]),
            permissions_mode=str(data.get("permissions_mode", DEFAULTS["permissions_mode"])),
            environment_modes=_string_mapping(data, "environment_modes"),
            require_mfa=bool(data.get("require_mfa", DEFAULTS["require_mfa"])),
            max_session_duration=_optional_int(data, "max_session_duration"),
            additional_permissions=_mapping_list(data, "additional_permissions"),
            trusted_principals=_string_list(data, "trusted_principals", DEFAULTS["trusted_principals"]),
            account_prefix=_optional_str(data, "account_prefix"),
            state_bucket=_optional_str(data, "state_bucket"),
            lock_table=_optional_str(data, "lock_table"),
            execution_role_name=_optional_str(data, "execution_role_name"),
            management_account_id=_optional_str(data, "management_account_id"),
        )


def load_stack_settings(path: Path) -> StackSettings:
    return StackSettings.from_mapping(read_config_mapping(path))


def read_config_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError("Configuration file must be a mapping of keys to values.")
    return data


# ---------------------------------------------------------------------------
# Coercion helpers


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationValidationError(key, value, "an integer number of seconds")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationValidationError(key, value, "an integer number of seconds")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationValidationError(key, value, "an integer number of seconds") from exc


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return None if value is None else str(value)


def _string_list(data: dict[str, Any], key: str, default: list[str]) -> list[str]:
    value = data.get(key)
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigurationValidationError(key, value, "a list of strings")
    return [str(item) for item in value]


def _string_mapping(data: dict[str, Any], key: str) -> dict[str, str]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigurationValidationError(key, value, "a mapping of environment to mode")
    return {str(name): str(mode) for name, mode in value.items()}


def _mapping_list(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key) or []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ConfigurationValidationError(key, value, "a list of statement mappings")
    return [dict(item) for item in value]


__all__ = ["StackSettings", "load_stack_settings", "read_config_mapping"]
