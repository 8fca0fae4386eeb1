"""Configuration loader for the orgstate CLI."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from core.config import StackSettings, read_config_mapping

DEFAULTS = {
    "default_format": "json",
}


@dataclass(slots=True)
class Settings:
    default_format: str = DEFAULTS["default_format"]
    stack: StackSettings = field(default_factory=StackSettings)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Settings":
        return cls(
            default_format=data.get("default_format", DEFAULTS["default_format"]),
            stack=StackSettings.from_mapping(data),
        )

    def merge_cli(self, format_override: str | None = None, management_account_id: str | None = None) -> "Settings":
        stack = self.stack
        if management_account_id:
            stack = replace(stack, management_account_id=management_account_id)
        return Settings(
            default_format=format_override or self.default_format,
            stack=stack,
        )


def load_settings(path: Path) -> Settings:
    return Settings.from_mapping(read_config_mapping(path))


__all__ = ["Settings", "load_settings"]
