"""Error taxonomy for configuration and account resolution."""

from __future__ import annotations

from typing import Any, Iterable


class ConfigurationValidationError(ValueError):
    """Invalid configuration detected before any document is generated."""

    def __init__(self, field: str, value: Any, allowed: Any = None, message: str | None = None) -> None:
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(message or self._describe())

    def _describe(self) -> str:
        text = f"{self.field}: invalid value {self.value!r}"
        if self.allowed is not None:
            text += f" (allowed: {_format_allowed(self.allowed)})"
        return text

    def as_json(self) -> dict[str, Any]:
        allowed = self.allowed
        if isinstance(allowed, (set, frozenset, tuple)):
            allowed = sorted(allowed) if isinstance(allowed, (set, frozenset)) else list(allowed)
        return {"message": str(self), "field": self.field, "allowed": allowed}


class ResolutionGapWarning(UserWarning):
    """A configured environment has no matching organization account."""

    def __init__(self, environment: str, prefix: str) -> None:
        self.environment = environment
        self.prefix = prefix
        super().__init__(
            f"No account named '{prefix}{environment}' found; skipping environment '{environment}'"
        )


def _format_allowed(allowed: Any) -> str:
    if isinstance(allowed, str):
        return allowed
    if isinstance(allowed, (set, frozenset)):
        return ", ".join(sorted(str(item) for item in allowed))
    if isinstance(allowed, Iterable):
        return ", ".join(str(item) for item in allowed)
    return str(allowed)


__all__ = ["ConfigurationValidationError", "ResolutionGapWarning"]
