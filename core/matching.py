"""IAM string-like and ARN-like pattern matching."""

from __future__ import annotations

import re
from functools import lru_cache

from core.constants import IAM_READ_VERBS, IAM_WRITE_ACTIONS, IAM_WRITE_PATTERNS


@lru_cache(maxsize=1024)
def _compile(pattern: str, case_sensitive: bool) -> re.Pattern[str]:
    parts: list[str] = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    flags = re.DOTALL if case_sensitive else re.DOTALL | re.IGNORECASE
    return re.compile("".join(parts), flags)


def string_like(value: str, pattern: str, *, case_sensitive: bool = True) -> bool:
    """Match *value* against an IAM StringLike pattern (``*`` and ``?`` only)."""
    return _compile(pattern, case_sensitive).fullmatch(value) is not None


def arn_like(value: str, pattern: str) -> bool:
    """Match ARNs field by field, as the ArnLike condition operator does."""
    value_parts = value.split(":", 5)
    pattern_parts = pattern.split(":", 5)
    if len(value_parts) != 6 or len(pattern_parts) != 6:
        return False
    return all(string_like(v, p) for v, p in zip(value_parts, pattern_parts))


def action_matches(action: str, pattern: str) -> bool:
    """Action names are case-insensitive."""
    return string_like(action, pattern, case_sensitive=False)


def grants_iam_write(action: str) -> bool:
    """True when *action* (a literal or a wildcard pattern) can grant an IAM mutation."""
    if any(action_matches(action, pattern) for pattern in IAM_WRITE_PATTERNS):
        return True
    if any(action_matches(candidate, action) for candidate in IAM_WRITE_ACTIONS):
        return True
    service, _, name = action.partition(":")
    if service.lower() != "iam" or not name or "*" in name or "?" in name:
        return False
    return not name.lower().startswith(IAM_READ_VERBS)


def account_of(arn: str) -> str | None:
    parts = arn.split(":", 5)
    if len(parts) != 6:
        return None
    return parts[4]


__all__ = ["account_of", "action_matches", "arn_like", "grants_iam_write", "string_like"]
