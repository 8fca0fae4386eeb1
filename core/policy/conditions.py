"""Condition merging for IAM statements."""

from __future__ import annotations

import copy
from typing import Any, Dict


def merge_conditions(*blocks: dict[str, Any] | None) -> dict[str, Any]:
    """Merge ``{operator: {key: value}}`` blocks, unioning values on shared keys."""
    merged: Dict[str, Dict[str, Any]] = {}
    for block in blocks:
        if not block:
            continue
        for operator, entries in block.items():
            target = merged.setdefault(operator, {})
            for key, value in entries.items():
                if key not in target:
                    target[key] = copy.deepcopy(value)
                else:
                    target[key] = _combine_values(target[key], value)
    return merged


def _combine_values(existing: Any, new: Any) -> Any:
    if existing == new:
        return existing
    left = existing if isinstance(existing, list) else [existing]
    right = new if isinstance(new, list) else [new]
    return sorted({*map(str, left), *map(str, right)})


__all__ = ["merge_conditions"]
