"""Request parsing and error responses shared by the routes."""

from __future__ import annotations

import json
from typing import Any

from core.errors import ConfigurationValidationError


def parse_body(event: dict[str, Any]) -> dict[str, Any]:
    payload = event.get("body")
    if isinstance(payload, str):
        data = json.loads(payload or "{}")
    else:
        data = payload or {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def bad_request(message: str, **extra: Any) -> dict[str, Any]:
    return {"statusCode": 400, "body": {"message": message, **extra}}


def validation_error(exc: ConfigurationValidationError) -> dict[str, Any]:
    return {"statusCode": 400, "body": exc.as_json()}
