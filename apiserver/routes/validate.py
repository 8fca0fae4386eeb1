"""API route for validating a stack configuration."""

from __future__ import annotations

from typing import Any

from apiserver.routes._common import bad_request, parse_body, validation_error
from core.config import StackSettings
from core.errors import ConfigurationValidationError
from core.validation import validate_settings


def handle(event: dict[str, Any]) -> dict[str, Any]:
    try:
        data = parse_body(event)
    except ValueError as exc:
        return bad_request(str(exc))

    config = data.get("config") or {}
    if not isinstance(config, dict):
        return bad_request("config must be a JSON object")

    try:
        validate_settings(StackSettings.from_mapping(config))
    except ConfigurationValidationError as exc:
        return validation_error(exc)

    return {"statusCode": 200, "body": {"valid": True}}
