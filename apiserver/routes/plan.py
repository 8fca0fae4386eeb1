"""API route for composing an organization's state-access plan."""

from __future__ import annotations

import logging
import warnings
from typing import Any

from pydantic import ValidationError

from apiserver.routes._common import bad_request, parse_body, validation_error
from core.config import StackSettings
from core.errors import ConfigurationValidationError, ResolutionGapWarning
from core.models import AccountRecord
from core.plan import compose_plan

logger = logging.getLogger(__name__)


def _coerce_accounts(raw_accounts: list[Any]) -> list[AccountRecord]:
    return [AccountRecord.model_validate(item) for item in raw_accounts]


def handle(event: dict[str, Any]) -> dict[str, Any]:
    try:
        data = parse_body(event)
    except ValueError as exc:
        return bad_request(str(exc))

    config = data.get("config") or {}
    raw_accounts = data.get("accounts", [])
    if not isinstance(config, dict) or not isinstance(raw_accounts, list):
        return bad_request("config must be an object and accounts a list")
    if not all(isinstance(item, dict) for item in raw_accounts):
        return bad_request("accounts entries must be objects with name and id", field="accounts")

    try:
        settings = StackSettings.from_mapping(config)
        management_account_id = data.get("managementAccountId") or settings.management_account_id
        if not management_account_id:
            return bad_request("managementAccountId is required", field="managementAccountId")
        accounts = _coerce_accounts(raw_accounts)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ResolutionGapWarning)
            plan = compose_plan(settings, accounts, str(management_account_id))
    except ConfigurationValidationError as exc:
        logger.info("rejected plan request field=%s", exc.field)
        return validation_error(exc)
    except ValidationError as exc:
        return bad_request("accounts entries need name and id", field="accounts", errors=len(exc.errors()))

    return {"statusCode": 200, "body": plan.to_document()}
