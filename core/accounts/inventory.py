"""Read the organization's account list and the caller's account."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import boto3

from core.models import AccountRecord

logger = logging.getLogger(__name__)


class OrganizationInventory:
    """List accounts through AWS Organizations."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client or boto3.client("organizations")

    def list_accounts(self, include_inactive: bool = False) -> list[AccountRecord]:
        paginator = self._client.get_paginator("list_accounts")
        records: list[AccountRecord] = []
        for page in paginator.paginate():
            for entry in page.get("Accounts", []):
                if not include_inactive and entry.get("Status", "ACTIVE") != "ACTIVE":
                    continue
                records.append(AccountRecord(name=entry["Name"], id=entry["Id"]))
        logger.info("listed %d organization accounts", len(records))
        return sorted(records, key=lambda record: (record.name, record.id))


def caller_account_id(client: Any | None = None) -> str:
    sts = client or boto3.client("sts")
    return sts.get_caller_identity()["Account"]


def load_accounts_file(path: Path) -> list[AccountRecord]:
    """Read a JSON array or JSON-lines file of ``{name, id}`` mappings."""
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return []
    if raw.startswith("["):
        objects = json.loads(raw)
    else:
        lines = [line for line in raw.splitlines() if line.strip()]
        try:
            objects = [json.loads(line) for line in lines]
        except json.JSONDecodeError:
            # `aws organizations list-accounts` output
            objects = json.loads(raw)["Accounts"]
    return [AccountRecord.model_validate(obj) for obj in objects]


__all__ = ["OrganizationInventory", "caller_account_id", "load_accounts_file"]
