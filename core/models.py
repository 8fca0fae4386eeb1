"""Data models shared across the policy builders."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, computed_field

POLICY_VERSION = "2012-10-17"


class PermissionMode(str, Enum):
    """Capability tier of an execution role."""

    BROAD = "broad"
    HARDENED = "hardened"
    CUSTOM = "custom"


class AccountRecord(BaseModel):
    """Organization account as listed by the directory service."""

    name: str = Field(..., alias="Name")
    id: str = Field(..., alias="Id")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }


class Environment(BaseModel):
    """Deployment stage bound to the account it lives in."""

    name: str
    account_id: str

    model_config = {"frozen": True}


class PolicyStatement(BaseModel):
    """IAM policy statement."""

    sid: str | None = Field(default=None, alias="Sid")
    effect: str = Field(default="Allow", alias="Effect")
    principal: Any = Field(default=None, alias="Principal")
    actions: list[str] = Field(default_factory=list, alias="Action")
    not_actions: list[str] = Field(default_factory=list, alias="NotAction")
    resources: list[str] = Field(default_factory=list, alias="Resource")
    conditions: dict[str, Any] = Field(default_factory=dict, alias="Condition")

    model_config = {
        "populate_by_name": True,
        "use_enum_values": True,
    }

    def to_document(self) -> dict[str, Any]:
        """Render as an IAM statement, leaving out empty members."""
        document: dict[str, Any] = {}
        if self.sid:
            document["Sid"] = self.sid
        document["Effect"] = self.effect
        if self.principal is not None:
            document["Principal"] = self.principal
        if self.actions:
            document["Action"] = list(self.actions)
        if self.not_actions:
            document["NotAction"] = list(self.not_actions)
        if self.resources:
            document["Resource"] = list(self.resources)
        if self.conditions:
            document["Condition"] = self.conditions
        return document


class PolicyDoc(BaseModel):
    """IAM policy document composed of statements."""

    version: str = Field(default=POLICY_VERSION, alias="Version")
    statements: list[PolicyStatement] = Field(default_factory=list, alias="Statement")

    model_config = {
        "populate_by_name": True,
        "use_enum_values": True,
    }

    @computed_field
    @property
    def services(self) -> list[str]:
        """Return unique AWS services referenced in the policy."""
        services: set[str] = set()
        for statement in self.statements:
            for action in [*statement.actions, *statement.not_actions]:
                services.add(action.split(":", 1)[0])
        return sorted(services)

    def to_document(self) -> dict[str, Any]:
        return {
            "Version": self.version,
            "Statement": [statement.to_document() for statement in self.statements],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_document(), indent=indent)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "PolicyDoc":
        """Parse an IAM JSON document, accepting scalar Action/Resource members."""
        raw_statements = data.get("Statement", [])
        if isinstance(raw_statements, dict):
            raw_statements = [raw_statements]
        statements = []
        for raw in raw_statements:
            item = dict(raw)
            for key in ("Action", "NotAction", "Resource"):
                if isinstance(item.get(key), str):
                    item[key] = [item[key]]
            statements.append(PolicyStatement.model_validate(item))
        return cls(version=data.get("Version", POLICY_VERSION), statements=statements)  # type: ignore[arg-type]


class EnvironmentPlan(BaseModel):
    """Every document produced for one environment's execution role."""

    name: str
    account_id: str
    role_name: str
    role_arn: str
    key_prefix: str
    permissions_mode: PermissionMode
    max_session_duration: int
    trust_policy: PolicyDoc
    permission_policy: PolicyDoc
    state_policy: PolicyDoc

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "accountId": self.account_id,
            "roleName": self.role_name,
            "roleArn": self.role_arn,
            "keyPrefix": self.key_prefix,
            "permissionsMode": self.permissions_mode.value,
            "maxSessionDuration": self.max_session_duration,
            "trustPolicy": self.trust_policy.to_document(),
            "permissionPolicy": self.permission_policy.to_document(),
            "statePolicy": self.state_policy.to_document(),
        }


class StackPlan(BaseModel):
    """Documents for the whole organization: shared storage plus per-environment roles."""

    project: str
    region: str
    management_account_id: str
    state_bucket: str
    lock_table: str
    environments: list[EnvironmentPlan] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    bucket_policy: Optional[PolicyDoc] = None
    lock_table_policy: Optional[PolicyDoc] = None

    def environment(self, name: str) -> EnvironmentPlan | None:
        for plan in self.environments:
            if plan.name == name:
                return plan
        return None

    def to_document(self) -> dict[str, Any]:
        return {
            "project": self.project,
            "region": self.region,
            "managementAccountId": self.management_account_id,
            "stateBucket": self.state_bucket,
            "lockTable": self.lock_table,
            "environments": [plan.to_document() for plan in self.environments],
            "skipped": list(self.skipped),
            "bucketPolicy": self.bucket_policy.to_document() if self.bucket_policy else None,
            "lockTablePolicy": self.lock_table_policy.to_document() if self.lock_table_policy else None,
        }


__all__ = [
    "AccountRecord",
    "Environment",
    "EnvironmentPlan",
    "PermissionMode",
    "PolicyDoc",
    "PolicyStatement",
    "StackPlan",
    "POLICY_VERSION",
]
