"""Resource policies for the shared state bucket and lock table."""

from __future__ import annotations

from typing import Iterable

from core.constants import LOCK_TABLE_ACTIONS, PRINCIPAL_ARN_KEY, SECURE_TRANSPORT_KEY, STATE_BUCKET_ACTIONS
from core.errors import ConfigurationValidationError
from core.models import PolicyDoc, PolicyStatement

SERVICE_ACTIONS = {
    "s3": STATE_BUCKET_ACTIONS,
    "dynamodb": LOCK_TABLE_ACTIONS,
}


def state_bucket_arn(bucket: str) -> str:
    return f"arn:aws:s3:::{bucket}"


def lock_table_arn(region: str, account_id: str, table: str) -> str:
    return f"arn:aws:dynamodb:{region}:{account_id}:table/{table}"


class ResourcePolicyBuilder:
    """Build an allow-by-pattern policy plus a TLS-only guard for a storage resource.

    Roles referenced directly in ``Principal`` must already exist when the
    policy is attached. Execution roles live in other accounts and are created
    independently, so the allow statement uses the ``*`` principal and narrows
    it with a StringLike condition on ``aws:PrincipalArn`` evaluated per request.
    """

    def __init__(self, service: str) -> None:
        if service not in SERVICE_ACTIONS:
            raise ValueError(f"service must be one of: {', '.join(sorted(SERVICE_ACTIONS))}")
        self.service = service

    def build(self, resource_arn: str, allowed_principals: Iterable[str]) -> PolicyDoc:
        principals = sorted({pattern for pattern in allowed_principals if pattern})
        if not principals:
            raise ConfigurationValidationError(
                "allowed_principals", [], message="allowed_principals: at least one principal pattern is required"
            )
        resources = self._resources(resource_arn)

        allow = PolicyStatement(  # type: ignore[arg-type]
            sid="AllowAccess",
            effect="Allow",
            principal={"AWS": "*"},
            actions=list(SERVICE_ACTIONS[self.service]),
            resources=resources,
            conditions={"StringLike": {PRINCIPAL_ARN_KEY: principals}},
        )
        enforce_tls = PolicyStatement(  # type: ignore[arg-type]
            sid="EnforceTLS",
            effect="Deny",
            principal="*",
            actions=[f"{self.service}:*"],
            resources=resources,
            conditions={"Bool": {SECURE_TRANSPORT_KEY: "false"}},
        )
        return PolicyDoc(statements=[allow, enforce_tls])  # type: ignore[arg-type]

    def _resources(self, resource_arn: str) -> list[str]:
        if self.service == "s3":
            base = resource_arn[:-2] if resource_arn.endswith("/*") else resource_arn
            return [base, f"{base}/*"]
        return [resource_arn]


__all__ = ["ResourcePolicyBuilder", "lock_table_arn", "state_bucket_arn"]
