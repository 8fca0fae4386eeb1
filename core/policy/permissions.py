"""Compose the permission document attached to an execution role."""

from __future__ import annotations

from typing import Any, Iterable

from core.constants import REQUESTED_REGION_KEY
from core.models import PermissionMode, PolicyDoc, PolicyStatement
from core.policy.conditions import merge_conditions
from core.validation import validate_extra_statements, validate_permissions_mode

# IAM, Organizations and account settings stay with the control-plane identity.
BROAD_EXCLUDED_SERVICES = ["account:*", "iam:*", "organizations:*"]

IAM_READ_ACTIONS = ["iam:Get*", "iam:List*"]

HARDENED_STATEMENTS: list[tuple[str, list[str]]] = [
    (
        "ComputeLifecycle",
        [
            "ec2:CreateTags",
            "ec2:Describe*",
            "ec2:RebootInstances",
            "ec2:RunInstances",
            "ec2:StartInstances",
            "ec2:StopInstances",
            "ec2:TerminateInstances",
        ],
    ),
    (
        "ContainerLifecycle",
        [
            "ecr:BatchCheckLayerAvailability",
            "ecr:BatchGetImage",
            "ecr:DescribeImages",
            "ecr:DescribeRepositories",
            "ecr:GetAuthorizationToken",
            "ecr:GetDownloadUrlForLayer",
            "ecs:CreateService",
            "ecs:DeleteService",
            "ecs:DeregisterTaskDefinition",
            "ecs:Describe*",
            "ecs:List*",
            "ecs:RegisterTaskDefinition",
            "ecs:UpdateService",
        ],
    ),
    ("IamReadOnly", IAM_READ_ACTIONS),
    (
        "Logging",
        [
            "logs:CreateLogGroup",
            "logs:CreateLogStream",
            "logs:DeleteLogGroup",
            "logs:DescribeLogGroups",
            "logs:PutLogEvents",
            "logs:PutRetentionPolicy",
            "logs:TagResource",
        ],
    ),
    (
        "Tagging",
        [
            "tag:GetResources",
            "tag:GetTagKeys",
            "tag:GetTagValues",
            "tag:TagResources",
            "tag:UntagResources",
        ],
    ),
    (
        "QuotaRead",
        [
            "servicequotas:GetServiceQuota",
            "servicequotas:ListServiceQuotas",
            "servicequotas:ListServices",
        ],
    ),
]


class PermissionSetComposer:
    """Produce the execution role's policy for one permission mode.

    ``broad`` and ``hardened`` carry a fixed base set and pin every statement to
    ``region``; ``custom`` is exactly the caller's statements. Caller statements
    are validated up front and may never grant IAM mutation.
    """

    def __init__(
        self,
        mode: PermissionMode | str,
        region: str,
        account_id: str,
        extra_statements: Iterable[dict[str, Any] | PolicyStatement] | None = None,
    ) -> None:
        self.mode = validate_permissions_mode(mode)
        self.region = region
        self.account_id = account_id
        self.extra_statements = validate_extra_statements(extra_statements, self.mode)

    def build(self) -> PolicyDoc:
        if self.mode == PermissionMode.CUSTOM:
            statements = [statement.model_copy(deep=True) for statement in self.extra_statements]
            return PolicyDoc(statements=statements)  # type: ignore[arg-type]

        base = self._broad_statements() if self.mode == PermissionMode.BROAD else self._hardened_statements()
        statements = [*base, *(statement.model_copy(deep=True) for statement in self.extra_statements)]
        for statement in statements:
            conditions = merge_conditions(statement.conditions)
            # The mode region replaces any region a caller statement names.
            conditions.setdefault("StringEquals", {})[REQUESTED_REGION_KEY] = self.region
            statement.conditions = conditions
        return PolicyDoc(statements=statements)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    def _broad_statements(self) -> list[PolicyStatement]:
        return [
            PolicyStatement(  # type: ignore[arg-type]
                sid="BroadServiceAccess",
                effect="Allow",
                not_actions=list(BROAD_EXCLUDED_SERVICES),
                resources=["*"],
            ),
            PolicyStatement(  # type: ignore[arg-type]
                sid="IamReadOnly",
                effect="Allow",
                actions=list(IAM_READ_ACTIONS),
                resources=["*"],
            ),
        ]

    def _hardened_statements(self) -> list[PolicyStatement]:
        statements: list[PolicyStatement] = []
        for sid, actions in HARDENED_STATEMENTS:
            resources = ["*"]
            if sid == "Logging":
                resources = [f"arn:aws:logs:{self.region}:{self.account_id}:log-group:*"]
            statements.append(
                PolicyStatement(  # type: ignore[arg-type]
                    sid=sid,
                    effect="Allow",
                    actions=list(actions),
                    resources=resources,
                )
            )
        return statements


def compose_permissions(
    mode: PermissionMode | str,
    region: str,
    account_id: str,
    extra_statements: Iterable[dict[str, Any] | PolicyStatement] | None = None,
) -> PolicyDoc:
    return PermissionSetComposer(mode, region, account_id, extra_statements).build()


__all__ = ["PermissionSetComposer", "compose_permissions", "HARDENED_STATEMENTS"]
