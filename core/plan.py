"""Compose every document for a configured organization in one pass."""

from __future__ import annotations

import logging
from typing import Iterable

from core.accounts.resolver import AccountLike, resolve_environments
from core.config import StackSettings
from core.models import Environment, EnvironmentPlan, PermissionMode, PolicyDoc, StackPlan
from core.policy.permissions import PermissionSetComposer
from core.policy.resource import ResourcePolicyBuilder, lock_table_arn, state_bucket_arn
from core.policy.state_access import StateAccessBuilder, key_prefix_for
from core.policy.trust import TrustPolicyBuilder, render_principal_patterns
from core.validation import validate_settings

logger = logging.getLogger(__name__)

DEFAULT_SESSION_DURATION = 3600


def role_arn(account_id: str, role_name: str) -> str:
    return f"arn:aws:iam::{account_id}:role/{role_name}"


def plan_environment(
    settings: StackSettings,
    environment: Environment,
    management_account_id: str,
) -> EnvironmentPlan:
    mode = PermissionMode(settings.mode_for(environment.name))
    key_prefix = key_prefix_for(environment.name)
    patterns = render_principal_patterns(
        settings.trusted_principals,
        account_id=environment.account_id,
        management_account_id=management_account_id,
    )
    trust = TrustPolicyBuilder(require_mfa=settings.require_mfa).build(patterns)
    permissions = PermissionSetComposer(
        mode,
        settings.region,
        environment.account_id,
        settings.additional_permissions,
    ).build()
    state = StateAccessBuilder(
        settings.bucket_name,
        settings.table_name,
        settings.region,
        management_account_id,
    ).build(key_prefix)

    return EnvironmentPlan(
        name=environment.name,
        account_id=environment.account_id,
        role_name=settings.role_name,
        role_arn=role_arn(environment.account_id, settings.role_name),
        key_prefix=key_prefix,
        permissions_mode=mode,
        max_session_duration=settings.max_session_duration or DEFAULT_SESSION_DURATION,
        trust_policy=trust,
        permission_policy=permissions,
        state_policy=state,
    )


def storage_principals(settings: StackSettings, environments: list[EnvironmentPlan], management_account_id: str) -> list[str]:
    """Execution roles of every resolved environment plus the management admin patterns."""
    principals = {plan.role_arn for plan in environments}
    principals.update(
        render_principal_patterns(
            settings.trusted_principals,
            account_id=management_account_id,
            management_account_id=management_account_id,
        )
    )
    return sorted(principals)


def compose_plan(
    settings: StackSettings,
    accounts: Iterable[AccountLike],
    management_account_id: str,
) -> StackPlan:
    validate_settings(settings)
    resolved, skipped = resolve_environments(accounts, settings.effective_prefix, settings.environments)

    environments = [plan_environment(settings, environment, management_account_id) for environment in resolved]
    principals = storage_principals(settings, environments, management_account_id)

    bucket_policy = ResourcePolicyBuilder("s3").build(state_bucket_arn(settings.bucket_name), principals)
    table_policy = ResourcePolicyBuilder("dynamodb").build(
        lock_table_arn(settings.region, management_account_id, settings.table_name),
        principals,
    )
    logger.info(
        "composed plan project=%s environments=%d skipped=%d",
        settings.project_name,
        len(environments),
        len(skipped),
    )
    return StackPlan(
        project=settings.project_name,
        region=settings.region,
        management_account_id=management_account_id,
        state_bucket=settings.bucket_name,
        lock_table=settings.table_name,
        environments=environments,
        skipped=skipped,
        bucket_policy=bucket_policy,
        lock_table_policy=table_policy,
    )


def environment_document(plan: StackPlan, environment: str, kind: str) -> PolicyDoc | None:
    """Pick one of an environment's documents (``trust``, ``permissions`` or ``state-access``)."""
    target = plan.environment(environment)
    if target is None:
        return None
    if kind == "trust":
        return target.trust_policy
    if kind == "permissions":
        return target.permission_policy
    if kind == "state-access":
        return target.state_policy
    raise ValueError(f"Unknown document kind: {kind}")


__all__ = ["compose_plan", "environment_document", "plan_environment", "role_arn", "storage_principals"]
