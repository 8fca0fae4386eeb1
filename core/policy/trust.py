"""Assume-role trust documents for execution roles."""

from __future__ import annotations

from typing import Iterable

from core.constants import MFA_PRESENT_KEY, PRINCIPAL_ARN_KEY
from core.errors import ConfigurationValidationError
from core.matching import account_of
from core.models import PolicyDoc, PolicyStatement


def render_principal_patterns(
    templates: Iterable[str],
    *,
    account_id: str,
    management_account_id: str,
) -> list[str]:
    """Expand ``{account_id}`` and ``{management_account_id}`` placeholders."""
    rendered: list[str] = []
    for template in templates:
        try:
            rendered.append(template.format(account_id=account_id, management_account_id=management_account_id))
        except (KeyError, IndexError, ValueError) as exc:
            raise ConfigurationValidationError(
                "trusted_principals",
                template,
                ("{account_id}", "{management_account_id}"),
                message=f"trusted_principals: unsupported placeholder in '{template}'",
            ) from exc
    return rendered


class TrustPolicyBuilder:
    """Compose the single Allow statement that says who may assume a role.

    Principal names minted by identity providers (SSO permission-set roles in
    particular) carry random suffixes, so patterns are matched with StringLike
    on ``aws:PrincipalArn``. The ``Principal`` element only names the owning
    accounts, which always exist.
    """

    def __init__(self, require_mfa: bool = False) -> None:
        self.require_mfa = require_mfa

    def build(self, principal_patterns: Iterable[str]) -> PolicyDoc:
        patterns = sorted({pattern for pattern in principal_patterns if pattern})
        if not patterns:
            raise ConfigurationValidationError(
                "trusted_principals", [], message="trusted_principals: at least one principal pattern is required"
            )

        conditions: dict[str, dict[str, object]] = {"StringLike": {PRINCIPAL_ARN_KEY: patterns}}
        if self.require_mfa:
            conditions["Bool"] = {MFA_PRESENT_KEY: "true"}

        statement = PolicyStatement(  # type: ignore[arg-type]
            sid="AllowAssumeRole",
            effect="Allow",
            principal={"AWS": self._account_principals(patterns)},
            actions=["sts:AssumeRole"],
            conditions=conditions,
        )
        return PolicyDoc(statements=[statement])  # type: ignore[arg-type]

    @staticmethod
    def _account_principals(patterns: list[str]) -> list[str] | str:
        accounts: set[str] = set()
        for pattern in patterns:
            account = account_of(pattern)
            if not account or "*" in account or "?" in account:
                return "*"
            accounts.add(account)
        return [f"arn:aws:iam::{account}:root" for account in sorted(accounts)]


__all__ = ["TrustPolicyBuilder", "render_principal_patterns"]
