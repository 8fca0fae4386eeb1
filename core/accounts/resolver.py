"""Map organization accounts onto deployment environments."""

from __future__ import annotations

import logging
import warnings
from typing import Iterable, Mapping, Sequence, Tuple, Union

from core.errors import ConfigurationValidationError, ResolutionGapWarning
from core.models import AccountRecord, Environment

logger = logging.getLogger(__name__)

AccountLike = Union[AccountRecord, Tuple[str, str], Mapping[str, str]]


def resolve_accounts(
    accounts: Iterable[AccountLike],
    prefix: str,
    environments: Iterable[str],
) -> dict[str, str]:
    """Return ``{environment: account_id}`` for accounts named ``<prefix><environment>``.

    Accounts without the prefix are ignored even when the bare name equals an
    environment, so another project's ``dev`` account never leaks in.
    """
    recognized = set(environments)
    resolved: dict[str, str] = {}
    for account in accounts:
        record = _coerce(account)
        if not record.name.startswith(prefix):
            continue
        suffix = record.name[len(prefix):]
        if suffix not in recognized:
            continue
        existing = resolved.get(suffix)
        if existing is not None and existing != record.id:
            raise ConfigurationValidationError(
                "accounts",
                record.name,
                message=f"accounts: '{record.name}' resolves to both {existing} and {record.id}",
            )
        resolved[suffix] = record.id
    return dict(sorted(resolved.items()))


def find_resolution_gaps(resolved: Mapping[str, str], environments: Iterable[str], prefix: str = "") -> list[str]:
    """Return configured environments with no account, warning once per gap."""
    gaps = [name for name in environments if name not in resolved]
    for name in gaps:
        warning = ResolutionGapWarning(name, prefix)
        logger.warning("%s", warning)
        warnings.warn(warning, stacklevel=2)
    return gaps


def resolve_environments(
    accounts: Iterable[AccountLike],
    prefix: str,
    environments: Sequence[str],
) -> tuple[list[Environment], list[str]]:
    """Resolve accounts and split configured environments into resolved and skipped."""
    resolved = resolve_accounts(accounts, prefix, environments)
    gaps = find_resolution_gaps(resolved, environments, prefix)
    found = [Environment(name=name, account_id=resolved[name]) for name in environments if name in resolved]
    logger.debug("resolved environments=%s skipped=%s", [env.name for env in found], gaps)
    return found, gaps


def _coerce(account: AccountLike) -> AccountRecord:
    if isinstance(account, AccountRecord):
        return account
    if isinstance(account, tuple):
        name, account_id = account
        return AccountRecord(name=name, id=str(account_id))
    return AccountRecord.model_validate(dict(account))


__all__ = ["find_resolution_gaps", "resolve_accounts", "resolve_environments"]
