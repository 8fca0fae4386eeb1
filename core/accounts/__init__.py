"""Account inventory and environment resolution."""

from .inventory import OrganizationInventory, caller_account_id, load_accounts_file
from .resolver import find_resolution_gaps, resolve_accounts, resolve_environments

__all__ = [
    "OrganizationInventory",
    "caller_account_id",
    "find_resolution_gaps",
    "load_accounts_file",
    "resolve_accounts",
    "resolve_environments",
]
