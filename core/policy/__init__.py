"""Policy document builders."""

from .diff import PolicyDiff
from .evaluator import PolicyEvaluator, RequestContext
from .permissions import PermissionSetComposer, compose_permissions
from .resource import ResourcePolicyBuilder
from .state_access import StateAccessBuilder
from .trust import TrustPolicyBuilder

__all__ = [
    "PermissionSetComposer",
    "PolicyDiff",
    "PolicyEvaluator",
    "RequestContext",
    "ResourcePolicyBuilder",
    "StateAccessBuilder",
    "TrustPolicyBuilder",
    "compose_permissions",
]
