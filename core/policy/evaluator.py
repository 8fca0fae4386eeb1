"""Evaluate generated documents against a request locally."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List

from core.constants import MFA_PRESENT_KEY, PRINCIPAL_ARN_KEY, REQUESTED_REGION_KEY, SECURE_TRANSPORT_KEY
from core.matching import account_of, action_matches, arn_like, string_like
from core.models import PolicyDoc, PolicyStatement

ALLOW = "Allow"
EXPLICIT_DENY = "ExplicitDeny"
IMPLICIT_DENY = "ImplicitDeny"


@dataclass
class RequestContext:
    principal_arn: str
    action: str
    resource: str = "*"
    secure_transport: bool = True
    region: str | None = None
    mfa_present: bool | None = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def values(self) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            PRINCIPAL_ARN_KEY: self.principal_arn,
            SECURE_TRANSPORT_KEY: "true" if self.secure_transport else "false",
        }
        if self.region:
            context[REQUESTED_REGION_KEY] = self.region
        if self.mfa_present is not None:
            context[MFA_PRESENT_KEY] = "true" if self.mfa_present else "false"
        context.update(self.extra)
        return context


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value]
    return [str(value)]


def _string_like(actual: List[str], expected: List[str]) -> bool:
    return any(string_like(value, pattern) for value in actual for pattern in expected)


def _string_equals(actual: List[str], expected: List[str]) -> bool:
    return any(value in expected for value in actual)


def _arn_like(actual: List[str], expected: List[str]) -> bool:
    return any(arn_like(value, pattern) for value in actual for pattern in expected)


def _bool(actual: List[str], expected: List[str]) -> bool:
    wanted = {item.lower() for item in expected}
    return any(value.lower() in wanted for value in actual)


def _for_all_string_like(actual: List[str], expected: List[str]) -> bool:
    return all(any(string_like(value, pattern) for pattern in expected) for value in actual)


OPERATORS: Dict[str, Callable[[List[str], List[str]], bool]] = {
    "StringLike": _string_like,
    "StringEquals": _string_equals,
    "ArnLike": _arn_like,
    "Bool": _bool,
    "ForAllValues:StringLike": _for_all_string_like,
}

# Operators that hold when the key is absent from the request.
_ABSENT_KEY_HOLDS = {"StringNotLike", "ForAllValues:StringLike"}


class PolicyEvaluator:
    """Decide Allow / ExplicitDeny / ImplicitDeny for one document and request.

    Every statement is considered; an explicit Deny wins regardless of order.
    """

    def evaluate(self, policy: PolicyDoc, request: RequestContext) -> str:
        context = request.values()
        allowed = False
        for statement in policy.statements:
            if not self._statement_applies(statement, request, context):
                continue
            if statement.effect == "Deny":
                return EXPLICIT_DENY
            if statement.effect == "Allow":
                allowed = True
        return ALLOW if allowed else IMPLICIT_DENY

    def evaluate_many(self, policy: PolicyDoc, requests: Iterable[RequestContext]) -> list[dict[str, Any]]:
        return [
            {
                "principal": request.principal_arn,
                "action": request.action,
                "resource": request.resource,
                "decision": self.evaluate(policy, request),
            }
            for request in requests
        ]

    def compare(self, before: PolicyDoc, after: PolicyDoc, requests: Iterable[RequestContext]) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for request in requests:
            rows.append(
                {
                    "principal": request.principal_arn,
                    "action": request.action,
                    "resource": request.resource,
                    "before": self.evaluate(before, request),
                    "after": self.evaluate(after, request),
                }
            )
        return rows

    # ------------------------------------------------------------------
    def _statement_applies(self, statement: PolicyStatement, request: RequestContext, context: Dict[str, Any]) -> bool:
        if not self._principal_matches(statement.principal, request.principal_arn):
            return False
        if statement.actions and not any(action_matches(request.action, pattern) for pattern in statement.actions):
            return False
        if statement.not_actions and any(action_matches(request.action, pattern) for pattern in statement.not_actions):
            return False
        if statement.resources and not any(string_like(request.resource, pattern) for pattern in statement.resources):
            return False
        return self._conditions_hold(statement.conditions, context)

    @staticmethod
    def _principal_matches(principal: Any, principal_arn: str) -> bool:
        if principal is None or principal == "*":
            return True
        if not isinstance(principal, dict):
            return False
        for values in principal.values():
            for entry in _as_list(values):
                if entry == "*" or entry == principal_arn:
                    return True
                if entry.endswith(":root") and account_of(entry) == account_of(principal_arn):
                    return True
        return False

    @staticmethod
    def _conditions_hold(conditions: Dict[str, Any], context: Dict[str, Any]) -> bool:
        for operator, entries in conditions.items():
            for key, expected in entries.items():
                if key not in context:
                    if operator in _ABSENT_KEY_HOLDS:
                        continue
                    return False
                actual = _as_list(context[key])
                if operator == "StringNotLike":
                    if _string_like(actual, _as_list(expected)):
                        return False
                    continue
                check = OPERATORS.get(operator)
                if check is None or not check(actual, _as_list(expected)):
                    return False
        return True


__all__ = ["ALLOW", "EXPLICIT_DENY", "IMPLICIT_DENY", "PolicyEvaluator", "RequestContext"]
