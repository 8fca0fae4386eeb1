"""Compare two permission documents, e.g. the same role under two modes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from core.constants import HIGH_RISK_SERVICES
from core.matching import grants_iam_write
from core.models import PolicyDoc


@dataclass(slots=True)
class PolicyDiff:
    before: PolicyDoc
    after: PolicyDoc

    def statement_delta(self) -> int:
        return len(self.after.statements) - len(self.before.statements)

    def allowed_action_delta(self) -> int:
        return self._count_actions(self.after) - self._count_actions(self.before)

    def resource_reduction_ratio(self) -> float:
        before_resources = self._count_wildcard_resources(self.before)
        after_resources = self._count_wildcard_resources(self.after)
        if before_resources == 0:
            return 0.0
        reduction = before_resources - after_resources
        return max(reduction / before_resources, 0.0)

    def high_risk_reduction(self) -> int:
        return self._high_risk(self.before) - self._high_risk(self.after)

    def as_json(self) -> dict[str, Any]:
        return {
            "statementDelta": self.statement_delta(),
            "allowedActionDelta": self.allowed_action_delta(),
            "wildcardResourceReduction": self.resource_reduction_ratio(),
            "highRiskServiceReduction": self.high_risk_reduction(),
            "notActionStatementsBefore": self._count_not_action(self.before),
            "notActionStatementsAfter": self._count_not_action(self.after),
            "iamWriteGrantsBefore": self._count_iam_write(self.before),
            "iamWriteGrantsAfter": self._count_iam_write(self.after),
            "servicesAdded": sorted(set(self.after.services) - set(self.before.services)),
            "servicesRemoved": sorted(set(self.before.services) - set(self.after.services)),
        }

    def as_markdown(self, top_n: int = 5) -> str:
        lines = ["| Metric | Value |", "| --- | --- |"]
        for key, value in self.as_json().items():
            lines.append(f"| {key} | {value} |")
        top_changes = self._top_service_changes(top_n)
        if top_changes:
            lines.append("\n**Top Reductions**")
            lines.append("| Service | Before Actions | After Actions |")
            lines.append("| --- | --- | --- |")
            for service, before_count, after_count in top_changes:
                lines.append(f"| {service} | {before_count} | {after_count} |")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    @staticmethod
    def _allow_statements(policy: PolicyDoc):
        return [statement for statement in policy.statements if statement.effect == "Allow"]

    @classmethod
    def _count_actions(cls, policy: PolicyDoc) -> int:
        return sum(len(statement.actions) for statement in cls._allow_statements(policy))

    @classmethod
    def _count_wildcard_resources(cls, policy: PolicyDoc) -> int:
        return sum(
            1
            for statement in cls._allow_statements(policy)
            for resource in statement.resources
            if resource == "*"
        )

    @classmethod
    def _count_not_action(cls, policy: PolicyDoc) -> int:
        return sum(1 for statement in cls._allow_statements(policy) if statement.not_actions)

    @classmethod
    def _count_iam_write(cls, policy: PolicyDoc) -> int:
        return sum(
            1 for statement in cls._allow_statements(policy) for action in statement.actions if grants_iam_write(action)
        )

    @classmethod
    def _high_risk(cls, policy: PolicyDoc) -> int:
        total = 0
        for statement in cls._allow_statements(policy):
            for action in statement.actions:
                if action.split(":", 1)[0] in HIGH_RISK_SERVICES:
                    total += 1
        return total

    def _top_service_changes(self, limit: int) -> List[tuple[str, int, int]]:
        before_counts = self._service_counts(self.before)
        after_counts = self._service_counts(self.after)
        entries: List[tuple[str, int, int]] = []
        for service in set(before_counts) | set(after_counts):
            before = before_counts.get(service, 0)
            after = after_counts.get(service, 0)
            if before > after:
                entries.append((service, before, after))
        entries.sort(key=lambda item: item[0])
        return entries[:limit]

    @classmethod
    def _service_counts(cls, policy: PolicyDoc) -> dict[str, int]:
        counts: dict[str, int] = {}
        for statement in cls._allow_statements(policy):
            for action in statement.actions:
                service = action.split(":", 1)[0]
                counts[service] = counts.get(service, 0) + 1
        return counts


__all__ = ["PolicyDiff"]
