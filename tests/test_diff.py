"""Permission document comparison tests."""

from core.models import PolicyDoc, PolicyStatement
from core.policy.diff import PolicyDiff
from core.policy.permissions import compose_permissions


def test_broad_to_hardened_metrics():
    broad = compose_permissions("broad", "us-east-1", "111111111111")
    hardened = compose_permissions("hardened", "us-east-1", "111111111111")
    metrics = PolicyDiff(broad, hardened).as_json()
    assert metrics["statementDelta"] == 4
    assert metrics["notActionStatementsBefore"] == 1
    assert metrics["notActionStatementsAfter"] == 0
    assert metrics["servicesRemoved"] == ["account", "organizations"]
    assert "ecs" in metrics["servicesAdded"]
    assert metrics["highRiskServiceReduction"] == 0


def test_wildcard_resource_reduction():
    before = PolicyDoc(statements=[PolicyStatement(actions=["s3:GetObject"], resources=["*"]), PolicyStatement(actions=["sqs:SendMessage"], resources=["*"])])
    after = PolicyDoc(statements=[PolicyStatement(actions=["s3:GetObject"], resources=["arn:aws:s3:::b/*"]), PolicyStatement(actions=["sqs:SendMessage"], resources=["*"])])
    assert PolicyDiff(before, after).resource_reduction_ratio() == 0.5


def test_deny_statements_are_not_counted_as_grants():
    before = PolicyDoc(statements=[PolicyStatement(actions=["kms:Decrypt"], resources=["*"])])
    after = PolicyDoc(
        statements=[
            PolicyStatement(actions=["kms:Decrypt"], resources=["*"]),
            PolicyStatement(effect="Deny", actions=["kms:ScheduleKeyDeletion"], resources=["*"]),
        ]
    )
    diff = PolicyDiff(before, after)
    assert diff.allowed_action_delta() == 0
    assert diff.high_risk_reduction() == 0


def test_markdown_lists_top_reductions():
    before = PolicyDoc(statements=[PolicyStatement(actions=["sts:AssumeRole", "s3:GetObject"], resources=["*"])])
    after = PolicyDoc(statements=[PolicyStatement(actions=["s3:GetObject"], resources=["*"])])
    markdown = PolicyDiff(before, after).as_markdown()
    assert "| highRiskServiceReduction | 1 |" in markdown
    assert "| sts | 1 | 0 |" in markdown


def test_iam_write_grants_are_counted():
    before = PolicyDoc(statements=[PolicyStatement(actions=["iam:*"], resources=["*"])])
    after = PolicyDoc(statements=[PolicyStatement(actions=["iam:GetRole", "iam:ListRoleTags"], resources=["*"])])
    metrics = PolicyDiff(before, after).as_json()
    assert metrics["iamWriteGrantsBefore"] == 1
    assert metrics["iamWriteGrantsAfter"] == 0
