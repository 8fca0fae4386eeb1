"""Permission set composer tests."""

import pytest

from core.errors import ConfigurationValidationError
from core.matching import string_like
from core.models import PermissionMode, PolicyDoc
from core.policy.evaluator import ALLOW, IMPLICIT_DENY, PolicyEvaluator, RequestContext
from core.policy.permissions import PermissionSetComposer, compose_permissions

FORBIDDEN_IAM_PATTERNS = ["iam:*Put*", "iam:*Create*", "iam:*Delete*", "iam:*Attach*"]

READ_PARAMS = {
    "sid": "ReadParameters",
    "effect": "Allow",
    "actions": ["ssm:GetParameter", "ssm:GetParameters"],
    "resources": ["arn:aws:ssm:us-east-1:111111111111:parameter/app/*"],
}


def _iam_write_actions(policy: PolicyDoc) -> list[str]:
    return [
        action
        for statement in policy.statements
        for action in statement.actions
        if any(string_like(action, pattern, case_sensitive=False) for pattern in FORBIDDEN_IAM_PATTERNS)
    ]


@pytest.mark.parametrize("mode", ["broad", "hardened"])
def test_base_modes_never_grant_iam_write(mode):
    policy = compose_permissions(mode, "us-east-1", "111111111111")
    assert _iam_write_actions(policy) == []


def test_custom_mode_never_grants_iam_write():
    policy = compose_permissions("custom", "us-east-1", "111111111111", [READ_PARAMS])
    assert _iam_write_actions(policy) == []


def test_broad_mode_excludes_iam_and_pins_region():
    policy = compose_permissions(PermissionMode.BROAD, "eu-west-1", "111111111111")
    broad = policy.statements[0]
    assert broad.sid == "BroadServiceAccess"
    assert broad.actions == []
    assert "iam:*" in broad.not_actions
    assert "organizations:*" in broad.not_actions
    for statement in policy.statements:
        assert statement.conditions["StringEquals"]["aws:RequestedRegion"] == "eu-west-1"


def test_broad_document_uses_not_action_member():
    document = compose_permissions("broad", "us-east-1", "111111111111").to_document()
    first = document["Statement"][0]
    assert "Action" not in first
    assert first["NotAction"] == ["account:*", "iam:*", "organizations:*"]


def test_hardened_mode_fixed_statement_set():
    policy = compose_permissions("hardened", "us-east-1", "111111111111")
    assert [statement.sid for statement in policy.statements] == [
        "ComputeLifecycle",
        "ContainerLifecycle",
        "IamReadOnly",
        "Logging",
        "Tagging",
        "QuotaRead",
    ]
    logging_statement = policy.statements[3]
    assert logging_statement.resources == ["arn:aws:logs:us-east-1:111111111111:log-group:*"]
    assert all(s.conditions == {"StringEquals": {"aws:RequestedRegion": "us-east-1"}} for s in policy.statements)


def test_hardened_documents_for_stage_and_prod_differ_only_by_account():
    stage = compose_permissions("hardened", "us-east-1", "222222222222").to_json()
    prod = compose_permissions("hardened", "us-east-1", "333333333333").to_json()
    assert stage.replace("222222222222", "333333333333") == prod


def test_custom_mode_is_exactly_the_extra_statements():
    policy = compose_permissions("custom", "us-east-1", "111111111111", [READ_PARAMS])
    assert policy.to_document()["Statement"] == [
        {
            "Sid": "ReadParameters",
            "Effect": "Allow",
            "Action": ["ssm:GetParameter", "ssm:GetParameters"],
            "Resource": ["arn:aws:ssm:us-east-1:111111111111:parameter/app/*"],
        }
    ]


def test_custom_mode_requires_extra_statements():
    with pytest.raises(ConfigurationValidationError, match="additional_permissions"):
        PermissionSetComposer("custom", "us-east-1", "111111111111")


def test_extra_statements_inherit_region_condition_in_hardened_mode():
    extra = {**READ_PARAMS, "conditions": {"StringLike": {"ssm:resourceTag/team": ["platform*"]}}}
    policy = compose_permissions("hardened", "us-east-1", "111111111111", [extra])
    appended = policy.statements[-1]
    assert appended.sid == "ReadParameters"
    assert appended.conditions == {
        "StringLike": {"ssm:resourceTag/team": ["platform*"]},
        "StringEquals": {"aws:RequestedRegion": "us-east-1"},
    }


def test_extra_statements_are_not_mutated():
    extra = {**READ_PARAMS, "conditions": {"StringEquals": {"aws:RequestedRegion": "eu-west-1"}}}
    composer = PermissionSetComposer("broad", "us-east-1", "111111111111", [extra])
    first = composer.build()
    second = composer.build()
    assert first.to_json() == second.to_json()
    assert extra["conditions"] == {"StringEquals": {"aws:RequestedRegion": "eu-west-1"}}


@pytest.mark.parametrize("mode", ["broad", "hardened"])
def test_extra_statement_region_is_replaced_by_mode_region(mode):
    extra = {**READ_PARAMS, "resources": ["*"], "conditions": {"StringEquals": {"aws:RequestedRegion": "eu-west-1"}}}
    policy = compose_permissions(mode, "us-east-1", "111111111111", [extra])
    assert policy.statements[-1].conditions == {"StringEquals": {"aws:RequestedRegion": "us-east-1"}}

    evaluator = PolicyEvaluator()
    principal = "arn:aws:iam::111111111111:role/proj-terraform-execution"
    elsewhere = RequestContext(principal_arn=principal, action="ssm:GetParameter", resource="x", region="eu-west-1")
    at_home = RequestContext(principal_arn=principal, action="ssm:GetParameter", resource="x", region="us-east-1")
    assert evaluator.evaluate(policy, elsewhere) == IMPLICIT_DENY
    assert evaluator.evaluate(policy, at_home) == ALLOW


def test_invalid_mode_names_field_and_allowed_set():
    with pytest.raises(ConfigurationValidationError) as excinfo:
        PermissionSetComposer("admin", "us-east-1", "111111111111")
    assert excinfo.value.field == "permissions_mode"
    assert "broad, hardened, custom" in str(excinfo.value)


@pytest.mark.parametrize(
    "statement",
    [
        {"effect": "Allow", "actions": ["iam:CreateRole"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["*"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:*"], "resources": ["*"]},
        {"effect": "Deny", "actions": ["iam:PutRolePolicy"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:ChangePassword"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:EnableMFADevice"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:DeactivateMFADevice"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:ResetServiceSpecificCredential"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:Enable*"], "resources": ["*"]},
        {"effect": "Allow", "actions": ["iam:Ch*"], "resources": ["*"]},
    ],
)
def test_extra_statements_granting_iam_write_are_rejected(statement):
    with pytest.raises(ConfigurationValidationError, match="IAM write"):
        compose_permissions("custom", "us-east-1", "111111111111", [statement])


@pytest.mark.parametrize(
    "statement,field",
    [
        ({"actions": ["s3:GetObject"], "resources": ["*"]}, "additional_permissions[0]"),
        ({"effect": "", "actions": ["s3:GetObject"], "resources": ["*"]}, "additional_permissions[0].effect"),
        ({"effect": "Allow", "actions": [], "resources": ["*"]}, "additional_permissions[0].actions"),
        ({"effect": "Allow", "actions": ["s3:GetObject"]}, "additional_permissions[0].resources"),
        ({"effect": "Allow", "actions": ["s3:GetObject"], "resources": [""]}, "additional_permissions[0].resources"),
    ],
)
def test_extra_statements_need_effect_actions_and_resources(statement, field):
    with pytest.raises(ConfigurationValidationError) as excinfo:
        compose_permissions("custom", "us-east-1", "111111111111", [statement])
    assert excinfo.value.field == field


def test_composition_is_idempotent():
    first = compose_permissions("hardened", "us-east-1", "111111111111", [READ_PARAMS]).to_json()
    second = compose_permissions("hardened", "us-east-1", "111111111111", [READ_PARAMS]).to_json()
    assert first == second
