"""Resource policy builder tests."""

import pytest

from core.errors import ConfigurationValidationError
from core.models import PolicyDoc
from core.policy.evaluator import ALLOW, EXPLICIT_DENY, IMPLICIT_DENY, PolicyEvaluator, RequestContext
from core.policy.resource import ResourcePolicyBuilder, lock_table_arn, state_bucket_arn

BUCKET_ARN = "arn:aws:s3:::proj-terraform-state"
DEV_ROLE = "arn:aws:iam::111111111111:role/proj-terraform-execution"
SSO_PATTERN = "arn:aws:iam::999999999999:role/aws-reserved/sso.amazonaws.com/*"


def _bucket_policy() -> PolicyDoc:
    return ResourcePolicyBuilder("s3").build(BUCKET_ARN, [DEV_ROLE, SSO_PATTERN])


def _get(principal: str, secure: bool = True) -> RequestContext:
    return RequestContext(
        principal_arn=principal,
        action="s3:GetObject",
        resource=f"{BUCKET_ARN}/dev/terraform.tfstate",
        secure_transport=secure,
    )


def test_bucket_policy_has_one_allow_and_one_tls_deny():
    policy = _bucket_policy()
    allows = [s for s in policy.statements if s.effect == "Allow"]
    denies = [s for s in policy.statements if s.effect == "Deny"]
    assert len(allows) == 1 and len(denies) == 1
    assert denies[0].sid == "EnforceTLS"
    assert denies[0].conditions == {"Bool": {"aws:SecureTransport": "false"}}
    assert denies[0].principal == "*"
    assert denies[0].actions == ["s3:*"]


def test_bucket_policy_allow_uses_wildcard_principal_with_arn_condition():
    allow = _bucket_policy().statements[0]
    assert allow.sid == "AllowAccess"
    assert allow.principal == {"AWS": "*"}
    assert allow.resources == [BUCKET_ARN, f"{BUCKET_ARN}/*"]
    assert allow.actions == ["s3:DeleteObject", "s3:GetObject", "s3:ListBucket", "s3:PutObject"]
    assert allow.conditions == {"StringLike": {"aws:PrincipalArn": [DEV_ROLE, SSO_PATTERN]}}


def test_bucket_policy_accepts_sub_resource_form():
    policy = ResourcePolicyBuilder("s3").build(f"{BUCKET_ARN}/*", [DEV_ROLE])
    assert policy.statements[0].resources == [BUCKET_ARN, f"{BUCKET_ARN}/*"]


def test_lock_table_policy_targets_table_only():
    table = lock_table_arn("us-east-1", "999999999999", "proj-terraform-locks")
    policy = ResourcePolicyBuilder("dynamodb").build(table, [DEV_ROLE])
    assert table == "arn:aws:dynamodb:us-east-1:999999999999:table/proj-terraform-locks"
    assert policy.statements[0].resources == [table]
    assert policy.statements[1].actions == ["dynamodb:*"]
    assert "dynamodb:PutItem" in policy.statements[0].actions


def test_bucket_policy_grants_allowed_principal_over_tls():
    evaluator = PolicyEvaluator()
    assert evaluator.evaluate(_bucket_policy(), _get(DEV_ROLE)) == ALLOW


def test_bucket_policy_denies_plain_http():
    evaluator = PolicyEvaluator()
    assert evaluator.evaluate(_bucket_policy(), _get(DEV_ROLE, secure=False)) == EXPLICIT_DENY


def test_bucket_policy_matches_sso_pattern_and_rejects_others():
    evaluator = PolicyEvaluator()
    sso_admin = "arn:aws:iam::999999999999:role/aws-reserved/sso.amazonaws.com/AWSReservedSSO_Admin_0a1b"
    stranger = "arn:aws:iam::555555555555:role/proj-terraform-execution"
    assert evaluator.evaluate(_bucket_policy(), _get(sso_admin)) == ALLOW
    assert evaluator.evaluate(_bucket_policy(), _get(stranger)) == IMPLICIT_DENY


def test_statement_order_does_not_change_decisions():
    policy = _bucket_policy()
    reversed_policy = PolicyDoc(statements=list(reversed(policy.statements)))
    evaluator = PolicyEvaluator()
    for request in (_get(DEV_ROLE), _get(DEV_ROLE, secure=False), _get("arn:aws:iam::1:role/x")):
        assert evaluator.evaluate(policy, request) == evaluator.evaluate(reversed_policy, request)


def test_resource_policy_requires_principals():
    with pytest.raises(ConfigurationValidationError):
        ResourcePolicyBuilder("s3").build(BUCKET_ARN, [])


def test_resource_policy_rejects_unknown_service():
    with pytest.raises(ValueError, match="service must be one of"):
        ResourcePolicyBuilder("sqs")


def test_state_bucket_arn():
    assert state_bucket_arn("proj-terraform-state") == BUCKET_ARN
