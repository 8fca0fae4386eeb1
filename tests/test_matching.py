"""String-like and ARN-like matching tests."""

import pytest

from core.matching import account_of, arn_like, grants_iam_write, string_like

SSO_PATTERN = "arn:aws:iam::123:role/aws-reserved/sso.amazonaws.com/*"


def test_string_like_matches_sso_role_in_same_account():
    assert string_like("arn:aws:iam::123:role/aws-reserved/sso.amazonaws.com/AWSReservedSSO_Admin_abc123", SSO_PATTERN)


def test_string_like_rejects_other_account():
    assert not string_like("arn:aws:iam::999:role/aws-reserved/sso.amazonaws.com/x", SSO_PATTERN)


def test_string_like_exact_arn_without_wildcards():
    arn = "arn:aws:iam::123:role/deploy"
    assert string_like(arn, arn)
    assert not string_like(arn + "-extra", arn)


def test_question_mark_matches_single_character():
    assert string_like("dev1", "dev?")
    assert not string_like("dev12", "dev?")
    assert not string_like("dev", "dev?")


def test_regex_characters_are_literal():
    assert string_like("a.b+c", "a.b+c")
    assert not string_like("axb+c", "a.b+c")
    assert not string_like("a", "[a]")


def test_string_like_is_case_sensitive_by_default():
    assert not string_like("ARN:AWS", "arn:aws")
    assert string_like("ARN:AWS", "arn:aws", case_sensitive=False)


def test_arn_like_compares_fields():
    assert arn_like("arn:aws:iam::123456789012:role/path/name", "arn:aws:iam::*:role/*")
    assert not arn_like("arn:aws:iam::123456789012:user/alice", "arn:aws:iam::*:role/*")
    assert not arn_like("not-an-arn", "arn:*:*:*:*:*")


def test_account_of():
    assert account_of("arn:aws:iam::123456789012:root") == "123456789012"
    assert account_of("garbage") is None


@pytest.mark.parametrize(
    "action",
    ["iam:PutRolePolicy", "iam:CreateRole", "iam:DeleteUser", "iam:AttachRolePolicy", "iam:PassRole", "iam:*", "*", "i*:*", "IAM:createrole",
     "iam:ChangePassword", "iam:EnableMFADevice", "iam:DeactivateMFADevice", "iam:ResyncMFADevice",
     "iam:ResetServiceSpecificCredential", "iam:Enable*", "iam:Ch*", "iam:AddClientIDToOpenIDConnectProvider"],
)
def test_grants_iam_write_detects_mutations(action):
    assert grants_iam_write(action)


@pytest.mark.parametrize("action", ["iam:Get*", "iam:List*", "iam:GetRole", "iam:ListRoleTags", "iam:SimulatePrincipalPolicy", "ec2:CreateTags", "s3:*", "logs:DeleteLogGroup"])
def test_grants_iam_write_allows_reads_and_other_services(action):
    assert not grants_iam_write(action)
