"""Common constants shared across orgstate modules."""

RECOGNIZED_ENVIRONMENTS = ("dev", "stage", "prod", "management")

# Environments that must run with the same permission mode.
MIRRORED_ENVIRONMENTS = ("stage", "prod")

PERMISSION_MODES = ("broad", "hardened", "custom")

MIN_SESSION_DURATION = 3600
MAX_SESSION_DURATION = 43200

SSO_ADMIN_PRINCIPAL = "arn:aws:iam::{management_account_id}:role/aws-reserved/sso.amazonaws.com/*"

PRINCIPAL_ARN_KEY = "aws:PrincipalArn"
SECURE_TRANSPORT_KEY = "aws:SecureTransport"
REQUESTED_REGION_KEY = "aws:RequestedRegion"
MFA_PRESENT_KEY = "aws:MultiFactorAuthPresent"

STATE_BUCKET_ACTIONS = [
    "s3:DeleteObject",
    "s3:GetObject",
    "s3:ListBucket",
    "s3:PutObject",
]

LOCK_TABLE_ACTIONS = [
    "dynamodb:DeleteItem",
    "dynamodb:DescribeTable",
    "dynamodb:GetItem",
    "dynamodb:PutItem",
]

IAM_WRITE_PATTERNS = (
    "iam:*Put*",
    "iam:*Create*",
    "iam:*Delete*",
    "iam:*Attach*",
    "iam:Detach*",
    "iam:Update*",
    "iam:Add*",
    "iam:Remove*",
    "iam:Tag*",
    "iam:Untag*",
    "iam:Upload*",
    "iam:Set*",
    "iam:Enable*",
    "iam:Deactivate*",
    "iam:Resync*",
    "iam:Reset*",
    "iam:Change*",
    "iam:Generate*",
    "iam:PassRole",
)

# Verbs of the IAM actions that only read; every other literal IAM action mutates.
IAM_READ_VERBS = ("get", "list", "simulate")

# Representative mutations; a wildcard that covers any of these grants IAM write.
IAM_WRITE_ACTIONS = (
    "iam:AddRoleToInstanceProfile",
    "iam:AddUserToGroup",
    "iam:AttachGroupPolicy",
    "iam:AttachRolePolicy",
    "iam:AttachUserPolicy",
    "iam:ChangePassword",
    "iam:CreateAccessKey",
    "iam:CreatePolicy",
    "iam:CreatePolicyVersion",
    "iam:CreateRole",
    "iam:CreateServiceLinkedRole",
    "iam:CreateUser",
    "iam:DeactivateMFADevice",
    "iam:DeletePolicy",
    "iam:DeleteRole",
    "iam:DeleteRolePermissionsBoundary",
    "iam:DeleteRolePolicy",
    "iam:DeleteUser",
    "iam:DetachRolePolicy",
    "iam:EnableMFADevice",
    "iam:GenerateCredentialReport",
    "iam:PassRole",
    "iam:PutGroupPolicy",
    "iam:PutRolePermissionsBoundary",
    "iam:PutRolePolicy",
    "iam:PutUserPolicy",
    "iam:RemoveRoleFromInstanceProfile",
    "iam:ResetServiceSpecificCredential",
    "iam:ResyncMFADevice",
    "iam:SetDefaultPolicyVersion",
    "iam:TagRole",
    "iam:UntagRole",
    "iam:UpdateAssumeRolePolicy",
    "iam:UpdateLoginProfile",
    "iam:UpdateRole",
    "iam:UploadSSHPublicKey",
)

HIGH_RISK_SERVICES = {"iam", "kms", "organizations", "sts"}
