"""Synthesis tests for the CDK adapter."""

import pytest

pytest.importorskip("aws_cdk")

from aws_cdk import App  # noqa: E402
from aws_cdk.assertions import Match, Template  # noqa: E402

from core.config import StackSettings  # noqa: E402
from core.plan import compose_plan  # noqa: E402
from infra.cdk.app import build_app  # noqa: E402

ACCOUNTS = [("proj-dev", "111111111111"), ("proj-prod", "333333333333")]


@pytest.fixture
def synthesized():
    settings = StackSettings.from_mapping({"project_name": "proj", "environments": ["dev", "stage", "prod"]})
    plan = compose_plan(settings, ACCOUNTS, "999999999999")
    return build_app(plan, App())


def test_state_backend_stack(synthesized):
    template = Template.from_stack(synthesized.node.find_child("proj-state-backend"))
    template.resource_count_is("AWS::S3::Bucket", 1)
    template.resource_count_is("AWS::S3::BucketPolicy", 1)
    template.resource_count_is("AWS::DynamoDB::Table", 1)
    template.has_resource_properties(
        "AWS::DynamoDB::Table",
        {"TableName": "proj-terraform-locks", "BillingMode": "PAY_PER_REQUEST"},
    )


def test_execution_role_stacks_skip_unresolved_environments(synthesized):
    names = sorted(child.node.id for child in synthesized.node.children)
    assert names == ["proj-dev-execution-role", "proj-prod-execution-role", "proj-state-backend"]

    template = Template.from_stack(synthesized.node.find_child("proj-dev-execution-role"))
    template.resource_count_is("AWS::IAM::Role", 1)
    template.has_resource_properties(
        "AWS::IAM::Role",
        {
            "RoleName": "proj-terraform-execution",
            "Policies": Match.array_with([Match.object_like({"PolicyName": "state-access"})]),
        },
    )
