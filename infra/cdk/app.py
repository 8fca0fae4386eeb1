"""AWS CDK app provisioning a composed StackPlan."""

from __future__ import annotations

import os
from pathlib import Path

from aws_cdk import App, Environment, Stack
from aws_cdk import aws_dynamodb as dynamodb
from aws_cdk import aws_iam as iam
from aws_cdk import aws_s3 as s3

from core.accounts.inventory import load_accounts_file
from core.config import load_stack_settings
from core.models import EnvironmentPlan, StackPlan
from core.plan import compose_plan


class StateBackendStack(Stack):
    """State bucket and lock table in the management account."""

    def __init__(self, scope: App, construct_id: str, *, plan: StackPlan, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        bucket = s3.CfnBucket(
            self,
            "StateBucket",
            bucket_name=plan.state_bucket,
            versioning_configuration=s3.CfnBucket.VersioningConfigurationProperty(status="Enabled"),
            bucket_encryption=s3.CfnBucket.BucketEncryptionProperty(
                server_side_encryption_configuration=[
                    s3.CfnBucket.ServerSideEncryptionRuleProperty(
                        server_side_encryption_by_default=s3.CfnBucket.ServerSideEncryptionByDefaultProperty(
                            sse_algorithm="AES256"
                        )
                    )
                ]
            ),
        )
        if plan.bucket_policy is not None:
            s3.CfnBucketPolicy(
                self,
                "StateBucketPolicy",
                bucket=bucket.ref,
                policy_document=plan.bucket_policy.to_document(),
            )

        table_kwargs = {}
        if plan.lock_table_policy is not None:
            table_kwargs["resource_policy"] = dynamodb.CfnTable.ResourcePolicyProperty(
                policy_document=plan.lock_table_policy.to_document()
            )
        dynamodb.CfnTable(
            self,
            "LockTable",
            table_name=plan.lock_table,
            billing_mode="PAY_PER_REQUEST",
            key_schema=[dynamodb.CfnTable.KeySchemaProperty(attribute_name="LockID", key_type="HASH")],
            attribute_definitions=[
                dynamodb.CfnTable.AttributeDefinitionProperty(attribute_name="LockID", attribute_type="S")
            ],
            **table_kwargs,
        )


class ExecutionRoleStack(Stack):
    """One environment's execution role, deployed into that environment's account."""

    def __init__(self, scope: App, construct_id: str, *, environment: EnvironmentPlan, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)
        iam.CfnRole(
            self,
            "ExecutionRole",
            role_name=environment.role_name,
            assume_role_policy_document=environment.trust_policy.to_document(),
            max_session_duration=environment.max_session_duration,
            policies=[
                iam.CfnRole.PolicyProperty(
                    policy_name="permissions",
                    policy_document=environment.permission_policy.to_document(),
                ),
                iam.CfnRole.PolicyProperty(
                    policy_name="state-access",
                    policy_document=environment.state_policy.to_document(),
                ),
            ],
        )


def build_app(plan: StackPlan, app: App | None = None) -> App:
    app = app or App()
    StateBackendStack(
        app,
        f"{plan.project}-state-backend",
        plan=plan,
        env=Environment(account=plan.management_account_id, region=plan.region),
    )
    # Skipped environments simply get no stack.
    for environment in plan.environments:
        ExecutionRoleStack(
            app,
            f"{plan.project}-{environment.name}-execution-role",
            environment=environment,
            env=Environment(account=environment.account_id, region=plan.region),
        )
    return app


def main() -> None:
    settings = load_stack_settings(Path(os.getenv("ORGSTATE_CONFIG", "orgstate.yml")))
    accounts = load_accounts_file(Path(os.getenv("ORGSTATE_ACCOUNTS", "accounts.json")))
    management_account_id = settings.management_account_id or os.environ["CDK_DEFAULT_ACCOUNT"]
    plan = compose_plan(settings, accounts, management_account_id)
    build_app(plan).synth()


if __name__ == "__main__":
    main()
