"""Execution-role access to its own subtree of the shared remote state."""

from __future__ import annotations

from core.errors import ConfigurationValidationError
from core.models import PolicyDoc, PolicyStatement
from core.policy.resource import lock_table_arn, state_bucket_arn


def key_prefix_for(environment: str) -> str:
    return f"{environment}/"


class StateAccessBuilder:
    def __init__(self, bucket: str, lock_table: str, region: str, state_account_id: str) -> None:
        self.bucket = bucket
        self.lock_table = lock_table
        self.region = region
        self.state_account_id = state_account_id

    def build(self, key_prefix: str) -> PolicyDoc:
        if not key_prefix or not key_prefix.endswith("/") or key_prefix == "/":
            raise ConfigurationValidationError("key_prefix", key_prefix, "a non-empty path ending in '/'")

        bucket_arn = state_bucket_arn(self.bucket)
        statements = [
            PolicyStatement(  # type: ignore[arg-type]
                sid="StateBucketList",
                effect="Allow",
                actions=["s3:ListBucket"],
                resources=[bucket_arn],
                conditions={"StringLike": {"s3:prefix": [f"{key_prefix}*"]}},
            ),
            PolicyStatement(  # type: ignore[arg-type]
                sid="StateObjectAccess",
                effect="Allow",
                actions=["s3:DeleteObject", "s3:GetObject", "s3:PutObject"],
                resources=[f"{bucket_arn}/{key_prefix}*"],
            ),
            PolicyStatement(  # type: ignore[arg-type]
                sid="StateLock",
                effect="Allow",
                actions=[
                    "dynamodb:DeleteItem",
                    "dynamodb:DescribeTable",
                    "dynamodb:GetItem",
                    "dynamodb:PutItem",
                ],
                resources=[lock_table_arn(self.region, self.state_account_id, self.lock_table)],
                # Lock ids are "<bucket>/<key>" and "<bucket>/<key>-md5".
                conditions={"ForAllValues:StringLike": {"dynamodb:LeadingKeys": [f"{self.bucket}/{key_prefix}*"]}},
            ),
        ]
        return PolicyDoc(statements=statements)  # type: ignore[arg-type]


__all__ = ["StateAccessBuilder", "key_prefix_for"]
