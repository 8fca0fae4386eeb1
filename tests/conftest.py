"""Shared pytest fixtures for orgstate tests."""

import pytest

from core.config import StackSettings
from core.models import AccountRecord

MANAGEMENT_ACCOUNT = "999999999999"
DEV_ACCOUNT = "111111111111"
STAGE_ACCOUNT = "222222222222"
PROD_ACCOUNT = "333333333333"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Prevent accidental real AWS calls by setting fake credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def org_accounts():
    return [
        AccountRecord(name="proj-management", id=MANAGEMENT_ACCOUNT),
        AccountRecord(name="proj-dev", id=DEV_ACCOUNT),
        AccountRecord(name="proj-stage", id=STAGE_ACCOUNT),
        AccountRecord(name="proj-prod", id=PROD_ACCOUNT),
        AccountRecord(name="dev", id="444444444444"),
        AccountRecord(name="other-prod", id="555555555555"),
    ]


@pytest.fixture
def stack_settings():
    return StackSettings.from_mapping(
        {
            "project_name": "proj",
            "region": "us-east-1",
            "environments": ["dev", "stage", "prod"],
            "permissions_mode": "hardened",
            "environment_modes": {"dev": "broad"},
            "management_account_id": MANAGEMENT_ACCOUNT,
        }
    )
