# tests/conftest.py
from datetime import datetime, timezone

import boto3
import pytest
from moto import mock_aws

from justlog.credentials import CredentialStore
from justlog.db import create_table
from justlog.entries import EntryStore
from justlog.profiles import ProfileStore
from justlog.tools import Tools

TABLE_NAME = "justlog-test"
REGION = "us-east-1"

# Fixed "now" for tool tests: 2026-02-05 12:00 UTC
NOW = datetime(2026, 2, 5, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def dynamodb(aws_credentials):
    with mock_aws():
        yield boto3.resource("dynamodb", region_name=REGION)


@pytest.fixture
def table(dynamodb):
    return create_table(dynamodb, TABLE_NAME)


@pytest.fixture
def credentials(table):
    return CredentialStore(table)


@pytest.fixture
def entries(table):
    return EntryStore(table)


@pytest.fixture
def profiles(table):
    return ProfileStore(table)


@pytest.fixture
def tools(credentials, entries, profiles):
    return Tools(credentials, entries, profiles, clock=lambda: NOW)


@pytest.fixture
def complete_profile(profiles):
    """Profile for u1 with every required field, so tools do not stop to ask."""
    profiles.update("u1", gender="female", height=168.0, activity_level="moderate")
    return "u1"


def all_items(table):
    response = table.scan()
    items = response.get("Items", [])
    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
        items.extend(response.get("Items", []))
    return items
