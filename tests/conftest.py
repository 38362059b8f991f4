# ABOUTME: Pytest fixtures and configuration for integrationcli tests
# ABOUTME: Provides isolated settings, an open client, and sample API resources

import os
from collections.abc import Iterator

import pytest
from pydantic import SecretStr

from integrationcli.config import ClientSettings
from integrationcli.utils.client import IntegrationClient
from integrationcli.utils.logging import configure_logging

PROJECT = "test-project"
REGION = "us-central1"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep INTEGRATIONCLI_* variables of the developer machine out of tests."""
    for key in list(os.environ):
        if key.startswith("INTEGRATIONCLI_"):
            monkeypatch.delenv(key, raising=False)
    configure_logging(level="WARNING")


@pytest.fixture
def settings() -> ClientSettings:
    """Settings with an explicit token so no google-auth lookup happens."""
    return ClientSettings(
        project=PROJECT,
        region=REGION,
        token=SecretStr("test-token"),
        rate_limit=False,
    )


@pytest.fixture
def client(settings: ClientSettings) -> Iterator[IntegrationClient]:
    """An open client; use together with @respx.mock."""
    with IntegrationClient(settings) as c:
        yield c


@pytest.fixture
def sample_connection() -> dict:
    """A connection resource as returned by the connections API."""
    return {
        "name": f"projects/{PROJECT}/locations/{REGION}/connections/orders-db",
        "connectorVersion": (
            f"projects/{PROJECT}/locations/global/providers/gcp/connectors/pubsub/versions/1"
        ),
        "description": "Orders topic",
        "serviceAccount": f"conn-sa@{PROJECT}.iam.gserviceaccount.com",
        "status": {"state": "ACTIVE"},
        "configVariables": [
            {"key": "project_id", "stringValue": PROJECT},
            {"key": "topic_id", "stringValue": "orders"},
        ],
        "authConfig": {
            "authType": "USER_PASSWORD",
            "userPassword": {
                "username": "svc",
                "password": {"secretVersion": f"projects/{PROJECT}/secrets/db-pw/versions/1"},
            },
        },
    }
