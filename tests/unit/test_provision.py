# ABOUTME: Unit tests for Application Integration provisioning
# ABOUTME: Tests CMEK parsing, request body defaults, and the provision call

import json

import httpx
import pytest
import respx

from integrationcli.errors import InputValidationError
from integrationcli.resources.provision import cloud_kms_config, provision, provision_body

URL = (
    "https://us-central1-integrations.googleapis.com/v1/projects/test-project"
    "/locations/us-central1/client:provision"
)
KEY_VERSION = "projects/kms-proj/locations/us-central1/keyRings/ring/cryptoKeys/key/cryptoKeyVersions/2"


@pytest.mark.unit
class TestProvisionBody:
    def test_defaults(self):
        assert provision_body() == {"createSampleWorkflows": True, "provisionGmek": True}

    def test_cloud_kms_config(self):
        assert cloud_kms_config(KEY_VERSION) == {
            "kmsLocation": "us-central1",
            "kmsRing": "ring",
            "key": "key",
            "keyVersion": "2",
            "kmsProjectId": "kms-proj",
        }

    def test_invalid_key_version(self):
        with pytest.raises(InputValidationError, match="cloudkms key must be of the format"):
            cloud_kms_config("locations/us-central1/keyRings/ring/cryptoKeys/key")

    def test_full_body(self):
        body = provision_body(
            cloud_kms=KEY_VERSION,
            samples=False,
            gmek=False,
            service_account="runner@test-project.iam.gserviceaccount.com",
        )

        assert body["runAsServiceAccount"] == "runner@test-project.iam.gserviceaccount.com"
        assert body["cloudKmsConfig"]["kmsProjectId"] == "kms-proj"
        assert body["createSampleWorkflows"] is False
        assert body["provisionGmek"] is False

    def test_invalid_service_account(self):
        with pytest.raises(InputValidationError, match="service account must be of the format"):
            provision_body(service_account="runner")


@pytest.mark.unit
class TestProvision:
    @respx.mock
    def test_posts_body(self, client):
        route = respx.post(URL).mock(return_value=httpx.Response(200, json={}))

        provision(client, samples=False)

        assert json.loads(route.calls[0].request.content) == {
            "createSampleWorkflows": False,
            "provisionGmek": True,
        }
