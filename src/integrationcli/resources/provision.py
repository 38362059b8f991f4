# ABOUTME: Application Integration client provisioning
# ABOUTME: Enables the service in a region with optional CMEK and run-as service account

"""Provisioning of Application Integration in a project and region."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from integrationcli.utils.validation import validate_kms_key_version, validate_service_account

if TYPE_CHECKING:
    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient


def cloud_kms_config(key_version: str) -> dict[str, str]:
    """
    Split a crypto key version name into a cloudKmsConfig.

    projects/{p}/locations/{l}/keyRings/{r}/cryptoKeys/{k}/cryptoKeyVersions/{v}
    """
    project, location, ring, key, version = validate_kms_key_version(key_version).groups()
    return {
        "kmsLocation": location,
        "kmsRing": ring,
        "key": key,
        "keyVersion": version,
        "kmsProjectId": project,
    }


def provision_body(
    cloud_kms: str = "",
    samples: bool = True,
    gmek: bool = True,
    service_account: str = "",
) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if service_account:
        body["runAsServiceAccount"] = validate_service_account(service_account)
    if cloud_kms:
        body["cloudKmsConfig"] = cloud_kms_config(cloud_kms)
    body["createSampleWorkflows"] = samples
    body["provisionGmek"] = gmek
    return body


def provision(
    client: IntegrationClient,
    cloud_kms: str = "",
    samples: bool = True,
    gmek: bool = True,
    service_account: str = "",
    settings: ClientSettings | None = None,
) -> bytes:
    """
    Provision Application Integration for the configured project and region.

    Args:
        client: Open IntegrationClient
        cloud_kms: Optional CMEK key version name
        samples: Create sample integrations
        gmek: Use Google-managed encryption keys
        service_account: Optional run-as service account email
    """
    settings = settings or client.settings
    body = provision_body(cloud_kms, samples, gmek, service_account)
    return client.request("POST", f"{settings.integrations_url}/client:provision", json_data=body)
