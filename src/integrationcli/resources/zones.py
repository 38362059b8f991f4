# ABOUTME: Managed zone operations for Integration Connectors
# ABOUTME: Create, get, list, and delete private DNS peering zones

"""
Managed zones.

A managed zone peers a DNS name into a target VPC so connections can reach
private endpoints. Zones always live in the global location:

    {connectors}/v1/projects/{p}/locations/global/managedZones
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from integrationcli.pagination import PaginatedCollection
from integrationcli.utils.client import decode_json
from integrationcli.utils.validation import require

if TYPE_CHECKING:
    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient

# Fields of a zone accepted by create
ZONE_FIELDS = ("description", "dns", "targetProject", "targetVpc")


def zone_body(dns: str, target_project: str, target_vpc: str, description: str = "") -> dict[str, Any]:
    require(dns=dns, **{"target-project": target_project, "target-vpc": target_vpc})
    body: dict[str, Any] = {"dns": dns}
    if description:
        body["description"] = description
    body["targetProject"] = target_project
    body["targetVpc"] = target_vpc
    return body


class ManagedZones:
    """Operations on the managedZones collection."""

    def __init__(self, client: IntegrationClient, settings: ClientSettings | None = None) -> None:
        self._client = client
        self._settings = settings or client.settings
        self.url = self._settings.managed_zones_url
        self.collection = PaginatedCollection(
            client,
            url=self.url,
            items_key="managedZones",
            kind="managed zone",
        )

    def create(
        self,
        name: str,
        dns: str,
        target_project: str,
        target_vpc: str,
        description: str = "",
    ) -> bytes:
        require(name=name)
        body = zone_body(dns, target_project, target_vpc, description)
        return self._client.request("POST", self.url, params={"managedZoneId": name}, json_data=body)

    def get(self, name: str, minimal: bool = False) -> bytes:
        """Get a zone; minimal keeps only the fields accepted by create."""
        raw = self._client.request("GET", f"{self.url}/{name}")
        if not minimal:
            return raw
        data = decode_json(raw)
        return json.dumps({k: data[k] for k in ZONE_FIELDS if k in data}).encode("utf-8")

    def delete(self, name: str) -> bytes:
        return self._client.request("DELETE", f"{self.url}/{name}")

    def list_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
        order_by: str = "",
    ) -> bytes:
        return self.collection.list_page(page_size, page_token, filter, order_by)
