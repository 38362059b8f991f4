# ABOUTME: Certificate operations for Application Integration
# ABOUTME: Create from PEM files, get, list, find, delete, export

"""Certificates used by integration tasks for SSL/TLS."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from integrationcli.errors import InputValidationError
from integrationcli.pagination import PaginatedCollection
from integrationcli.utils.validation import require

if TYPE_CHECKING:
    from pathlib import Path

    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient


def certificate_body(
    display_name: str,
    ssl_certificate: str,
    description: str = "",
    private_key: str = "",
    passphrase: str = "",
) -> dict[str, Any]:
    """Build the create request for a certificate."""
    require(name=display_name, **{"cert-file": ssl_certificate})
    if passphrase and not private_key:
        raise InputValidationError("passphrase can only be set with private-key")

    raw_certificate: dict[str, str] = {"sslCertificate": ssl_certificate}
    if private_key:
        raw_certificate["encryptedPrivateKey"] = private_key
    if passphrase:
        raw_certificate["passphrase"] = passphrase

    body: dict[str, Any] = {"displayName": display_name}
    if description:
        body["description"] = description
    body["rawCertificate"] = raw_certificate
    return body


class Certificates:
    """Operations on the certificates collection."""

    def __init__(self, client: IntegrationClient, settings: ClientSettings | None = None) -> None:
        self._client = client
        self._settings = settings or client.settings
        self.url = f"{self._settings.integrations_url}/certificates"
        self.collection = PaginatedCollection(
            client,
            url=self.url,
            items_key="certificates",
            kind="certificate",
        )

    def create(
        self,
        display_name: str,
        ssl_certificate: str,
        description: str = "",
        private_key: str = "",
        passphrase: str = "",
    ) -> bytes:
        """
        Upload a certificate.

        Args:
            display_name: Certificate display name
            ssl_certificate: PEM-encoded certificate
            description: Optional description
            private_key: Optional PEM-encoded private key
            passphrase: Optional private key passphrase (needs private_key)
        """
        body = certificate_body(display_name, ssl_certificate, description, private_key, passphrase)
        return self._client.request("POST", self.url, json_data=body)

    def get(self, certificate_id: str) -> bytes:
        return self._client.request("GET", f"{self.url}/{certificate_id}")

    def delete(self, certificate_id: str) -> bytes:
        return self._client.request("DELETE", f"{self.url}/{certificate_id}")

    def list_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
    ) -> bytes:
        return self.collection.list_page(page_size, page_token, filter)

    def find(self, display_name: str) -> str:
        return self.collection.find(display_name)

    def export(self, folder: str | Path) -> list[Path]:
        return self.collection.export(folder)
