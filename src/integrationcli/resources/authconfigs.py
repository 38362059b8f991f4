# ABOUTME: Auth configuration operations for Application Integration
# ABOUTME: Create (plain or KMS-encrypted), get, list, find, patch, delete, export

"""
Auth configurations.

An auth config stores a credential (OAuth client, user/password, service
account, ...) that integration tasks reference by id. API collection:

    {integrations_url}/authConfigs
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from integrationcli.pagination import PaginatedCollection
from integrationcli.utils.auth import credentials_for_clients
from integrationcli.utils.client import decode_json
from integrationcli.utils.kms import decrypt_symmetric, full_key_name
from integrationcli.utils.validation import parse_json_object, validate_kms_key

if TYPE_CHECKING:
    from pathlib import Path

    from google.cloud import kms

    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient

logger = structlog.get_logger(__name__)

# Fields kept by get(minimal=True): the ones accepted back by create.
MINIMAL_FIELDS = ("displayName", "description", "visibility", "decryptedCredential")


class AuthConfigs:
    """Operations on the authConfigs collection."""

    def __init__(self, client: IntegrationClient, settings: ClientSettings | None = None) -> None:
        self._client = client
        self._settings = settings or client.settings
        self.url = f"{self._settings.integrations_url}/authConfigs"
        self.collection = PaginatedCollection(
            client,
            url=self.url,
            items_key="authConfigs",
            kind="authConfig",
            export_prefix="authconfigs",
        )

    def create(self, content: bytes | str | dict[str, Any]) -> bytes:
        """Create an auth config from its JSON definition."""
        body = parse_json_object(content, "authconfig file")
        return self._client.request("POST", self.url, json_data=body)

    def create_from_encrypted(
        self,
        encrypted_content: bytes,
        key: str,
        kms_client: kms.KeyManagementServiceClient | None = None,
    ) -> bytes:
        """
        Create an auth config from a file encrypted with Cloud KMS.

        Args:
            encrypted_content: Base64 ciphertext of the JSON definition
            key: locations/{l}/keyRings/{r}/cryptoKeys/{k} in this project
            kms_client: Optional KMS client (built from settings otherwise)
        """
        validate_kms_key(key)
        key_name = full_key_name(self._settings.project, key)
        credentials = None if kms_client else credentials_for_clients(self._settings)
        logger.debug("Creating authconfig from encrypted file", key=key_name)
        plaintext = decrypt_symmetric(
            key_name,
            encrypted_content,
            client=kms_client,
            credentials=credentials,
        )
        return self.create(plaintext)

    def get(self, auth_config_id: str, minimal: bool = False) -> bytes:
        """
        Get an auth config by id.

        With minimal=True only the fields accepted by create are kept, so the
        output can be fed back into `authconfigs create --file`.
        """
        raw = self._client.request("GET", f"{self.url}/{auth_config_id}")
        if not minimal:
            return raw
        data = decode_json(raw)
        reduced = {k: data[k] for k in MINIMAL_FIELDS if k in data}
        return json.dumps(reduced).encode("utf-8")

    def delete(self, auth_config_id: str) -> bytes:
        return self._client.request("DELETE", f"{self.url}/{auth_config_id}")

    def list_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
    ) -> bytes:
        return self.collection.list_page(page_size, page_token, filter)

    def find(self, display_name: str) -> str:
        """Return the id of the auth config with this display name."""
        return self.collection.find(display_name)

    def patch(
        self,
        auth_config_id: str,
        content: bytes | str | dict[str, Any],
        update_mask: list[str] | None = None,
    ) -> bytes:
        """Update an auth config; update_mask lists the fields to change."""
        body = parse_json_object(content, "authconfig file")
        params = {"updateMask": ",".join(update_mask)} if update_mask else None
        return self._client.request(
            "PATCH",
            f"{self.url}/{auth_config_id}",
            params=params,
            json_data=body,
        )

    def export(self, folder: str | Path) -> list[Path]:
        """Export every auth config page to authconfigs_<N>.json."""
        return self.collection.export(folder)
