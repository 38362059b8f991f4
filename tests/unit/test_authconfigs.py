# ABOUTME: Unit tests for auth config operations
# ABOUTME: Tests create (plain and KMS-encrypted), get, lookup, patch, delete, and export

import base64
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
import respx

from integrationcli.errors import InputValidationError, ResourceNotFoundError
from integrationcli.resources.authconfigs import AuthConfigs

URL = "https://us-central1-integrations.googleapis.com/v1/projects/test-project/locations/us-central1/authConfigs"

AUTH_CONFIG = {
    "name": "projects/test-project/locations/us-central1/authConfigs/4711",
    "displayName": "crm-oauth",
    "description": "CRM client credentials",
    "visibility": "CLIENT_VISIBLE",
    "state": "VALID",
    "createTime": "2024-01-01T00:00:00Z",
    "decryptedCredential": {"credentialType": "OAUTH2_CLIENT_CREDENTIALS"},
}


@pytest.fixture
def auth_configs(client) -> AuthConfigs:
    return AuthConfigs(client)


@pytest.mark.unit
class TestAuthConfigsCreate:
    """Tests for AuthConfigs.create."""

    @respx.mock
    def test_create_posts_definition(self, auth_configs):
        """Test the file content is posted as the body."""
        route = respx.post(URL).mock(return_value=httpx.Response(200, json=AUTH_CONFIG))

        body = auth_configs.create(b'{"displayName": "crm-oauth"}')

        assert json.loads(route.calls[0].request.content) == {"displayName": "crm-oauth"}
        assert json.loads(body)["name"].endswith("/4711")

    def test_create_rejects_invalid_json(self, auth_configs):
        """Test malformed files fail before any request."""
        with pytest.raises(InputValidationError, match="not valid JSON"):
            auth_configs.create(b"{not json")

    @respx.mock
    def test_create_from_encrypted(self, auth_configs):
        """Test the ciphertext is decrypted with KMS and posted."""
        route = respx.post(URL).mock(return_value=httpx.Response(200, json=AUTH_CONFIG))
        kms_client = MagicMock()
        kms_client.decrypt.return_value = SimpleNamespace(plaintext=b'{"displayName": "crm-oauth"}\n')
        encrypted = base64.b64encode(b"ciphertext-bytes")

        auth_configs.create_from_encrypted(
            encrypted,
            "locations/global/keyRings/ring/cryptoKeys/key",
            kms_client=kms_client,
        )

        kms_client.decrypt.assert_called_once_with(
            request={
                "name": "projects/test-project/locations/global/keyRings/ring/cryptoKeys/key",
                "ciphertext": b"ciphertext-bytes",
            }
        )
        assert json.loads(route.calls[0].request.content) == {"displayName": "crm-oauth"}

    def test_create_from_encrypted_invalid_key(self, auth_configs):
        """Test malformed key names are rejected."""
        with pytest.raises(InputValidationError, match="encryption key must be of the format"):
            auth_configs.create_from_encrypted(b"", "projects/p/keyRings/r", kms_client=MagicMock())


@pytest.mark.unit
class TestAuthConfigsGet:
    """Tests for AuthConfigs.get and lookups."""

    @respx.mock
    def test_get_full(self, auth_configs):
        """Test the full resource is returned unchanged."""
        raw = json.dumps(AUTH_CONFIG).encode()
        respx.get(f"{URL}/4711").mock(return_value=httpx.Response(200, content=raw))

        assert auth_configs.get("4711") == raw

    @respx.mock
    def test_get_minimal(self, auth_configs):
        """Test minimal output only keeps create fields."""
        respx.get(f"{URL}/4711").mock(return_value=httpx.Response(200, json=AUTH_CONFIG))

        minimal = json.loads(auth_configs.get("4711", minimal=True))

        assert set(minimal) == {"displayName", "description", "visibility", "decryptedCredential"}

    @respx.mock
    def test_find(self, auth_configs):
        """Test lookup by display name returns the id."""
        respx.get(URL).mock(return_value=httpx.Response(200, json={"authConfigs": [AUTH_CONFIG]}))

        assert auth_configs.find("crm-oauth") == "4711"

    @respx.mock
    def test_find_missing(self, auth_configs):
        """Test lookup failure names the resource kind."""
        respx.get(URL).mock(return_value=httpx.Response(200, json={}))

        with pytest.raises(ResourceNotFoundError, match="authConfig not found: other"):
            auth_configs.find("other")


@pytest.mark.unit
class TestAuthConfigsModify:
    """Tests for patch, delete, list, and export."""

    @respx.mock
    def test_patch_with_update_mask(self, auth_configs):
        """Test the update mask is joined with commas."""
        route = respx.patch(f"{URL}/4711").mock(return_value=httpx.Response(200, json=AUTH_CONFIG))

        auth_configs.patch("4711", {"description": "new"}, ["description", "visibility"])

        assert route.calls[0].request.url.params["updateMask"] == "description,visibility"
        assert json.loads(route.calls[0].request.content) == {"description": "new"}

    @respx.mock
    def test_patch_without_mask(self, auth_configs):
        """Test no updateMask is sent when none is given."""
        route = respx.patch(f"{URL}/4711").mock(return_value=httpx.Response(200, json=AUTH_CONFIG))

        auth_configs.patch("4711", b'{"description": "new"}')

        assert "updateMask" not in route.calls[0].request.url.params

    @respx.mock
    def test_delete(self, auth_configs):
        """Test delete targets the resource URL."""
        route = respx.delete(f"{URL}/4711").mock(return_value=httpx.Response(200, content=b"{}"))

        assert auth_configs.delete("4711") == b"{}"
        assert route.called

    @respx.mock
    def test_list_page(self, auth_configs):
        """Test list forwards paging arguments."""
        route = respx.get(URL).mock(return_value=httpx.Response(200, json={"authConfigs": []}))

        auth_configs.list_page(page_size=10, page_token="abc", filter="state=VALID")

        params = route.calls[0].request.url.params
        assert params["pageSize"] == "10"
        assert params["pageToken"] == "abc"
        assert params["filter"] == "state=VALID"

    @respx.mock
    def test_export_file_names(self, auth_configs, tmp_path):
        """Test exported pages are named authconfigs_<N>.json."""
        respx.get(URL).mock(
            side_effect=[
                httpx.Response(200, json={"authConfigs": [AUTH_CONFIG], "nextPageToken": "p2"}),
                httpx.Response(200, json={"authConfigs": []}),
            ]
        )

        written = auth_configs.export(tmp_path)

        assert [p.name for p in written] == ["authconfigs_1.json", "authconfigs_2.json"]
