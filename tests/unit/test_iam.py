# ABOUTME: Unit tests for connection IAM policy operations
# ABOUTME: Tests role resolution, binding merges, and the read-modify-write flow

import json

import httpx
import pytest
import respx

from integrationcli.errors import InputValidationError
from integrationcli.resources.iam import ConnectionIam, add_binding, resolve_role

URL = "https://connectors.googleapis.com/v1/projects/test-project/locations/us-central1/connections/orders"


@pytest.mark.unit
class TestResolveRole:
    """Tests for resolve_role."""

    @pytest.mark.parametrize(
        "role,expected",
        [
            ("admin", "roles/connectors.admin"),
            ("invoker", "roles/connectors.invoker"),
            ("viewer", "roles/connectors.viewer"),
            ("projects/p/roles/connectionRunner", "projects/p/roles/connectionRunner"),
        ],
    )
    def test_roles(self, role, expected):
        assert resolve_role(role) == expected

    def test_invalid_custom_role(self):
        with pytest.raises(InputValidationError, match="custom role"):
            resolve_role("roles/owner")


@pytest.mark.unit
class TestAddBinding:
    """Tests for add_binding."""

    def test_new_binding(self):
        """Test a binding is added for a new role."""
        policy = {"etag": "BwX"}

        updated = add_binding(policy, "roles/connectors.viewer", "user:a@example.com")

        assert updated["bindings"] == [{"role": "roles/connectors.viewer", "members": ["user:a@example.com"]}]
        assert updated["etag"] == "BwX"
        assert "bindings" not in policy

    def test_existing_role(self):
        """Test members are appended to an existing binding."""
        policy = {"bindings": [{"role": "roles/connectors.viewer", "members": ["user:a@example.com"]}]}

        updated = add_binding(policy, "roles/connectors.viewer", "user:b@example.com")

        assert updated["bindings"][0]["members"] == ["user:a@example.com", "user:b@example.com"]
        assert policy["bindings"][0]["members"] == ["user:a@example.com"]

    def test_no_duplicate_members(self):
        """Test granting twice does not duplicate the member."""
        policy = {"bindings": [{"role": "roles/connectors.viewer", "members": ["user:a@example.com"]}]}

        updated = add_binding(policy, "roles/connectors.viewer", "user:a@example.com")

        assert updated["bindings"][0]["members"] == ["user:a@example.com"]


@pytest.mark.unit
class TestConnectionIam:
    """Tests for ConnectionIam."""

    @respx.mock
    def test_get_policy(self, client):
        route = respx.get(f"{URL}:getIamPolicy").mock(return_value=httpx.Response(200, json={"etag": "x"}))

        ConnectionIam(client).get_policy("orders")

        assert route.called

    @respx.mock
    def test_set_role(self, client):
        """Test the current policy is read, extended, and written back."""
        respx.get(f"{URL}:getIamPolicy").mock(
            return_value=httpx.Response(
                200,
                json={"etag": "BwX", "bindings": [{"role": "roles/connectors.admin", "members": ["user:o@x.com"]}]},
            )
        )
        set_route = respx.post(f"{URL}:setIamPolicy").mock(return_value=httpx.Response(200, json={}))

        ConnectionIam(client).set_role("orders", "runner@test-project.iam.gserviceaccount.com", "invoker")

        sent = json.loads(set_route.calls[0].request.content)
        assert sent["policy"]["etag"] == "BwX"
        assert {
            "role": "roles/connectors.invoker",
            "members": ["serviceAccount:runner@test-project.iam.gserviceaccount.com"],
        } in sent["policy"]["bindings"]

    @respx.mock
    def test_set_role_invalid_member_type(self, client):
        """Test bad member types fail before any request."""
        route = respx.get(f"{URL}:getIamPolicy").mock(return_value=httpx.Response(200, json={}))

        with pytest.raises(InputValidationError, match="invalid member type"):
            ConnectionIam(client).set_role("orders", "a@example.com", "viewer", member_type="robot")

        assert not route.called

    @respx.mock
    def test_test_permissions(self, client):
        route = respx.post(f"{URL}:testIamPermissions").mock(
            return_value=httpx.Response(200, json={"permissions": ["connectors.connections.get"]})
        )

        ConnectionIam(client).test_permissions("orders", "connectors.connections.get")

        assert json.loads(route.calls[0].request.content) == {"permissions": ["connectors.connections.get"]}
