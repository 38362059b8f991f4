# ABOUTME: IAM policy operations on connections
# ABOUTME: Get policy, grant a role to a member, test permissions

"""Connection IAM policies."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

import structlog

from integrationcli.utils.client import decode_json
from integrationcli.utils.validation import require, validate_custom_role, validate_member_type

if TYPE_CHECKING:
    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient

logger = structlog.get_logger(__name__)

PREDEFINED_ROLES = {
    "admin": "roles/connectors.admin",
    "invoker": "roles/connectors.invoker",
    "viewer": "roles/connectors.viewer",
}


def resolve_role(role: str) -> str:
    """Map admin/invoker/viewer to predefined roles; anything else must be a custom role."""
    if role in PREDEFINED_ROLES:
        return PREDEFINED_ROLES[role]
    return validate_custom_role(role)


def add_binding(policy: dict[str, Any], role: str, member: str) -> dict[str, Any]:
    """
    Return a copy of ``policy`` granting ``role`` to ``member``.

    The member is appended to an existing binding for the role, or a new
    binding is added. Members already present are not duplicated.
    """
    updated = copy.deepcopy(policy)
    bindings: list[dict[str, Any]] = updated.setdefault("bindings", [])
    for binding in bindings:
        if binding.get("role") == role:
            members = binding.setdefault("members", [])
            if member not in members:
                members.append(member)
            return updated
    bindings.append({"role": role, "members": [member]})
    return updated


class ConnectionIam:
    """IAM policy of a single connection."""

    def __init__(self, client: IntegrationClient, settings: ClientSettings | None = None) -> None:
        self._client = client
        self._settings = settings or client.settings
        self.url = self._settings.connections_url

    def get_policy(self, name: str) -> bytes:
        return self._client.request("GET", f"{self.url}/{name}:getIamPolicy")

    def set_role(
        self,
        name: str,
        member: str,
        role: str,
        member_type: str = "serviceAccount",
    ) -> bytes:
        """
        Grant ``role`` on connection ``name`` to ``member_type:member``.

        Args:
            name: Connection id
            member: Member email or domain
            role: admin, invoker, viewer, or projects/{p}/roles/{r}
            member_type: serviceAccount, group, user or domain

        Returns:
            The setIamPolicy response.
        """
        require(name=name, member=member)
        validate_member_type(member_type)
        role_name = resolve_role(role)

        policy = decode_json(self.get_policy(name))
        updated = add_binding(policy, role_name, f"{member_type}:{member}")
        logger.info("Setting connection IAM policy", connection=name, role=role_name, member=member)
        return self._client.request(
            "POST",
            f"{self.url}/{name}:setIamPolicy",
            json_data={"policy": updated},
        )

    def test_permissions(self, name: str, permission: str) -> bytes:
        """Check whether the caller holds ``permission`` on the connection."""
        return self._client.request(
            "POST",
            f"{self.url}/{name}:testIamPermissions",
            json_data={"permissions": [permission]},
        )
