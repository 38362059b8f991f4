# ABOUTME: Input validation helpers for integrationcli commands
# ABOUTME: Resource-name patterns and mutually exclusive flag checks

"""Validation of user input, performed before any network call."""

from __future__ import annotations

import json
import re
from typing import Any

from integrationcli.errors import InputValidationError

KMS_KEY_PATTERN = re.compile(
    r"^locations/([a-zA-Z0-9_-]+)/keyRings/([a-zA-Z0-9_-]+)/cryptoKeys/([a-zA-Z0-9_-]+)$"
)
KMS_KEY_VERSION_PATTERN = re.compile(
    r"^projects/([a-zA-Z0-9_-]+)/locations/([a-zA-Z0-9_-]+)/keyRings/([a-zA-Z0-9_-]+)"
    r"/cryptoKeys/([a-zA-Z0-9_-]+)/cryptoKeyVersions/([0-9]+)$"
)
SERVICE_ACCOUNT_PATTERN = re.compile(r"^[a-zA-Z0-9-]+@[a-zA-Z0-9-]+\.iam\.gserviceaccount\.com$")
CUSTOM_ROLE_PATTERN = re.compile(r"^projects/([a-zA-Z0-9_-]+)/roles/([a-zA-Z0-9_.-]+)$")

MEMBER_TYPES = ("serviceAccount", "group", "user", "domain")


def _set(value: Any) -> bool:
    return value not in (None, "", False)


def validate_kms_key(key: str) -> str:
    """Check a ``locations/{l}/keyRings/{r}/cryptoKeys/{k}`` key name."""
    if not KMS_KEY_PATTERN.match(key):
        raise InputValidationError(
            "encryption key must be of the format locations/{location}/keyRings/{keyRing}/cryptoKeys/{cryptoKey}"
        )
    return key


def validate_kms_key_version(key_version: str) -> re.Match[str]:
    """Check a full KMS crypto key version name and return its match."""
    match = KMS_KEY_VERSION_PATTERN.match(key_version)
    if not match:
        raise InputValidationError(
            "cloudkms key must be of the format projects/{project}/locations/{location}"
            "/keyRings/{keyRing}/cryptoKeys/{cryptoKey}/cryptoKeyVersions/{cryptoKeyVersion}"
        )
    return match


def validate_service_account(email: str) -> str:
    if not SERVICE_ACCOUNT_PATTERN.match(email):
        raise InputValidationError(
            "service account must be of the format {name}@{project}.iam.gserviceaccount.com"
        )
    return email


def validate_custom_role(role: str) -> str:
    if not CUSTOM_ROLE_PATTERN.match(role):
        raise InputValidationError("custom role must be of the format projects/{project}/roles/{role}")
    return role


def validate_member_type(member_type: str) -> str:
    if member_type not in MEMBER_TYPES:
        raise InputValidationError(
            f"invalid member type {member_type}, must be one of {', '.join(MEMBER_TYPES)}"
        )
    return member_type


def require(**flags: Any) -> None:
    """Raise if any named flag is empty."""
    for name, value in flags.items():
        if not _set(value):
            raise InputValidationError(f"{name} is a required parameter")


def exactly_one(first: str, first_value: Any, second: str, second_value: Any) -> None:
    """Exactly one of two flags must be set (e.g. --id / --name)."""
    if not _set(first_value) and not _set(second_value):
        raise InputValidationError(f"{first} and {second} cannot be empty")
    if _set(first_value) and _set(second_value):
        raise InputValidationError(f"{first} and {second} both cannot be set")


def mutually_exclusive(flag: str, value: Any, **others: Any) -> None:
    """``flag`` cannot be combined with any of ``others``."""
    if _set(value) and any(_set(v) for v in others.values()):
        raise InputValidationError(f"{flag} cannot be combined with {' or '.join(others)}")


def both_or_neither(first: str, first_value: Any, second: str, second_value: Any) -> None:
    """Two flags that only make sense together."""
    if _set(first_value) != _set(second_value):
        raise InputValidationError(f"{first} and {second} must both be set")


def parse_json_object(content: bytes | str | dict[str, Any], what: str = "file") -> dict[str, Any]:
    """Parse user-supplied JSON that must be an object."""
    if isinstance(content, dict):
        return content
    try:
        data = json.loads(content)
    except ValueError as e:
        raise InputValidationError(f"{what} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InputValidationError(f"{what} must contain a JSON object")
    return data
