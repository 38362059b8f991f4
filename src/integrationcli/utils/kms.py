# ABOUTME: Cloud KMS helpers for encrypted credential files
# ABOUTME: Decrypts base64 payloads with a symmetric key

"""Symmetric decryption with Cloud KMS."""

from __future__ import annotations

import base64
import binascii
from typing import TYPE_CHECKING

import structlog
from google.api_core import exceptions as api_exceptions
from google.cloud import kms

from integrationcli.errors import InputValidationError, IntegrationCliError

if TYPE_CHECKING:
    from google.auth.credentials import Credentials

logger = structlog.get_logger(__name__)


class KmsError(IntegrationCliError):
    """A Cloud KMS call failed."""


def full_key_name(project: str, key: str) -> str:
    """Prefix a ``locations/.../cryptoKeys/...`` key with its project."""
    return f"projects/{project}/{key.lstrip('/')}"


def decrypt_symmetric(
    key_name: str,
    b64_ciphertext: bytes | str,
    client: kms.KeyManagementServiceClient | None = None,
    credentials: Credentials | None = None,
) -> bytes:
    """
    Decrypt a base64-encoded ciphertext with a symmetric KMS key.

    Args:
        key_name: Full key resource name (projects/.../cryptoKeys/...)
        b64_ciphertext: Base64 text as produced by ``gcloud kms encrypt | base64``
        client: Optional pre-built KMS client
        credentials: Credentials for a client built here

    Returns:
        The plaintext with surrounding whitespace removed.
    """
    try:
        ciphertext = base64.b64decode(b64_ciphertext, validate=False)
    except (binascii.Error, ValueError) as e:
        raise InputValidationError(f"encrypted file is not valid base64: {e}") from e

    client = client or kms.KeyManagementServiceClient(credentials=credentials)
    logger.debug("Decrypting with Cloud KMS", key=key_name)
    try:
        response = client.decrypt(request={"name": key_name, "ciphertext": ciphertext})
    except api_exceptions.GoogleAPICallError as e:
        raise KmsError(f"unable to decrypt with {key_name}: {e}") from e
    return response.plaintext.strip()
