# ABOUTME: Access token resolution for the management APIs
# ABOUTME: Uses an explicit token, a service-account key file, or Application Default Credentials

"""
OAuth 2.0 access token resolution.

The token is looked up in this order:

1. settings.token (INTEGRATIONCLI_TOKEN or -t/--token), used verbatim
2. settings.service_account, a service-account JSON key file
3. Application Default Credentials (gcloud auth application-default login,
   GOOGLE_APPLICATION_CREDENTIALS, workload identity, metadata server)

Credentials from 2 and 3 are refreshed once with the cloud-platform scope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import google.auth
import google.auth.exceptions
import google.auth.transport.requests
import structlog
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account

from integrationcli.errors import IntegrationCliError

if TYPE_CHECKING:
    from google.auth.credentials import Credentials

    from integrationcli.config import ClientSettings

logger = structlog.get_logger(__name__)

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class AuthenticationError(IntegrationCliError):
    """No usable credentials could be found or refreshed."""


def load_credentials(settings: ClientSettings) -> Credentials:
    """Load google-auth credentials for the configured identity."""
    if settings.service_account:
        logger.debug("Using service account key file", path=str(settings.service_account))
        try:
            return service_account.Credentials.from_service_account_file(
                str(settings.service_account),
                scopes=[CLOUD_PLATFORM_SCOPE],
            )
        except (OSError, ValueError) as e:
            raise AuthenticationError(
                f"unable to read service account file {settings.service_account}: {e}"
            ) from e

    logger.debug("Using application default credentials")
    try:
        credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])
    except google.auth.exceptions.DefaultCredentialsError as e:
        raise AuthenticationError(f"no credentials available: {e}") from e
    return credentials


def resolve_access_token(settings: ClientSettings) -> str:
    """
    Return a bearer token for API calls.

    Raises:
        AuthenticationError: If no credentials are available or the
            refresh against the token endpoint fails.
    """
    explicit = settings.token.get_secret_value()
    if explicit:
        return explicit

    credentials = load_credentials(settings)
    if not credentials.valid:
        try:
            credentials.refresh(google.auth.transport.requests.Request())
        except google.auth.exceptions.GoogleAuthError as e:
            raise AuthenticationError(f"unable to refresh access token: {e}") from e
    return str(credentials.token)


def credentials_for_clients(settings: ClientSettings) -> Credentials:
    """Credentials for Google client libraries (Cloud KMS) matching the API identity."""
    explicit = settings.token.get_secret_value()
    if explicit:
        return oauth2_credentials.Credentials(token=explicit)
    return load_credentials(settings)
