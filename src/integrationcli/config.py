# ABOUTME: Configuration management for integrationcli
# ABOUTME: Resolves project, region, credentials, and behaviour flags from env and CLI

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Every integrationcli command needs the same handful of settings:

1. WHERE to talk to: Google Cloud project, region, and which API environment
   (production, staging, autopush)
2. HOW to authenticate: an explicit access token, a service-account key
   file, or Application Default Credentials
3. HOW to behave: log level, dry-run, whether to print responses, whether a
   409 Conflict counts as success, client-side rate limiting

These are read ONCE per invocation into a frozen ClientSettings object. The
object is then passed explicitly to the HTTP client and to every resource
module. Nothing mutates it afterwards; per-command flags such as --proj and
--reg produce a modified copy via with_overrides().

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

    INTEGRATIONCLI_PROJECT           -> Google Cloud project id
    INTEGRATIONCLI_REGION            -> Region, e.g. us-central1
    INTEGRATIONCLI_API               -> prod | staging | autopush
    INTEGRATIONCLI_TOKEN             -> OAuth access token (skips google-auth)
    INTEGRATIONCLI_SERVICE_ACCOUNT   -> Path to a service-account JSON key
    INTEGRATIONCLI_PROXY_URL         -> HTTP(S) proxy for all API calls
    INTEGRATIONCLI_TIMEOUT           -> Request timeout in seconds (default: 60)
    INTEGRATIONCLI_LOG_LEVEL         -> DEBUG | INFO | WARNING | ERROR | CRITICAL
    INTEGRATIONCLI_JSON_LOGS         -> Emit JSON log lines on stderr
    INTEGRATIONCLI_NO_OUTPUT         -> Do not print API responses
    INTEGRATIONCLI_MASK_SECRETS      -> Mask secrets in debug logs (default: true)
    INTEGRATIONCLI_DRY_RUN           -> Build requests but never send them
    INTEGRATIONCLI_IGNORE_CONFLICTS  -> Treat HTTP 409 as success
    INTEGRATIONCLI_RATE_LIMIT        -> Client-side request pacing (default: true)

If INTEGRATIONCLI_ENV_FILE is set, variables are also read from that file.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated, Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from integrationcli.errors import InputValidationError

# =============================================================================
# API ENDPOINTS
# =============================================================================


class ApiEnvironment(str, Enum):
    """Which deployment of the management APIs to call."""

    PROD = "prod"
    STAGING = "staging"
    AUTOPUSH = "autopush"


# Application Integration hosts. Sandbox hosts embed the region without dashes.
_INTEGRATION_HOSTS = {
    ApiEnvironment.PROD: "https://{region}-integrations.googleapis.com",
    ApiEnvironment.STAGING: "https://stagingqual{compact_region}-integrations.sandbox.googleapis.com",
    ApiEnvironment.AUTOPUSH: "https://autopushqual{compact_region}-integrations.sandbox.googleapis.com",
}

# Integration Connectors hosts.
_CONNECTOR_HOSTS = {
    ApiEnvironment.PROD: "https://connectors.googleapis.com",
    ApiEnvironment.STAGING: "https://staging-connectors.sandbox.googleapis.com",
    ApiEnvironment.AUTOPUSH: "https://autopush-connectors.sandbox.googleapis.com",
}


# =============================================================================
# CLIENT SETTINGS
# =============================================================================


class ClientSettings(BaseSettings):
    """
    Settings for one integrationcli invocation.

    USAGE:
    ------
        settings = load_settings(project="my-project", region="us-central1")
        settings.connections_url
        # 'https://connectors.googleapis.com/v1/projects/my-project/locations/us-central1/connections'
    """

    model_config = SettingsConfigDict(
        env_prefix="INTEGRATIONCLI_",
        extra="ignore",
        # Operations receive the settings object and must never change it
        frozen=True,
    )

    # -------------------------------------------------------------------------
    # TARGET
    # -------------------------------------------------------------------------

    project: str = Field(default="", description="Google Cloud project id")
    region: str = Field(default="", description="Google Cloud region")
    api: ApiEnvironment = Field(
        default=ApiEnvironment.PROD,
        description="API environment: prod, staging or autopush",
    )

    # -------------------------------------------------------------------------
    # CREDENTIALS
    # -------------------------------------------------------------------------

    token: SecretStr = Field(
        default=SecretStr(""),
        description="OAuth 2.0 access token",
    )
    # When empty, a token is minted with google-auth (see utils/auth.py).

    service_account: Path | None = Field(
        default=None,
        description="Path to a service account JSON key file",
    )

    # -------------------------------------------------------------------------
    # TRANSPORT
    # -------------------------------------------------------------------------

    proxy_url: str = Field(default="", description="Proxy URL for API calls")
    timeout: float = Field(default=60.0, gt=0, description="Request timeout in seconds")
    rate_limit: bool = Field(
        default=True,
        description="Pace requests to the published per-API quotas",
    )

    # -------------------------------------------------------------------------
    # BEHAVIOUR
    # -------------------------------------------------------------------------

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(default=False, description="Emit JSON log lines")
    no_output: bool = Field(default=False, description="Do not print API responses")
    mask_secrets: bool = Field(default=True, description="Mask secrets in logs")
    dry_run: bool = Field(default=False, description="Do not send any request")
    ignore_conflicts: bool = Field(
        default=False,
        description="Treat HTTP 409 Conflict responses as success",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Accept lower-case level names such as 'debug'."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("proxy_url")
    @classmethod
    def validate_proxy_url(cls, v: str) -> str:
        """Proxy URLs need an explicit scheme for httpx."""
        if v and not v.startswith(("http://", "https://", "socks5://")):
            raise ValueError("proxy_url must start with http://, https:// or socks5://")
        return v

    # -------------------------------------------------------------------------
    # DERIVED VALUES
    # -------------------------------------------------------------------------

    def with_overrides(self, **overrides: Any) -> ClientSettings:
        """
        Return a copy with the given non-empty values replaced.

        None and empty strings are ignored so unset CLI flags keep the
        environment value.
        """
        update = {k: v for k, v in overrides.items() if v not in (None, "")}
        if not update:
            return self
        return self.model_copy(update=update)

    def require_location(self) -> None:
        """
        Ensure project and region are known.

        Raises:
            InputValidationError: If either value is missing.
        """
        if not self.region:
            raise InputValidationError("region was not set in preferences or supplied in the command")
        if not self.project:
            raise InputValidationError("projectId was not set in preferences or supplied in the command")

    @property
    def integrations_url(self) -> str:
        """Base URL of the Application Integration API for this project/region."""
        self.require_location()
        host = _INTEGRATION_HOSTS[self.api].format(
            region=self.region,
            compact_region=self.region.replace("-", ""),
        )
        return f"{host}/v1/projects/{self.project}/locations/{self.region}"

    @property
    def connections_url(self) -> str:
        """Collection URL for connections."""
        self.require_location()
        return f"{_CONNECTOR_HOSTS[self.api]}/v1/projects/{self.project}/locations/{self.region}/connections"

    @property
    def operations_url(self) -> str:
        """Collection URL for connector long-running operations."""
        self.require_location()
        return f"{_CONNECTOR_HOSTS[self.api]}/v1/projects/{self.project}/locations/{self.region}/operations"

    @property
    def managed_zones_url(self) -> str:
        """Collection URL for managed zones, which always live in the global location."""
        self.require_location()
        return f"{_CONNECTOR_HOSTS[self.api]}/v1/projects/{self.project}/locations/global/managedZones"


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings(**overrides: Any) -> ClientSettings:
    """
    Load settings from the environment, applying explicit overrides.

    Overrides whose value is None are dropped so that the environment (or
    the field default) still applies. This is how CLI flags are layered on
    top of INTEGRATIONCLI_* variables.

    Returns:
        Fully validated ClientSettings instance.

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    return ClientSettings(
        _env_file=os.environ.get("INTEGRATIONCLI_ENV_FILE"),
        **values,
    )
