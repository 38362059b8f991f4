# ABOUTME: HTTP client for the Application Integration and Connectors APIs
# ABOUTME: One authenticated call per request, structured errors, secret masking in logs

"""
HTTP client with structured error handling.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Every integrationcli operation ends in exactly one kind of action: an HTTP
call against a Google Cloud management API. This module owns that call:

1. AUTHENTICATION: Attaching a Bearer token (resolved once per client)
2. PACING: Waiting for the client-side rate limiter of the target API
3. ERROR HANDLING: Converting status >= 400 into ApiError and network
   failures into TransportError
4. DRY RUN: Logging what would be sent without sending it
5. SECRET MASKING: Hiding credentials in debug logs

=============================================================================
NO RETRIES
=============================================================================

A request is sent ONCE. Failures propagate to the caller unchanged, which
for a CLI means the command stops with a non-zero exit code. The only
repeated calls in this code base are explicit: pagination (each page is a
new request) and --wait polling of long-running operations.

=============================================================================
ERROR FORMAT
=============================================================================

Google APIs return errors as:

    {"error": {"code": 404, "message": "Resource not found", "status": "NOT_FOUND"}}

ApiError carries the status code, a description of that code ("Not found -
the server cannot find the requested resource") and the API's own message.

=============================================================================
CONTEXT MANAGER
=============================================================================

    with IntegrationClient(settings) as client:
        body = client.request("GET", settings.connections_url)

The underlying httpx.Client (and its connection pool) exists only inside the
with-block and is closed even if the block raises.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from integrationcli.errors import ApiError, ResponseDecodeError, TransportError, describe_status
from integrationcli.utils.auth import resolve_access_token
from integrationcli.utils.ratelimit import RateLimiter, api_family

if TYPE_CHECKING:
    from collections.abc import Callable

    from integrationcli.config import ClientSettings

logger = structlog.get_logger(__name__)


# =============================================================================
# SECRET MASKING
# =============================================================================

MASK = "***MASKED***"

# Patterns applied to free-form strings (error bodies, raw payloads)
SECRET_PATTERNS = [
    (re.compile(r"(token[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(secret[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(passphrase[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}]+", re.I), rf"\1{MASK}"),
    (re.compile(r"(bearer\s+)[^\s\"']+", re.I), rf"\1{MASK}"),
]

# Dictionary keys (lower-cased) whose values are replaced wholesale.
# Auth config and certificate payloads nest credentials under these names.
SENSITIVE_KEYS = frozenset(
    [
        "token",
        "accesstoken",
        "refreshtoken",
        "password",
        "passphrase",
        "secret",
        "clientsecret",
        "clientkey",
        "privatekey",
        "encryptedprivatekey",
        "authorization",
        "decryptedcredential",
        "encryptedcredential",
    ]
)


def mask_secrets(data: Any) -> Any:
    """
    Mask sensitive values in any JSON-like structure.

    Strings have SECRET_PATTERNS applied; dict values under SENSITIVE_KEYS are
    replaced; lists and dicts are walked recursively.
    """
    if isinstance(data, str):
        masked = data
        for pattern, replacement in SECRET_PATTERNS:
            masked = pattern.sub(replacement, masked)
        return masked

    if isinstance(data, dict):
        return {
            k: MASK if str(k).lower() in SENSITIVE_KEYS else mask_secrets(v)
            for k, v in data.items()
        }

    if isinstance(data, list):
        return [mask_secrets(item) for item in data]

    return data


def decode_json(raw: bytes) -> dict[str, Any]:
    """
    Decode a response body that must be a JSON object.

    An empty body (e.g. a DELETE answer) decodes to {}.

    Raises:
        ResponseDecodeError: On invalid JSON or a non-object top level.
    """
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise ResponseDecodeError(f"unable to decode response: {e}") from e
    if not isinstance(data, dict):
        raise ResponseDecodeError(
            f"unexpected response shape: expected a JSON object, got {type(data).__name__}"
        )
    return data


def _error_message(response: httpx.Response) -> str | None:
    """Extract the API's own message from a Google-style error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(body.get("message"), str):
            return body["message"]
    return response.text or None


# =============================================================================
# CLIENT
# =============================================================================


class IntegrationClient:
    """
    Synchronous client for the management APIs.

    LIFECYCLE:
    ----------
    1. Create client: client = IntegrationClient(settings)
    2. Enter context: with client: ...
    3. Use client: client.request("GET", url)
    4. Exit context: HTTP connections closed
    """

    def __init__(
        self,
        settings: ClientSettings,
        rate_limiter: RateLimiter | None = None,
        token_provider: Callable[[ClientSettings], str] = resolve_access_token,
    ) -> None:
        """
        Initialize client.

        Args:
            settings: Invocation settings (timeout, proxy, flags, credentials)
            rate_limiter: Limiter shared by all calls of this client
            token_provider: Function returning a bearer token for settings
        """
        self._settings = settings
        self._rate_limiter = rate_limiter or RateLimiter()
        self._token_provider = token_provider
        self._token: str | None = None
        self._client: httpx.Client | None = None

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    def __enter__(self) -> IntegrationClient:
        self._client = httpx.Client(
            headers={"Content-Type": "application/json"},
            timeout=self._settings.timeout,
            proxy=self._settings.proxy_url or None,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def _authorization(self) -> str:
        if self._token is None:
            self._token = self._token_provider(self._settings)
        return f"Bearer {self._token}"

    def _log_safe(self, data: Any) -> Any:
        return mask_secrets(data) if self._settings.mask_secrets else data

    def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | list[Any] | None = None,
    ) -> bytes:
        """
        Send one HTTP request and return the raw response body.

        Query parameters whose value is None or "" are dropped, so callers
        can pass optional flags straight through.

        Args:
            method: HTTP method ("GET", "POST", "PATCH", "DELETE")
            url: Absolute request URL
            params: URL query parameters (optional)
            json_data: JSON request body (optional)

        Returns:
            Response body bytes (b"" in dry-run mode).

        Raises:
            ApiError: On status >= 400 (except 409 with ignore_conflicts)
            TransportError: If no response was received
            RuntimeError: If client not initialized (forgot with-block)
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'with' context manager.")

        query = {
            k: (str(v).lower() if isinstance(v, bool) else str(v))
            for k, v in (params or {}).items()
            if v is not None and v != ""
        }

        log = logger.bind(method=method, url=url)
        log.debug("Making API request", params=query, body=self._log_safe(json_data))

        if self._settings.dry_run:
            log.info("Dry run, request not sent")
            return b""

        if self._settings.rate_limit:
            self._rate_limiter.acquire(api_family(url))

        try:
            response = self._client.request(
                method,
                url,
                params=query or None,
                json=json_data,
                headers={"Authorization": self._authorization()},
            )
        except httpx.HTTPError as e:
            log.warning("API request failed", error=str(e))
            raise TransportError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            if response.status_code == 409 and self._settings.ignore_conflicts:
                log.warning("Entity already exists, ignoring conflict")
                return response.content

            log.debug(
                "API error",
                status=response.status_code,
                body=self._log_safe(response.text[:500]),
            )
            raise ApiError(
                code=response.status_code,
                message=describe_status(response.status_code),
                details=_error_message(response),
            )

        log.debug("API response", status=response.status_code, size=len(response.content))
        return response.content

    def request_json(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | list[Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request and decode the body as a JSON object."""
        return decode_json(self.request(method, url, params=params, json_data=json_data))
