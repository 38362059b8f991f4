# ABOUTME: Exception hierarchy for integrationcli
# ABOUTME: Separates input validation, HTTP, decoding, lookup, and file errors

"""
Exceptions raised by integrationcli operations.

=============================================================================
ERROR CATEGORIES
=============================================================================

Every command can fail in one of a small number of ways. Each has its own
exception class so callers (and tests) can tell them apart:

    InputValidationError  Bad flags or malformed resource names. Raised
                          BEFORE any network call, so nothing has changed.

    ApiError              The API answered with a status >= 400. Carries the
                          status code, a human description of the code, and
                          the raw response body.

    TransportError        The request never got an answer (DNS, TLS,
                          connection reset, timeout).

    ResponseDecodeError   The API answered 2xx but the body was not the JSON
                          shape we expected.

    ResourceNotFoundError A lookup by display name walked every page without
                          finding a match.

    FileWriteError        Writing an export artifact to disk failed.

All of them derive from IntegrationCliError, which the CLI catches to print
the message and exit with a non-zero status. None of them are retried.
"""

from __future__ import annotations

# HTTP status code descriptions shown in front of the raw API error body.
STATUS_DESCRIPTIONS: dict[int, str] = {
    400: "Bad Request - malformed request syntax",
    401: "Unauthorized - the client must authenticate itself",
    403: "Forbidden - the client does not have access rights",
    404: "Not found - the server cannot find the requested resource",
    405: "Method Not Allowed - the request method is not supported by the target resource",
    409: "Conflict - request conflicts with the current state of the server",
    415: "Unsupported media type - media format of the requested data is not supported by the server",
    429: "Too Many Request - user has sent too many requests",
    500: "Internal server error",
    501: "Not Implemented - request method is not supported by the server",
    502: "Bad Gateway",
    503: "Service Unavailable - the server is not ready to handle the request",
}


def describe_status(code: int) -> str:
    """Return the human description for an HTTP status code."""
    return STATUS_DESCRIPTIONS.get(code, "unknown error")


class IntegrationCliError(Exception):
    """Base class for every error raised by integrationcli."""


class InputValidationError(IntegrationCliError):
    """Invalid user input detected before any network call."""


class ApiError(IntegrationCliError):
    """
    Structured API error returned for HTTP status codes >= 400.

    USAGE:
    ------
    try:
        client.request("GET", url)
    except ApiError as e:
        if e.code == 404:
            ...
    """

    def __init__(self, code: int, message: str | None = None, details: str | None = None) -> None:
        """
        Initialize API error.

        Args:
            code: HTTP status code (e.g., 404, 500)
            message: Error message; defaults to the status description
            details: Raw response body, if any
        """
        self.code = code
        self.message = message or describe_status(code)
        self.details = details
        super().__init__(str(self))

    def __str__(self) -> str:
        base = f"API error ({self.code}): {self.message}"
        if self.details:
            base += f" - {self.details}"
        return base


class TransportError(IntegrationCliError):
    """The HTTP request could not be completed."""


class ResponseDecodeError(IntegrationCliError):
    """A successful response did not contain the expected JSON shape."""


class ResourceNotFoundError(IntegrationCliError):
    """No resource with the requested display name exists."""

    def __init__(self, kind: str, display_name: str) -> None:
        self.kind = kind
        self.display_name = display_name
        super().__init__(f"{kind} not found: {display_name}")


class FileWriteError(IntegrationCliError):
    """Writing an artifact to local storage failed."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"unable to write {path}: {cause}")
