# ABOUTME: Structured logging with invocation IDs for integrationcli
# ABOUTME: Sends logs to stderr and pretty-printed API responses to stdout

"""
Structured logging and response output.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

A CLI has two output streams with very different audiences:

1. STDOUT carries the RESULT: the API response, pretty-printed as JSON, so
   it can be piped into `jq` or redirected into a file.

2. STDERR carries the DIAGNOSTICS: structured log lines produced by
   structlog ("Downloaded authconfigs_1.json", debug traces of each HTTP
   call, warnings about ignored conflicts).

Keeping them apart means `integrationcli connectors get ... > conn.json`
produces a clean JSON file even with --log-level DEBUG.

=============================================================================
INVOCATION IDs
=============================================================================

A single command can issue many HTTP calls (an export walks every page, an
import creates many connections, --wait polls an operation). Every log line
of one invocation carries the same short `invocation_id`, so

    integrationcli --json-logs connectors import ... 2> log.json
    jq 'select(.invocation_id == "a3f8c2d1")' log.json

isolates one run when logs from several runs are collected together.

The id lives in a ContextVar, the same mechanism structlog itself uses for
bound context variables.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

import click
import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from integrationcli.config import ClientSettings


# =============================================================================
# INVOCATION ID MANAGEMENT
# =============================================================================

invocation_id: ContextVar[str] = ContextVar("invocation_id", default="")


def get_invocation_id() -> str:
    """
    Get the current invocation ID, generating one on first use.

    Returns:
        8-character invocation ID string.
    """
    iid = invocation_id.get()
    if not iid:
        iid = str(uuid.uuid4())[:8]
        invocation_id.set(iid)
    return iid


def set_invocation_id(iid: str) -> None:
    """Set the invocation ID for the current context ("" forces a new one)."""
    invocation_id.set(iid)


def add_invocation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor adding the invocation ID to every event."""
    event_dict["invocation_id"] = get_invocation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging for one CLI invocation.

    PROCESSOR PIPELINE:
    -------------------
    1. merge_contextvars: Adds values bound with bind_contextvars()
    2. add_log_level: Adds "level" field
    3. TimeStamper: Adds ISO-format timestamp
    4. add_invocation_id: Adds our invocation ID
    5. Renderer: JSON lines or colored console text

    Logs are written to STDERR; stdout is reserved for API responses.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
               The default (INFO) shows progress such as export files.
        json_output: If True, one JSON object per line. If False,
                     human-readable console output.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_invocation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # Reconfiguring within one process (tests, CliRunner) must take effect
        cache_logger_on_first_use=False,
    )


# =============================================================================
# RESPONSE OUTPUT
# =============================================================================


def format_response(body: bytes | str | dict[str, Any] | list[Any]) -> str:
    """
    Pretty-print a response body as indented JSON.

    Bodies that are not valid JSON are returned unchanged (decoded as UTF-8).
    """
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=2)
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    if not text.strip():
        return ""
    try:
        return json.dumps(json.loads(text), indent=2)
    except ValueError:
        return text


def print_response(
    body: bytes | str | dict[str, Any] | list[Any] | None,
    settings: ClientSettings,
) -> None:
    """Write a response body to stdout unless output is disabled."""
    if body is None or settings.no_output:
        return
    text = format_response(body)
    if text:
        click.echo(text)
