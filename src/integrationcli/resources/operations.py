# ABOUTME: Long-running operation helpers for Integration Connectors
# ABOUTME: Get, list, cancel, and poll operations until they complete

"""
Connector long-running operations.

Creating a connection returns an Operation rather than the connection:

    {"name": "projects/p/locations/r/operations/operation-1690000000-abc",
     "done": false}

The operation is polled (GET {operations_url}/{id}) until "done" is true;
a finished operation carries either "response" or "error".
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog
from tenacity import Retrying, retry_if_result, wait_fixed

from integrationcli.errors import IntegrationCliError
from integrationcli.pagination import PaginatedCollection

if TYPE_CHECKING:
    from collections.abc import Callable

    from tenacity import RetryCallState

    from integrationcli.config import ClientSettings
    from integrationcli.utils.client import IntegrationClient

logger = structlog.get_logger(__name__)

# Seconds between two polls of a running operation
POLL_INTERVAL = 10


class OperationFailedError(IntegrationCliError):
    """A long-running operation finished with an error."""

    def __init__(self, name: str, error: dict[str, Any]) -> None:
        self.name = name
        self.error = error
        super().__init__(f"operation {name} completed with error: {error.get('message', error)}")


def operation_id(name: str) -> str:
    """Trailing segment of an operation name (full names and bare ids both work)."""
    return name.rsplit("/", 1)[-1]


def _still_running(operation: dict[str, Any]) -> bool:
    return not operation.get("done", False)


class Operations:
    """Operations on the connector operations collection."""

    def __init__(
        self,
        client: IntegrationClient,
        settings: ClientSettings | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._settings = settings or client.settings
        self._sleep = sleep
        self.url = self._settings.operations_url
        self.collection = PaginatedCollection(
            client,
            url=self.url,
            items_key="operations",
            kind="operation",
        )

    def get(self, name: str) -> bytes:
        return self._client.request("GET", f"{self.url}/{operation_id(name)}")

    def get_json(self, name: str) -> dict[str, Any]:
        return self._client.request_json("GET", f"{self.url}/{operation_id(name)}")

    def list_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
        order_by: str = "",
    ) -> bytes:
        return self.collection.list_page(page_size, page_token, filter, order_by)

    def cancel(self, name: str) -> bytes:
        return self._client.request("POST", f"{self.url}/{operation_id(name)}:cancel")

    def wait(self, name: str, interval: float = POLL_INTERVAL) -> dict[str, Any]:
        """
        Poll an operation until it is done.

        There is no overall timeout; the API eventually finishes or fails
        every operation. Errors from the polling GET stop the wait.

        Returns:
            The finished operation.

        Raises:
            OperationFailedError: If the operation finished with an error.
        """
        op_id = operation_id(name)
        log = logger.bind(operation=op_id)
        if self._settings.dry_run:
            log.info("Dry run, not waiting for operation")
            return {}
        log.info(f"Checking operation status in {interval} seconds")

        def _log_poll(retry_state: RetryCallState) -> None:
            log.info(f"Operation still running, waiting {interval} seconds", attempt=retry_state.attempt_number)

        retryer = Retrying(
            retry=retry_if_result(_still_running),
            wait=wait_fixed(interval),
            sleep=self._sleep,
            before_sleep=_log_poll,
            reraise=True,
        )
        self._sleep(interval)
        operation = retryer(self.get_json, op_id)

        if operation.get("error"):
            log.error("Operation completed with error", error=operation["error"])
            raise OperationFailedError(op_id, operation["error"])
        log.info("Operation completed successfully")
        return operation
