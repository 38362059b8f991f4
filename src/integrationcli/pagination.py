# ABOUTME: Paginated list, find, and export over API collections
# ABOUTME: Shared by auth configs, certificates, and connections

"""
Paginated resource harvesting.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

Auth configs, certificates and connections are all listed the same way:

    GET {collection}?pageSize=..&pageToken=..&filter=..&orderBy=..

    {
      "<itemsKey>": [ {"name": "projects/.../authConfigs/123",
                       "displayName": "my-cred", ...}, ... ],
      "nextPageToken": "abc"          <- absent or "" on the last page
    }

PaginatedCollection implements the four operations built on that shape once:

    list_page   one page, raw bytes (what `... list` prints)
    fetch_page  one page, decoded into a Page
    find        walk pages until a displayName matches, return its short id
    export      walk every page, write each raw body to <prefix>_<N>.json

=============================================================================
PAGE TOKENS
=============================================================================

Pages are fetched strictly one after another. The nextPageToken of page N
is sent as pageToken of request N+1; an empty token ends the walk. The
walk is a plain loop with no page cap, so memory use does not grow with
the number of pages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from integrationcli.errors import ResourceNotFoundError, ResponseDecodeError
from integrationcli.utils.client import decode_json
from integrationcli.utils.files import ensure_folder, write_bytes

if TYPE_CHECKING:
    from collections.abc import Iterator

    from integrationcli.utils.client import IntegrationClient

logger = structlog.get_logger(__name__)

EXPORT_PAGE_SIZE = 100


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class ResourceSummary:
    """The two fields of a resource that pagination cares about."""

    name: str
    display_name: str

    @property
    def short_id(self) -> str:
        """Trailing segment of the resource name ("projects/p/.../authConfigs/123" -> "123")."""
        return self.name.rsplit("/", 1)[-1]

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> ResourceSummary:
        return cls(
            name=str(data.get("name", "")),
            display_name=str(data.get("displayName", "")),
        )


@dataclass
class Page:
    """
    One decoded page of a list response.

    Fields:
    -------
    - items: Resources on this page, as returned by the API
    - next_page_token: Token for the next page ("" on the last page)
    - raw: The response body exactly as received
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    next_page_token: str = ""
    raw: bytes = b""

    @classmethod
    def from_response(cls, raw: bytes, items_key: str) -> Page:
        """
        Decode a list response.

        A missing items key means an empty page.

        Raises:
            ResponseDecodeError: If the body, the items array, or the token
                do not have the expected JSON types.
        """
        data = decode_json(raw)

        items = data.get(items_key) or []
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise ResponseDecodeError(f"unexpected response shape: {items_key} must be an array of objects")

        token = data.get("nextPageToken") or ""
        if not isinstance(token, str):
            raise ResponseDecodeError("unexpected response shape: nextPageToken must be a string")

        return cls(items=items, next_page_token=token, raw=raw)

    @property
    def is_last(self) -> bool:
        return not self.next_page_token

    def summaries(self) -> list[ResourceSummary]:
        return [ResourceSummary.from_api_response(item) for item in self.items]


# =============================================================================
# PAGINATED COLLECTION
# =============================================================================


class PaginatedCollection:
    """
    List/find/export over one API collection.

    USAGE:
    ------
        certs = PaginatedCollection(
            client,
            url=f"{settings.integrations_url}/certificates",
            items_key="certificates",
            kind="certificate",
            export_prefix="certificates",
        )
        cert_id = certs.find("my-cert")
        certs.export("./out")   # writes ./out/certificates_1.json, ...
    """

    def __init__(
        self,
        client: IntegrationClient,
        url: str,
        items_key: str,
        kind: str,
        export_prefix: str | None = None,
    ) -> None:
        """
        Args:
            client: Open IntegrationClient
            url: Collection URL (no trailing slash)
            items_key: Name of the items array in list responses
            kind: Resource kind used in not-found messages
            export_prefix: File name prefix for exports (defaults to items_key)
        """
        self._client = client
        self.url = url
        self.items_key = items_key
        self.kind = kind
        self.export_prefix = export_prefix or items_key.lower()

    def list_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
        order_by: str = "",
    ) -> bytes:
        """
        Fetch one page and return the raw body.

        page_size == -1 omits pageSize (server default); empty strings omit
        their query parameter.
        """
        params: dict[str, Any] = {
            "pageToken": page_token,
            "filter": filter,
            "orderBy": order_by,
        }
        if page_size != -1:
            params["pageSize"] = page_size
        return self._client.request("GET", self.url, params=params)

    def fetch_page(
        self,
        page_size: int = -1,
        page_token: str = "",
        filter: str = "",  # noqa: A002 - API parameter name
        order_by: str = "",
    ) -> Page:
        """Fetch one page and decode it."""
        raw = self.list_page(page_size, page_token, filter, order_by)
        return Page.from_response(raw, self.items_key)

    def iter_pages(
        self,
        page_size: int = -1,
        filter: str = "",  # noqa: A002 - API parameter name
    ) -> Iterator[Page]:
        """Yield pages in order, forwarding each nextPageToken to the next request."""
        page_token = ""
        while True:
            page = self.fetch_page(page_size, page_token, filter)
            yield page
            if page.is_last:
                return
            page_token = page.next_page_token

    def find(self, display_name: str) -> str:
        """
        Return the short id of the first resource whose displayName matches.

        Matching is exact and case-sensitive. Paging stops at the first match.

        Raises:
            ResourceNotFoundError: If no page contains a match.
        """
        for page in self.iter_pages():
            for summary in page.summaries():
                if summary.display_name == display_name:
                    logger.debug("Resource found", kind=self.kind, name=summary.name)
                    return summary.short_id
        raise ResourceNotFoundError(self.kind, display_name)

    def export(self, folder: str | Path, page_size: int = EXPORT_PAGE_SIZE) -> list[Path]:
        """
        Write every page, verbatim, to ``<folder>/<prefix>_<N>.json``.

        N starts at 1 and follows fetch order. A failed write stops the
        export; files already written are left in place. In dry-run mode no
        file is written.

        Returns:
            Paths of the written files.
        """
        target = ensure_folder(folder)
        written: list[Path] = []
        for number, page in enumerate(self.iter_pages(page_size=page_size), start=1):
            file_name = f"{self.export_prefix}_{number}.json"
            if self._client.settings.dry_run:
                logger.info(f"Dry run, not writing {file_name}", kind=self.kind)
                continue
            written.append(write_bytes(target / file_name, page.raw))
            logger.info(f"Downloaded {file_name}", kind=self.kind, items=len(page.items))
        return written
