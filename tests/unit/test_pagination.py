# ABOUTME: Unit tests for paginated list, find, and export
# ABOUTME: Tests page token forwarding, display-name lookup, and page file writes

import json

import httpx
import pytest
import respx

from integrationcli.errors import (
    ApiError,
    FileWriteError,
    InputValidationError,
    ResourceNotFoundError,
    ResponseDecodeError,
)
from integrationcli.pagination import EXPORT_PAGE_SIZE, Page, PaginatedCollection, ResourceSummary
from integrationcli.utils.client import IntegrationClient

URL = "https://us-central1-integrations.googleapis.com/v1/projects/test-project/locations/us-central1/certificates"


def page(items, token=""):
    body = {"certificates": items}
    if token:
        body["nextPageToken"] = token
    return httpx.Response(200, content=json.dumps(body).encode())


def cert(cert_id, display_name):
    return {
        "name": f"projects/test-project/locations/us-central1/certificates/{cert_id}",
        "displayName": display_name,
    }


@pytest.fixture
def collection(client) -> PaginatedCollection:
    return PaginatedCollection(client, url=URL, items_key="certificates", kind="certificate")


@pytest.mark.unit
class TestResourceSummary:
    """Tests for ResourceSummary."""

    def test_short_id(self):
        """Test the trailing name segment is the id."""
        summary = ResourceSummary.from_api_response(cert("123", "web"))

        assert summary.short_id == "123"
        assert summary.display_name == "web"

    def test_missing_fields(self):
        """Test missing fields become empty strings."""
        summary = ResourceSummary.from_api_response({})

        assert summary.name == ""
        assert summary.short_id == ""


@pytest.mark.unit
class TestPage:
    """Tests for Page.from_response."""

    def test_decodes_items_and_token(self):
        """Test items and token are read."""
        raw = json.dumps({"certificates": [cert("1", "a")], "nextPageToken": "t2"}).encode()

        decoded = Page.from_response(raw, "certificates")

        assert len(decoded.items) == 1
        assert decoded.next_page_token == "t2"
        assert decoded.raw == raw
        assert not decoded.is_last

    def test_missing_items_is_empty_page(self):
        """Test an empty object is an empty last page."""
        decoded = Page.from_response(b"{}", "certificates")

        assert decoded.items == []
        assert decoded.is_last

    def test_items_must_be_array(self):
        """Test a non-array items field is rejected."""
        with pytest.raises(ResponseDecodeError):
            Page.from_response(b'{"certificates": {"a": 1}}', "certificates")

    def test_token_must_be_string(self):
        """Test a non-string token is rejected."""
        with pytest.raises(ResponseDecodeError):
            Page.from_response(b'{"certificates": [], "nextPageToken": 5}', "certificates")


@pytest.mark.unit
class TestListPage:
    """Tests for PaginatedCollection.list_page."""

    @respx.mock
    def test_default_omits_all_params(self, collection):
        """Test page size -1 and empty strings send no query."""
        route = respx.get(URL).mock(return_value=page([]))

        collection.list_page()

        assert "?" not in str(route.calls[0].request.url)

    @respx.mock
    def test_sends_given_params(self, collection):
        """Test set values are sent under the API names."""
        route = respx.get(URL).mock(return_value=page([]))

        collection.list_page(page_size=5, page_token="tok", filter="displayName=web", order_by="name")

        params = route.calls[0].request.url.params
        assert params["pageSize"] == "5"
        assert params["pageToken"] == "tok"
        assert params["filter"] == "displayName=web"
        assert params["orderBy"] == "name"

    @respx.mock
    def test_returns_raw_body(self, collection):
        """Test the body is returned unchanged."""
        respx.get(URL).mock(return_value=httpx.Response(200, content=b'{"certificates":[]}'))

        assert collection.list_page() == b'{"certificates":[]}'


@pytest.mark.unit
class TestFind:
    """Tests for PaginatedCollection.find."""

    @respx.mock
    def test_match_on_first_page(self, collection):
        """Test the id of the first match is returned."""
        route = respx.get(URL).mock(return_value=page([cert("1", "a"), cert("2", "b")], token="t2"))

        assert collection.find("b") == "2"
        assert route.call_count == 1

    @respx.mock
    def test_walks_pages_forwarding_tokens(self, collection):
        """Test each nextPageToken is sent on the following request."""
        route = respx.get(URL).mock(
            side_effect=[
                page([cert("1", "a")], token="t2"),
                page([cert("2", "b")], token="t3"),
                page([cert("3", "c")]),
            ]
        )

        assert collection.find("c") == "3"

        assert route.call_count == 3
        assert "pageToken" not in route.calls[0].request.url.params
        assert route.calls[1].request.url.params["pageToken"] == "t2"
        assert route.calls[2].request.url.params["pageToken"] == "t3"

    @respx.mock
    def test_first_match_wins(self, collection):
        """Test duplicates resolve to the earliest resource."""
        respx.get(URL).mock(return_value=page([cert("1", "dup"), cert("2", "dup")]))

        assert collection.find("dup") == "1"

    @respx.mock
    def test_match_is_case_sensitive(self, collection):
        """Test display names must match exactly."""
        respx.get(URL).mock(return_value=page([cert("1", "Web")]))

        with pytest.raises(ResourceNotFoundError):
            collection.find("web")

    @respx.mock
    def test_not_found_after_last_page(self, collection):
        """Test a miss on every page raises ResourceNotFoundError."""
        route = respx.get(URL).mock(
            side_effect=[page([cert("1", "a")], token="t2"), page([cert("2", "b")])]
        )

        with pytest.raises(ResourceNotFoundError, match="certificate not found: zzz"):
            collection.find("zzz")

        assert route.call_count == 2

    @respx.mock
    def test_error_stops_walk(self, collection):
        """Test an API error on a later page propagates."""
        respx.get(URL).mock(
            side_effect=[page([cert("1", "a")], token="t2"), httpx.Response(500)]
        )

        with pytest.raises(ApiError):
            collection.find("zzz")


@pytest.mark.unit
class TestExport:
    """Tests for PaginatedCollection.export."""

    @respx.mock
    def test_writes_one_file_per_page(self, collection, tmp_path):
        """Test pages are written verbatim and numbered from 1."""
        first = page([cert("1", "a")], token="t2")
        second = page([cert("2", "b")])
        expected = [first.content, second.content]
        route = respx.get(URL).mock(side_effect=[first, second])

        written = collection.export(tmp_path)

        assert [p.name for p in written] == ["certificates_1.json", "certificates_2.json"]
        assert (tmp_path / "certificates_1.json").read_bytes() == expected[0]
        assert (tmp_path / "certificates_2.json").read_bytes() == expected[1]
        assert route.calls[0].request.url.params["pageSize"] == str(EXPORT_PAGE_SIZE)
        assert route.calls[1].request.url.params["pageToken"] == "t2"

    @respx.mock
    def test_single_page(self, collection, tmp_path):
        """Test a one-page collection writes one file."""
        respx.get(URL).mock(return_value=page([]))

        written = collection.export(tmp_path)

        assert len(written) == 1

    @respx.mock
    def test_custom_prefix(self, client, tmp_path):
        """Test the export prefix names the files."""
        respx.get(URL).mock(return_value=page([]))
        custom = PaginatedCollection(
            client, url=URL, items_key="certificates", kind="certificate", export_prefix="certs"
        )

        custom.export(tmp_path)

        assert (tmp_path / "certs_1.json").exists()

    def test_missing_folder(self, collection, tmp_path):
        """Test exporting into a missing folder fails before any request."""
        with pytest.raises(InputValidationError):
            collection.export(tmp_path / "missing")

    @respx.mock
    def test_write_failure_stops_export(self, collection, tmp_path, monkeypatch):
        """Test a failed write aborts and keeps earlier files."""
        route = respx.get(URL).mock(
            side_effect=[page([cert("1", "a")], token="t2"), page([cert("2", "b")])]
        )
        real_write = type(tmp_path).write_bytes

        def failing_write(self, data):
            if self.name == "certificates_2.json":
                raise OSError("disk full")
            return real_write(self, data)

        monkeypatch.setattr(type(tmp_path), "write_bytes", failing_write)

        with pytest.raises(FileWriteError, match="disk full"):
            collection.export(tmp_path)

        assert (tmp_path / "certificates_1.json").exists()
        assert route.call_count == 2

    @respx.mock
    def test_dry_run_writes_nothing(self, settings, tmp_path):
        """Test dry run sends no request and leaves the folder empty."""
        route = respx.get(URL).mock(return_value=page([cert("1", "a")]))

        with IntegrationClient(settings.model_copy(update={"dry_run": True})) as client:
            written = PaginatedCollection(client, url=URL, items_key="certificates", kind="certificate").export(
                tmp_path
            )

        assert written == []
        assert list(tmp_path.iterdir()) == []
        assert not route.called
