"""Unit tests for the Drive auth session, REST client and folder source."""

from datetime import UTC, datetime, timedelta
from typing import Callable, Optional

import httpx
import pytest

from lens_ocr.adapters.drive_auth import (
    AccessToken,
    DriveAuthSession,
    StaticTokenProvider,
    TokenProvider,
)
from lens_ocr.adapters.drive_client import DriveClient, DriveFile
from lens_ocr.errors import AdapterError, AuthError, FetchError, ListingError
from lens_ocr.sources.drive import DriveFolderSource, StaticFolderPicker

BASE_URL = "https://drive.test/drive/v3"
FIXED_NOW = datetime(2026, 3, 14, 9, 30, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


class RotatingTokenProvider(TokenProvider):
    """Hands out the given tokens in order, repeating the last one."""

    def __init__(self, *tokens: str) -> None:
        self.tokens = list(tokens)
        self.calls = 0

    async def acquire(self) -> AccessToken:
        value = self.tokens[min(self.calls, len(self.tokens) - 1)]
        self.calls += 1
        return AccessToken(value=value)


class BrokenTokenProvider(TokenProvider):
    async def acquire(self) -> AccessToken:
        raise ConnectionError("popup closed")


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    session: Optional[DriveAuthSession] = None,
    **kwargs,
) -> DriveClient:
    session = session or DriveAuthSession(StaticTokenProvider("tok"))
    return DriveClient(
        session,
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def listing_response(
    files: list[dict], next_page_token: Optional[str] = None
) -> httpx.Response:
    body: dict = {"files": files}
    if next_page_token:
        body["nextPageToken"] = next_page_token
    return httpx.Response(200, json=body)


class TestDriveAuthSession:
    """Tests for DriveAuthSession."""

    @pytest.mark.asyncio
    async def test_token_is_cached(self) -> None:
        """Test that a valid token is acquired once."""
        provider = RotatingTokenProvider("first", "second")
        session = DriveAuthSession(provider)

        assert await session.get_token() == "first"
        assert await session.get_token() == "first"
        assert provider.calls == 1
        assert session.has_token

    @pytest.mark.asyncio
    async def test_refresh_acquires_new_token(self) -> None:
        """Test that refresh drops the cached token."""
        provider = RotatingTokenProvider("first", "second")
        session = DriveAuthSession(provider)

        await session.get_token()
        assert await session.refresh() == "second"
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_auth_headers(self) -> None:
        """Test bearer header construction."""
        session = DriveAuthSession(StaticTokenProvider("abc"))

        assert await session.auth_headers() == {"Authorization": "Bearer abc"}

    @pytest.mark.asyncio
    async def test_empty_token_rejected(self) -> None:
        """Test that a missing credential is an AuthError."""
        session = DriveAuthSession(StaticTokenProvider(""))

        with pytest.raises(AuthError):
            await session.get_token()

    @pytest.mark.asyncio
    async def test_token_inside_skew_is_expired(self) -> None:
        """Test that a token about to expire is not used."""
        provider = StaticTokenProvider("tok", expires_in=30, clock=fixed_clock)
        session = DriveAuthSession(provider, skew_seconds=60, clock=fixed_clock)

        with pytest.raises(AuthError) as exc_info:
            await session.get_token()

        assert "expired" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_token_expires_over_time(self) -> None:
        """Test that a cached token stops being valid once it expires."""
        now = [FIXED_NOW]
        provider = StaticTokenProvider("tok", expires_in=3600, clock=lambda: now[0])
        session = DriveAuthSession(provider, skew_seconds=60, clock=lambda: now[0])

        assert await session.get_token() == "tok"

        now[0] = FIXED_NOW + timedelta(hours=2)
        assert not session.has_token
        with pytest.raises(AuthError):
            await session.get_token()

    @pytest.mark.asyncio
    async def test_provider_failure_wrapped(self) -> None:
        """Test that provider exceptions surface as AuthError."""
        session = DriveAuthSession(BrokenTokenProvider())

        with pytest.raises(AuthError) as exc_info:
            await session.get_token()

        assert isinstance(exc_info.value.original_error, ConnectionError)


class TestDriveClient:
    """Tests for DriveClient using httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_list_folder_query(self) -> None:
        """Test the listing query parameters and headers."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return listing_response(
                [{"id": "1", "name": "a.png", "mimeType": "image/png"}]
            )

        async with make_client(handler, page_size=200, api_key="k") as client:
            files = await client.list_folder("folder-1")

        assert files == [DriveFile(id="1", name="a.png", mime_type="image/png")]

        request = seen[0]
        assert request.url.path == "/drive/v3/files"
        assert request.headers["Authorization"] == "Bearer tok"
        params = request.url.params
        assert params["q"] == "'folder-1' in parents and trashed=false"
        assert params["fields"] == "nextPageToken, files(id, name, mimeType)"
        assert params["orderBy"] == "name"
        assert params["pageSize"] == "200"
        assert params["key"] == "k"
        assert "pageToken" not in params

    @pytest.mark.asyncio
    async def test_folder_id_is_escaped(self) -> None:
        """Test that quotes in the folder id cannot break the query."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return listing_response([])

        async with make_client(handler) as client:
            await client.list_folder("it's")

        assert seen[0].url.params["q"] == "'it\\'s' in parents and trashed=false"

    @pytest.mark.asyncio
    async def test_list_folder_follows_pages(self) -> None:
        """Test that every listing page is fetched."""
        pages = {
            None: listing_response(
                [{"id": "1", "name": "a.png", "mimeType": "image/png"}], "p2"
            ),
            "p2": listing_response(
                [{"id": "2", "name": "b.png", "mimeType": "image/png"}], "p3"
            ),
            "p3": listing_response(
                [{"id": "3", "name": "c.pdf", "mimeType": "application/pdf"}]
            ),
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return pages[request.url.params.get("pageToken")]

        async with make_client(handler) as client:
            files = await client.list_folder("folder")

        assert [f.id for f in files] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_list_folder_page_cap(self) -> None:
        """Test that an endless listing fails instead of truncating."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return listing_response(
                [{"id": str(len(calls)), "name": "x.png", "mimeType": "image/png"}],
                f"p{len(calls)}",
            )

        async with make_client(handler, max_pages=3) as client:
            with pytest.raises(ListingError):
                await client.list_folder("folder")

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_list_folder_http_error(self) -> None:
        """Test that a server error is a ListingError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "boom"})

        async with make_client(handler) as client:
            with pytest.raises(ListingError) as exc_info:
                await client.list_folder("folder")

        assert isinstance(exc_info.value.original_error, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_list_folder_bad_body(self) -> None:
        """Test that a non-JSON listing is a ListingError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        async with make_client(handler) as client:
            with pytest.raises(ListingError):
                await client.list_folder("folder")

    @pytest.mark.asyncio
    async def test_list_folder_null_files(self) -> None:
        """Test that a null files array is treated as an empty page."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"files": None})

        async with make_client(handler) as client:
            assert await client.list_folder("folder") == []

    @pytest.mark.asyncio
    async def test_list_folder_wrong_shape(self) -> None:
        """Test that a listing body that is not an object is a ListingError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"files": 42})

        async with make_client(handler) as client:
            with pytest.raises(ListingError):
                await client.list_folder("folder")

    @pytest.mark.asyncio
    async def test_unauthorized_refreshes_once(self) -> None:
        """Test that a rejected token is re-acquired and the call retried."""
        provider = RotatingTokenProvider("stale", "fresh")
        session = DriveAuthSession(provider)
        seen_tokens: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            token = request.headers["Authorization"]
            seen_tokens.append(token)
            if token == "Bearer stale":
                return httpx.Response(401)
            return listing_response([])

        async with make_client(handler, session=session) as client:
            assert await client.list_folder("folder") == []

        assert seen_tokens == ["Bearer stale", "Bearer fresh"]
        assert provider.calls == 2

    @pytest.mark.asyncio
    async def test_unauthorized_twice_is_auth_error(self) -> None:
        """Test that a second rejection is reported as AuthError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401)

        async with make_client(handler) as client:
            with pytest.raises(AuthError):
                await client.list_folder("folder")

    @pytest.mark.asyncio
    async def test_download_file(self) -> None:
        """Test downloading raw file content."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"}
            )

        async with make_client(handler) as client:
            data = await client.fetch_bytes("file-9")

        assert data == b"%PDF-1.4"
        assert seen[0].url.path == "/drive/v3/files/file-9"
        assert seen[0].url.params["alt"] == "media"

    @pytest.mark.asyncio
    async def test_download_failure_is_fetch_error(self) -> None:
        """Test that a failed download is a FetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with make_client(handler) as client:
            with pytest.raises(FetchError):
                await client.download_file("missing")

    @pytest.mark.asyncio
    async def test_transport_failure_is_fetch_error(self) -> None:
        """Test that connection failures are wrapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with make_client(handler) as client:
            with pytest.raises(FetchError):
                await client.download_file("f")


class TestDriveFolderSource:
    """Tests for DriveFolderSource."""

    FILES = [
        {"id": "o1", "name": "ocr_out.txt", "mimeType": "text/plain"},
        {"id": "o2", "name": "OCR-results.pdf", "mimeType": "application/pdf"},
        {"id": "s1", "name": "scan1.png", "mimeType": "image/png"},
        {"id": "s2", "name": "scan2.pdf", "mimeType": "application/pdf"},
        {"id": "n1", "name": "notes.docx", "mimeType": "application/msword"},
        {"id": "d1", "name": "subfolder", "mimeType": "application/vnd.google-apps.folder"},
    ]

    def _handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/drive/v3/files":
            return listing_response(self.FILES)
        file_id = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, content=f"content of {file_id}".encode())

    @pytest.mark.asyncio
    async def test_collect_filters_output_and_unsupported(self) -> None:
        """Test prefix and type filtering of the folder listing."""
        session = DriveAuthSession(StaticTokenProvider("tok"))
        async with make_client(self._handler, session=session) as client:
            source = DriveFolderSource(session, StaticFolderPicker("folder"), client)
            listing = await source.collect()

        assert [item.name for item in listing.items] == ["scan1.png", "scan2.pdf"]
        assert all(item.is_deferred for item in listing.items)
        assert listing.items[1].media_type == "application/pdf"
        assert listing.selected_count == 6
        assert listing.skipped_by_prefix == 2
        assert listing.skipped_by_type == 2
        assert listing.notes[0] == "Drive access granted"
        assert listing.notes[1] == (
            "Listed 6 files: 2 queued, 2 skipped as previous output, "
            "2 skipped as unsupported"
        )

    @pytest.mark.asyncio
    async def test_items_download_on_resolve(self) -> None:
        """Test that deferred items fetch through the Drive client."""
        session = DriveAuthSession(StaticTokenProvider("tok"))
        async with make_client(self._handler, session=session) as client:
            source = DriveFolderSource(session, StaticFolderPicker("folder"), client)
            listing = await source.collect()

            assert await listing.items[0].resolve() == b"content of s1"

    @pytest.mark.asyncio
    async def test_missing_token_stops_before_listing(self) -> None:
        """Test that no listing call is made without a credential."""
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return listing_response([])

        session = DriveAuthSession(StaticTokenProvider(""))
        async with make_client(handler, session=session) as client:
            source = DriveFolderSource(session, StaticFolderPicker("folder"), client)
            with pytest.raises(AuthError):
                await source.collect()

        assert calls == []

    @pytest.mark.asyncio
    async def test_empty_folder_pick(self) -> None:
        """Test that a cancelled pick is an AdapterError."""
        session = DriveAuthSession(StaticTokenProvider("tok"))
        async with make_client(self._handler, session=session) as client:
            source = DriveFolderSource(session, StaticFolderPicker("  "), client)
            with pytest.raises(AdapterError):
                await source.collect()

    @pytest.mark.asyncio
    async def test_custom_output_prefix(self) -> None:
        """Test that the output prefix is configurable."""
        session = DriveAuthSession(StaticTokenProvider("tok"))
        async with make_client(self._handler, session=session) as client:
            source = DriveFolderSource(
                session, StaticFolderPicker("folder"), client, output_prefix="scan"
            )
            listing = await source.collect()

        assert [item.name for item in listing.items] == ["OCR-results.pdf"]
        assert listing.skipped_by_prefix == 2

    @pytest.mark.asyncio
    async def test_three_file_listing(self) -> None:
        """Test one previous output, one scan and one unsupported document."""

        def handler(request: httpx.Request) -> httpx.Response:
            return listing_response(
                [
                    {"id": "1", "name": "ocr_out.txt", "mimeType": "text/plain"},
                    {"id": "2", "name": "scan1.png", "mimeType": "image/png"},
                    {"id": "3", "name": "notes.docx", "mimeType": "application/msword"},
                ]
            )

        session = DriveAuthSession(StaticTokenProvider("tok"))
        async with make_client(handler, session=session) as client:
            source = DriveFolderSource(session, StaticFolderPicker("folder"), client)
            listing = await source.collect()

        assert [item.name for item in listing.items] == ["scan1.png"]
        assert listing.skipped_by_prefix == 1
        assert listing.skipped_by_type == 1
