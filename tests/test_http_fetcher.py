"""
Tests for the async HTTP fetch helpers (httpx MockTransport, no network).
"""

import httpx
import pytest

from conftest import html_page, mock_client
from perception_backend.files.document import Document
from perception_backend.files.http_fetcher import (
    HttpFetchResult,
    fetch_as_document,
    fetch_bytes,
    fetch_json,
)


class TestHttpFetchResult:

    def test_encoding_from_content_type(self):
        result = HttpFetchResult(
            ok=True, status=200, headers={"Content-Type": "text/html; charset=ISO-8859-1"}, content=b"caf\xe9"
        )
        assert result.encoding == "ISO-8859-1"
        assert result.text() == "café"

    def test_default_encoding(self):
        result = HttpFetchResult(ok=True, status=200, headers={}, content=b"ok")
        assert result.encoding == "utf-8"

    def test_unknown_charset_falls_back_to_utf8(self):
        result = HttpFetchResult(
            ok=True, status=200, headers={"Content-Type": "text/html; charset=bogus"}, content="café".encode()
        )
        assert result.encoding == "utf-8"
        assert result.text() == "café"


class TestFetchBytes:

    @pytest.mark.asyncio
    async def test_success(self):
        client = mock_client({"https://example.com/p": httpx.Response(200, text="hello")})
        result = await fetch_bytes(client, "https://example.com/p")

        assert result.ok
        assert result.status == 200
        assert result.content == b"hello"
        assert result.final_url is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = mock_client({})
        result = await fetch_bytes(client, "https://example.com/missing")

        assert not result.ok
        assert result.status == 404
        assert result.error == "HTTP 404"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_is_reported(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        result = await fetch_bytes(client, "https://example.com/p")

        assert not result.ok
        assert result.status == 0
        assert "connection refused" in result.error
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_is_reported(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        result = await fetch_bytes(client, "https://example.com/p")

        assert not result.ok
        assert result.error == "Timeout"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_redirect_records_final_url(self):
        client = mock_client({
            "https://example.com/old": httpx.Response(301, headers={"Location": "https://example.com/new"}),
            "https://example.com/new": httpx.Response(200, text="moved"),
        })
        result = await fetch_bytes(client, "https://example.com/old")

        assert result.ok
        assert result.final_url == "https://example.com/new"
        await client.aclose()


class TestFetchAsDocument:

    @pytest.mark.asyncio
    async def test_parses_html(self):
        client = mock_client({
            "https://example.com/p": httpx.Response(200, html=html_page({"@type": "Event"}, title="Hi")),
        })
        doc = await fetch_as_document(client, httpx.URL("https://example.com/p"))

        assert isinstance(doc, Document)
        assert doc.url == "https://example.com/p"
        assert doc.title == "Hi"
        assert doc.json_ld_blocks() == [{"@type": "Event"}]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_failure_returns_none(self):
        client = mock_client({"https://example.com/p": httpx.Response(500)})
        assert await fetch_as_document(client, "https://example.com/p") is None
        await client.aclose()


class TestFetchJson:

    @pytest.mark.asyncio
    async def test_decodes_json(self):
        client = mock_client({"https://example.com/a.json": httpx.Response(200, json={"k": 1})})
        ok, data, error = await fetch_json(client, "https://example.com/a.json")

        assert ok and data == {"k": 1} and error is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unknown_charset_still_decodes(self):
        response = httpx.Response(
            200,
            headers={"Content-Type": "application/json; charset=bogus"},
            content=b'{"k": 1}',
        )
        client = mock_client({"https://example.com/a.json": response})
        ok, data, error = await fetch_json(client, "https://example.com/a.json")

        assert ok and data == {"k": 1} and error is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        client = mock_client({"https://example.com/a.json": httpx.Response(200, text="{nope")})
        ok, data, error = await fetch_json(client, "https://example.com/a.json")

        assert not ok and data is None
        assert error.startswith("JSON parse error")
        await client.aclose()
