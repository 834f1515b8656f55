"""Tests for the async HTTP client against a local aiohttp server."""

import asyncio

import pytest

aiohttp_mod = pytest.importorskip("aiohttp")

from aiohttp import web
from aiohttp.test_utils import TestServer

from common.errors import MalformedManifest, TransportError
from common.http_client import HttpClient
from gather.cancellation import CancellationToken
from gather.fetcher import ManifestFetcher
from gather.models import FetchStrategy, WorkItem


def _app(seen):
    async def _json(request):
        seen.append(dict(request.headers))
        return web.json_response([{"tag_name": "v1"}], headers={"Link": '<http://x/?page=2>; rel="next"'})

    async def _text(request):
        return web.Response(text='\ufeff{"name": "pkg"}', content_type="application/json")

    async def _bytes(request):
        return web.Response(body=b"\x00\x01zip", content_type="application/zip")

    async def _missing(request):
        return web.Response(status=404, text="Not Found")

    async def _html(request):
        return web.Response(text="<html></html>", content_type="text/html")

    async def _latin1(request):
        return web.Response(body=b'{"name": "p\xff", "version": "1.0.0"}', content_type="application/json")

    async def _slow(request):
        await asyncio.sleep(3)
        return web.json_response([])

    app = web.Application()
    app.router.add_get("/json", _json)
    app.router.add_get("/text", _text)
    app.router.add_get("/bytes", _bytes)
    app.router.add_get("/missing", _missing)
    app.router.add_get("/html", _html)
    app.router.add_get("/latin1", _latin1)
    app.router.add_get("/slow", _slow)
    return app


class TestHttpClient:
    """Requests, headers and status handling."""

    def test_get_json_sends_auth_and_returns_headers(self):
        """Bearer token and user agent are sent; header names come back lowercased."""
        seen = []

        async def _run():
            async with TestServer(_app(seen)) as ts:
                async with HttpClient(token="secret", user_agent="pristine-listing/test") as client:
                    return await client.get_json(str(ts.make_url("/json")), context="releases")

        data, headers = asyncio.run(_run())

        assert data == [{"tag_name": "v1"}]
        assert headers["link"] == '<http://x/?page=2>; rel="next"'
        assert seen[0]["Authorization"] == "Bearer secret"
        assert seen[0]["User-Agent"] == "pristine-listing/test"

    def test_anonymous_client_sends_no_authorization(self):
        """Without a token no Authorization header is sent."""
        seen = []

        async def _run():
            async with TestServer(_app(seen)) as ts:
                async with HttpClient() as client:
                    await client.get_json(str(ts.make_url("/json")), context="listing")

        asyncio.run(_run())
        assert "Authorization" not in seen[0]

    def test_get_text_and_bytes(self):
        """Text is decoded with the BOM stripped; bytes are returned raw."""
        async def _run():
            async with TestServer(_app([])) as ts:
                async with HttpClient() as client:
                    text = await client.get_text(str(ts.make_url("/text")), context="manifest")
                    body = await client.get_bytes(str(ts.make_url("/bytes")), context="archive")
                    return text, body

        text, body = asyncio.run(_run())
        assert text == '{"name": "pkg"}'
        assert body == b"\x00\x01zip"

    def test_non_success_status_raises(self):
        """Any non-2xx response is a TransportError carrying the status."""
        async def _run():
            async with TestServer(_app([])) as ts:
                async with HttpClient() as client:
                    await client.get_text(str(ts.make_url("/missing")), context="manifest")

        with pytest.raises(TransportError) as excinfo:
            asyncio.run(_run())
        assert excinfo.value.status == 404

    def test_non_json_body_raises(self):
        """get_json rejects bodies that are not JSON."""
        async def _run():
            async with TestServer(_app([])) as ts:
                async with HttpClient() as client:
                    await client.get_json(str(ts.make_url("/html")), context="listing")

        with pytest.raises(TransportError):
            asyncio.run(_run())

    def test_json_that_is_not_utf8_raises(self):
        """A body that does not decode is a TransportError, not a decode crash."""
        async def _run():
            async with TestServer(_app([])) as ts:
                async with HttpClient() as client:
                    await client.get_json(str(ts.make_url("/latin1")), context="listing")

        with pytest.raises(TransportError, match="not UTF-8"):
            asyncio.run(_run())

    def test_manifest_that_is_not_utf8_is_malformed(self):
        """The manifest-only path reports undecodable package.json as malformed."""
        async def _run():
            async with TestServer(_app([])) as ts:
                async with HttpClient() as client:
                    item = WorkItem(
                        fetch_url=str(ts.make_url("/latin1")),
                        download_url="https://dl.example/pkg.zip",
                        download_count=0,
                        strategy=FetchStrategy.MANIFEST_ONLY,
                    )
                    await ManifestFetcher(client).fetch(item, CancellationToken())

        with pytest.raises(MalformedManifest, match="not UTF-8"):
            asyncio.run(_run())

    def test_timeout_raises_transport_error(self):
        """An expired request timeout is a connection failure."""
        async def _run():
            async with TestServer(_app([])) as ts:
                async with HttpClient(timeout=1) as client:
                    await client.get_json(str(ts.make_url("/slow")), context="releases")

        with pytest.raises(TransportError) as excinfo:
            asyncio.run(_run())
        assert excinfo.value.status is None
        assert excinfo.value.detail == "timed out"
