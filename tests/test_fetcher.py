"""Tests for the aiohttp page fetcher against a local test server."""

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from site_auditor.exceptions import FetchError
from site_auditor.modules.technical_audit.fetcher import PageFetcher


def _make_app() -> web.Application:
    async def home(request: web.Request) -> web.Response:
        return web.Response(
            text="<title>Home</title>",
            content_type="text/html",
            headers={"X-Robots-Tag": "noindex", "X-Seen-UA": request.headers.get("User-Agent", "")},
        )

    async def moved(request: web.Request) -> web.Response:
        raise web.HTTPFound("/")

    async def missing(request: web.Request) -> web.Response:
        return web.Response(status=404, text="nope")

    app = web.Application()
    app.router.add_get("/", home)
    app.router.add_get("/old", moved)
    app.router.add_get("/missing", missing)
    return app


class TestPageFetcher:

    @pytest.mark.asyncio
    async def test_fetch_ok(self):
        async with TestServer(_make_app()) as server:
            page = await PageFetcher(user_agent="AuditTest/1.0").fetch(str(server.make_url("/")))
        assert page.ok
        assert page.status == 200
        assert page.text == "<title>Home</title>"
        assert page.header("X-Robots-Tag") == "noindex"
        assert page.headers["x-seen-ua"] == "AuditTest/1.0"

    @pytest.mark.asyncio
    async def test_redirect_is_followed(self):
        async with TestServer(_make_app()) as server:
            page = await PageFetcher().fetch(str(server.make_url("/old")))
            assert page.ok
            assert page.url == str(server.make_url("/"))

    @pytest.mark.asyncio
    async def test_non_2xx_is_returned_not_raised(self):
        async with TestServer(_make_app()) as server:
            fetcher = PageFetcher()
            page = await fetcher.fetch(str(server.make_url("/missing")))
            optional = await fetcher.fetch_optional(str(server.make_url("/missing")))
        assert page.status == 404
        assert not page.ok
        assert optional is None

    @pytest.mark.asyncio
    async def test_connection_failure_raises_fetch_error(self):
        url = f"http://127.0.0.1:{unused_port()}/"
        with pytest.raises(FetchError) as exc_info:
            await PageFetcher(request_timeout=5).fetch(url)
        assert exc_info.value.url == url
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_fetch_optional_swallows_connection_failure(self):
        url = f"http://127.0.0.1:{unused_port()}/robots.txt"
        assert await PageFetcher(request_timeout=5).fetch_optional(url) is None
