# File: tests/test_crawler.py
# Render context, fetcher and discovery against a local aiohttp server
from __future__ import annotations

import json
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientError, web

from site_binder.config import BinderConfig
from site_binder.crawler.renderer import HttpRenderContext, RenderContext, launch_render_context
from site_binder.crawler.sitemap import SitemapDiscoverer
from site_binder.engine import start_conversion
from site_binder.errors import BinderError

PNG = b"\x89PNG\r\n\x1a\nserver-png"


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


def _html(title: str, body: str) -> web.Response:
    return web.Response(
        text=f"<html><head><title>{title}</title></head><body><main>{body}</main></body></html>",
        content_type="text/html",
    )


# --------------------------------------------------------------------------- #
#                            Test-server fixtures                             #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def test_server(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()
    app["flaky_hits"] = 0

    async def handle_root(_):
        return _html(
            "Home",
            '<h1>Welcome</h1><a href="/page1">Page1</a> <a href="/page2">Page2</a>'
            ' <a href="https://elsewhere.org/">Away</a>',
        )

    async def handle_page1(_):
        return _html("Page One", '<p>First</p><img src="/logo.png" alt="logo"><a href="/page3">Page3</a>')

    async def handle_page2(_):
        return _html("Page Two", "<p>Second</p>")

    async def handle_page3(_):
        return _html("Page Three", "<p>Third</p>")

    async def handle_logo(_):
        return web.Response(body=PNG, content_type="image/png")

    async def handle_flaky(request):
        request.app["flaky_hits"] += 1
        if request.app["flaky_hits"] < 2:
            return web.Response(status=500, text="try again")
        return _html("Flaky", "<p>Recovered</p>")

    async def handle_missing(request):
        request.app["missing_hits"] = request.app.get("missing_hits", 0) + 1
        raise web.HTTPNotFound()

    async def handle_redirect(_):
        raise web.HTTPFound("/page2")

    async def handle_json(_):
        return web.json_response({"ok": True})

    async def handle_hits(request):
        return web.json_response({"flaky": request.app["flaky_hits"], "missing": request.app.get("missing_hits", 0)})

    app.router.add_get("/", handle_root)
    app.router.add_get("/page1", handle_page1)
    app.router.add_get("/page2", handle_page2)
    app.router.add_get("/page3", handle_page3)
    app.router.add_get("/logo.png", handle_logo)
    app.router.add_get("/flaky", handle_flaky)
    app.router.add_get("/missing", handle_missing)
    app.router.add_get("/moved", handle_redirect)
    app.router.add_get("/data.json", handle_json)
    app.router.add_get("/hits", handle_hits)

    async for url in _serve_app(app, unused_tcp_port):
        yield url


@pytest.fixture()
def config(tmp_path) -> BinderConfig:
    return BinderConfig(timeout=5.0, title_timeout=2.0, retry_times=2, output_root=tmp_path / "out")


# --------------------------------------------------------------------------- #
#                                   Tests                                     #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_http_context_fetches_pages(config, test_server: str):
    async with HttpRenderContext(config) as context:
        assert isinstance(context, RenderContext)
        page = await context.fetch_page(f"{test_server}/page1")
        assert "First" in page.html
        assert await context.fetch_title(f"{test_server}/page2") == "Page Two"
        links = await context.fetch_links(test_server, "localhost")
        assert [link.url for link in links] == [f"{test_server}/page1", f"{test_server}/page2"]
        body, content_type = await context.fetch_resource(f"{test_server}/logo.png")
        assert body == PNG
        assert content_type == "image/png"
        assert await context.screenshot(test_server) is None


@pytest.mark.asyncio()
async def test_http_context_follows_redirects(config, test_server: str):
    async with HttpRenderContext(config) as context:
        page = await context.fetch_page(f"{test_server}/moved")
    assert page.final_url == f"{test_server}/page2"
    assert "Second" in page.html


@pytest.mark.asyncio()
async def test_server_errors_are_retried(config, test_server: str):
    async with HttpRenderContext(config) as context:
        page = await context.fetch_page(f"{test_server}/flaky")
        assert "Recovered" in page.html
        missing_failed = False
        try:
            await context.fetch_page(f"{test_server}/missing")
        except ClientError:
            missing_failed = True
        body, _ = await context.fetch_resource(f"{test_server}/hits")

    assert missing_failed
    assert json.loads(body) == {"flaky": 2, "missing": 1}


@pytest.mark.asyncio()
async def test_non_html_page_is_rejected(config, test_server: str):
    async with HttpRenderContext(config) as context:
        with pytest.raises(ClientError):
            await context.fetch_page(f"{test_server}/data.json")


@pytest.mark.asyncio()
async def test_launch_render_context_defaults_to_http(config):
    context = await launch_render_context(config)
    try:
        assert isinstance(context, HttpRenderContext)
    finally:
        await context.close()


@pytest.mark.asyncio()
async def test_discovery_over_http(config, test_server: str):
    async with HttpRenderContext(config) as context:
        sitemap = await SitemapDiscoverer(context).discover(test_server, max_depth=2, max_pages=10)

    assert sitemap.domain == "localhost"
    assert [(p.url, p.depth) for p in sitemap.pages] == [
        (test_server, 0),
        (f"{test_server}/page1", 1),
        (f"{test_server}/page2", 1),
        (f"{test_server}/page3", 2),
    ]
    assert [p.title for p in sitemap.pages] == ["Home", "Page One", "Page Two", "Page Three"]


@pytest.mark.asyncio()
async def test_start_conversion_end_to_end(config, test_server: str):
    events = []

    result = await start_conversion(config, test_server, {"maxDepth": 1, "maxPages": 3}, events.append)

    assert result.processed == 3
    assert "## Page 2: Page One" in result.content
    assert "data:image/png;base64," in result.content
    assert "Recovered" not in result.content
    assert events[-1].status.value == "completed"
    assert events[-1].progress == 100


@pytest.mark.asyncio()
async def test_start_conversion_unreachable_root(config, unused_tcp_port: int):
    with pytest.raises(BinderError, match="Failed to discover sitemap"):
        await start_conversion(config, f"http://localhost:{unused_tcp_port}/", {"maxPages": 2})
