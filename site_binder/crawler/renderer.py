"""Render contexts: the resource a job uses to load pages.

Two implementations share one protocol:

* :class:`HttpRenderContext` – plain ``aiohttp`` session, no JavaScript.
* :class:`BrowserRenderContext` – headless Chromium driven by Playwright,
  needed for screenshots.

A context is owned by exactly one job and is released with :meth:`close`.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from aiohttp import ClientError, ClientSession, ClientTimeout
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from site_binder.config import BinderConfig
from site_binder.crawler.fetcher import Fetcher
from site_binder.crawler.link_extractor import extract_links, extract_title
from site_binder.crawler.models import PageLink, RenderedPage
from site_binder.errors import ResourceError
from site_binder.logger import logger

__all__ = (
    "RenderContext",
    "HttpRenderContext",
    "BrowserRenderContext",
    "launch_render_context",
)


@runtime_checkable
class RenderContext(Protocol):
    async def fetch_page(self, url: str, wait_time: float = 0.0) -> RenderedPage: ...

    async def fetch_links(self, url: str, domain: str) -> List[PageLink]: ...

    async def fetch_title(self, url: str) -> str: ...

    async def fetch_resource(self, url: str) -> Tuple[bytes, str]: ...

    async def screenshot(self, url: str) -> Optional[bytes]: ...

    async def close(self) -> None: ...


class HttpRenderContext:
    """Render context backed by a single ``aiohttp.ClientSession``."""

    def __init__(self, config: BinderConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._fetcher: Optional[Fetcher] = None

    async def __aenter__(self) -> HttpRenderContext:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        self._fetcher = Fetcher(self.session, self.config)

    @property
    def fetcher(self) -> Fetcher:
        if self._fetcher is None:
            raise RuntimeError("Session not initialized")
        return self._fetcher

    async def fetch_page(self, url: str, wait_time: float = 0.0) -> RenderedPage:
        resource = await self.fetcher.fetch(url)
        if not resource.is_html:
            raise ClientError(f"Unsupported content type {resource.content_type or 'unknown'} for {url}")
        if wait_time:
            await asyncio.sleep(wait_time)
        return RenderedPage(url=url, final_url=resource.final_url, html=resource.text())

    async def fetch_links(self, url: str, domain: str) -> List[PageLink]:
        page = await self.fetch_page(url)
        return extract_links(page.html, page.final_url, domain)

    async def fetch_title(self, url: str) -> str:
        resource = await self.fetcher.fetch(url, timeout=self.config.title_timeout)
        return extract_title(resource.text()) if resource.is_html else ""

    async def fetch_resource(self, url: str) -> Tuple[bytes, str]:
        resource = await self.fetcher.fetch(url)
        return resource.body, resource.content_type

    async def screenshot(self, url: str) -> Optional[bytes]:
        logger.warning("Screenshots need the browser renderer, skipping %s", url)
        return None

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()


class BrowserRenderContext:
    """Render context backed by one headless Chromium instance."""

    def __init__(self, config: BinderConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def open(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )

    @property
    def browser(self) -> Browser:
        if self._browser is None:
            raise RuntimeError("Browser not launched")
        return self._browser

    async def _new_page(self):
        page = await self.browser.new_page(
            user_agent=self.config.user_agent,
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
        )
        page.set_default_navigation_timeout(self.config.timeout * 1000)
        return page

    async def fetch_page(self, url: str, wait_time: float = 0.0) -> RenderedPage:
        page = await self._new_page()
        try:
            await page.goto(url, wait_until="networkidle")
            if wait_time:
                await page.wait_for_timeout(wait_time * 1000)
            return RenderedPage(url=url, final_url=page.url, html=await page.content())
        finally:
            await page.close()

    async def fetch_links(self, url: str, domain: str) -> List[PageLink]:
        page = await self._new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded")
            html = await page.content()
            final_url = page.url
        finally:
            await page.close()
        return extract_links(html, final_url, domain)

    async def fetch_title(self, url: str) -> str:
        page = await self._new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.config.title_timeout * 1000)
            return await page.title()
        finally:
            await page.close()

    async def fetch_resource(self, url: str) -> Tuple[bytes, str]:
        page = await self._new_page()
        try:
            response = await page.request.get(url, timeout=self.config.timeout * 1000)
            if not response.ok:
                raise PlaywrightError(f"HTTP {response.status} for {url}")
            content_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
            return await response.body(), content_type
        finally:
            await page.close()

    async def screenshot(self, url: str) -> Optional[bytes]:
        page = await self._new_page()
        try:
            await page.goto(url, wait_until="networkidle")
            return await page.screenshot(full_page=self.config.full_page_screenshot, type="png")
        finally:
            await page.close()

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()


async def launch_render_context(config: BinderConfig) -> RenderContext:
    """Acquire the render context selected by ``config.renderer``.

    Raises :class:`ResourceError` when the context cannot be started.
    """
    context: HttpRenderContext | BrowserRenderContext
    if config.renderer == "browser":
        context = BrowserRenderContext(config)
    else:
        context = HttpRenderContext(config)
    try:
        await context.open()
    except (PlaywrightError, ClientError, OSError) as exc:
        await context.close()
        raise ResourceError(f"Failed to launch {config.renderer} render context: {exc}", "render_context") from exc
    logger.debug("Launched %s render context", config.renderer)
    return context
