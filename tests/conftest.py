# File: tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

import pytest

from site_binder.config import BinderConfig, ConversionOptions
from site_binder.crawler.link_extractor import extract_links, extract_title
from site_binder.crawler.models import PageLink, RenderedPage
from site_binder.utils import normalize_url

ROOT = "http://example.com"


def html_page(title: str, *hrefs: str, body: str = "") -> str:
    """Small HTML document with a title, some anchors and optional body markup."""
    anchors = "".join(f'<a href="{href}">{href.strip("/") or "home"}</a>' for href in hrefs)
    return f"<html><head><title>{title}</title></head><body><main>{body}<nav>{anchors}</nav></main></body></html>"


class FakeRenderContext:
    """In-memory render context: serves HTML from a dict and records every call."""

    def __init__(
        self,
        pages: Dict[str, str],
        *,
        resources: Optional[Dict[str, Tuple[bytes, str]]] = None,
        broken: Iterable[str] = (),
        broken_titles: Iterable[str] = (),
    ) -> None:
        self.pages = {normalize_url(url): html for url, html in pages.items()}
        self.resources = resources or {}
        self.broken: Set[str] = {normalize_url(u) for u in broken}
        self.broken_titles: Set[str] = {normalize_url(u) for u in broken_titles}
        self.calls: List[Tuple[str, str]] = []
        self.closed = 0

    def _html(self, url: str) -> str:
        key = normalize_url(url)
        if key in self.broken or key not in self.pages:
            raise ConnectionError(f"cannot load {url}")
        return self.pages[key]

    async def fetch_page(self, url: str, wait_time: float = 0.0) -> RenderedPage:
        self.calls.append(("page", url))
        return RenderedPage(url=url, final_url=normalize_url(url), html=self._html(url))

    async def fetch_links(self, url: str, domain: str) -> List[PageLink]:
        self.calls.append(("links", url))
        return extract_links(self._html(url), normalize_url(url), domain)

    async def fetch_title(self, url: str) -> str:
        self.calls.append(("title", url))
        if normalize_url(url) in self.broken_titles:
            raise TimeoutError(f"title timeout for {url}")
        return extract_title(self._html(url))

    async def fetch_resource(self, url: str) -> Tuple[bytes, str]:
        self.calls.append(("resource", url))
        if url not in self.resources:
            raise ConnectionError(f"no resource {url}")
        return self.resources[url]

    async def screenshot(self, url: str) -> Optional[bytes]:
        self.calls.append(("screenshot", url))
        return b"\x89PNG fake"

    async def close(self) -> None:
        self.closed += 1

    def fetched(self, kind: str) -> List[str]:
        return [url for k, url in self.calls if k == kind]


class FakeConverter:
    """Stands in for PageConverter; ``hook`` runs before each conversion."""

    def __init__(self, fail: Iterable[str] = (), hook=None) -> None:
        self.fail = {normalize_url(u) for u in fail}
        self.hook = hook
        self.converted: List[str] = []

    async def convert_page(self, url: str, options: ConversionOptions) -> str:
        if self.hook is not None:
            self.hook(url)
        if normalize_url(url) in self.fail:
            raise RuntimeError(f"boom on {url}")
        self.converted.append(url)
        return f"Content of {url}"


@pytest.fixture()
def small_site() -> Dict[str, str]:
    """Root with three same-domain links, one external link and a javascript: link."""
    return {
        ROOT: html_page(
            "Home",
            "/a",
            "/b",
            "/c",
            "https://other.org/x",
            "javascript:void(0)",
            "#top",
        ),
        f"{ROOT}/a": html_page("Page A", "/", "/b", "/a/deeper"),
        f"{ROOT}/b": html_page("Page B", "/c"),
        f"{ROOT}/c": html_page("Page C"),
        f"{ROOT}/a/deeper": html_page("Deeper"),
    }


@pytest.fixture()
def fake_context(small_site) -> FakeRenderContext:
    return FakeRenderContext(small_site)


@pytest.fixture()
def binder_config(tmp_path: Path) -> BinderConfig:
    return BinderConfig(output_root=tmp_path / "output", temp_prefix="site_binder_test_")
