"""Breadth-first sitemap discovery over a single domain."""

from __future__ import annotations

import time
from collections import deque
from typing import Deque, Dict, Tuple

from site_binder.crawler.link_extractor import extract_links, extract_title
from site_binder.crawler.models import PageLink, PageNode, Sitemap
from site_binder.crawler.renderer import RenderContext
from site_binder.errors import DiscoveryError
from site_binder.logger import logger
from site_binder.utils import extract_domain, normalize_url

__all__ = ("SitemapDiscoverer",)


class SitemapDiscoverer:
    """Builds a bounded :class:`Sitemap` by walking same-domain links level by level.

    Fetches are strictly sequential: one navigation at a time through the
    job's render context.
    """

    def __init__(self, context: RenderContext) -> None:
        self.context = context

    async def discover(self, root_url: str, *, max_depth: int = 1, max_pages: int = 10) -> Sitemap:
        """
        Discover pages reachable from *root_url*.

        Guarantees ``len(pages) <= max_pages`` and ``depth <= max_depth`` for
        every page. Raises :class:`DiscoveryError` if the root cannot be loaded;
        every other fetch failure is logged and skipped.
        """
        logger.info("Discovering sitemap: %s (depth=%d, pages=%d)", root_url, max_depth, max_pages)
        start = time.monotonic()
        root_key = normalize_url(root_url)

        try:
            root_page = await self.context.fetch_page(root_key)
        except Exception as exc:
            raise DiscoveryError(root_url, str(exc) or type(exc).__name__) from exc

        domain = extract_domain(root_page.final_url) or extract_domain(root_key)
        if not domain:
            raise DiscoveryError(root_url, "root URL has no hostname")
        root_title = extract_title(root_page.html)
        # links of the root are known already, no need to load it twice
        prefetched: Dict[str, list[PageLink]] = {
            root_key: extract_links(root_page.html, root_page.final_url, domain),
        }

        pages: Dict[str, PageNode] = {root_key: PageNode(url=root_key, title=root_title or root_key, depth=0)}
        queue: Deque[Tuple[str, int]] = deque([(root_key, 0)])

        while queue and len(pages) < max_pages:
            url, depth = queue.popleft()
            if depth >= max_depth:
                continue

            links = prefetched.pop(url, None)
            if links is None:
                links = await self._fetch_links(url, domain)
            node = pages[url]
            node.links = links

            for link in links:
                key = normalize_url(link.url)
                if key in pages:
                    continue
                if len(pages) >= max_pages:
                    break
                title = await self._fetch_title(key, link.anchor_text)
                pages[key] = PageNode(url=key, title=title, depth=depth + 1)
                queue.append((key, depth + 1))
                logger.debug("Discovered %s at depth %d", key, depth + 1)

        sitemap = Sitemap(root_url=root_key, domain=domain, title=root_title, pages=list(pages.values()))
        logger.info(
            "Sitemap ready: %d pages on %s in %.2f s",
            len(sitemap),
            domain,
            time.monotonic() - start,
        )
        return sitemap

    async def _fetch_links(self, url: str, domain: str) -> list[PageLink]:
        try:
            return await self.context.fetch_links(url, domain)
        except Exception as exc:
            logger.warning("Failed to get links from %s: %s", url, exc)
            return []

    async def _fetch_title(self, url: str, fallback: str) -> str:
        try:
            title = await self.context.fetch_title(url)
        except Exception as exc:
            logger.warning("Failed to get title for %s: %s", url, exc)
            return fallback
        return title or fallback
