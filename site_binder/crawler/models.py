# site_binder/crawler/models.py
"""
Data models for the SiteBinder crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from site_binder.utils import normalize_url


@dataclass(slots=True)
class PageLink:
    """One same-domain anchor found on a page."""

    url: str
    anchor_text: str


@dataclass(slots=True)
class RenderedPage:
    """Raw HTML of a loaded page. ``final_url`` is the URL after redirects."""

    url: str
    final_url: str
    html: str


@dataclass(slots=True)
class PageNode:
    """One discovered page. ``links`` stays empty until the page is expanded."""

    url: str
    title: str
    depth: int
    links: List[PageLink] = field(default_factory=list)

    def links_to(self, url: str) -> bool:
        key = normalize_url(url)
        return any(normalize_url(link.url) == key for link in self.links)


@dataclass(slots=True)
class Sitemap:
    """Bounded, deduplicated graph of same-domain pages reachable from ``root_url``."""

    root_url: str
    domain: str
    title: str
    pages: List[PageNode] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self) -> Iterator[PageNode]:
        return iter(self.pages)

    def get(self, url: str) -> Optional[PageNode]:
        """Page by URL (normalized match), for callers outside the package; linear scan."""
        key = normalize_url(url)
        for page in self.pages:
            if normalize_url(page.url) == key:
                return page
        return None

    def is_root(self, page: PageNode) -> bool:
        return normalize_url(page.url) == normalize_url(self.root_url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_url": self.root_url,
            "domain": self.domain,
            "title": self.title,
            "pages": [
                {
                    "url": p.url,
                    "title": p.title,
                    "depth": p.depth,
                    "links": [{"url": l.url, "anchor_text": l.anchor_text} for l in p.links],
                }
                for p in self.pages
            ],
        }


@dataclass(slots=True)
class ConvertedPage:
    """Markdown fragment produced for one sitemap page."""

    url: str
    title: str
    content: str
