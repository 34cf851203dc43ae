"""Mermaid diagram of the discovered site structure."""

from __future__ import annotations

from typing import List, Optional, Tuple

from site_binder.crawler.models import PageNode, Sitemap
from site_binder.utils import normalize_url

ROOT_ID = "root"


def _label(text: str) -> str:
    return " ".join(text.split()).replace('"', "#quot;")


def _node_id(index: int) -> str:
    return f"page{index}"


def find_parent(sitemap: Sitemap, page: PageNode) -> Optional[int]:
    """Index of the first page, in sitemap order, whose links include *page*.

    Self-links are ignored. ``None`` when nothing links to the page.
    """
    key = normalize_url(page.url)
    for index, candidate in enumerate(sitemap.pages):
        if normalize_url(candidate.url) == key:
            continue
        if candidate.links_to(key):
            return index
    return None


def structure_edges(sitemap: Sitemap) -> List[Tuple[str, str]]:
    """One ``(parent, child)`` edge per non-root page; orphans hang off the root."""
    edges: List[Tuple[str, str]] = []
    for index, page in enumerate(sitemap.pages):
        if sitemap.is_root(page):
            continue
        parent = find_parent(sitemap, page)
        if parent is None or sitemap.is_root(sitemap.pages[parent]):
            edges.append((ROOT_ID, _node_id(index)))
        else:
            edges.append((_node_id(parent), _node_id(index)))
    return edges


def render_structure(sitemap: Sitemap) -> str:
    """Mermaid ``graph TD`` source, without the code fence."""
    lines = ["graph TD", f'  {ROOT_ID}["{_label(sitemap.title or sitemap.root_url)}"]']
    for index, page in enumerate(sitemap.pages):
        if not sitemap.is_root(page):
            lines.append(f'  {_node_id(index)}["{_label(page.title or page.url)}"]')
    lines.extend(f"  {parent} --> {child}" for parent, child in structure_edges(sitemap))
    return "\n".join(lines)
