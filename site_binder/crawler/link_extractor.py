# site_binder/crawler/link_extractor.py
"""
Link and title extraction from raw HTML for SiteBinder.
"""
from __future__ import annotations

from typing import List, Set
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_binder.crawler.models import PageLink
from site_binder.logger import logger
from site_binder.utils import is_http_url, normalize_url, same_domain

_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")


def extract_links(html: str, page_url: str, domain: str) -> List[PageLink]:
    """
    Extract same-domain HTTP(S) links from *html*, deduplicated in document order.

    Ignores empty and ``#fragment`` hrefs, javascript:/mailto: links, external
    hosts and hrefs that cannot be resolved.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen: Set[str] = set()
    links: List[PageLink] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw or raw.startswith("#") or raw.lower().startswith(_SKIPPED_SCHEMES):
            continue
        try:
            absolute = urljoin(page_url, raw)
        except ValueError:
            logger.debug("Skipping malformed href %r on %s", raw, page_url)
            continue
        if not is_http_url(absolute) or not same_domain(absolute, domain):
            continue
        key = normalize_url(absolute)
        if key in seen:
            continue
        seen.add(key)
        text = tag.get_text(" ", strip=True)
        links.append(PageLink(url=key, anchor_text=text or key))
    return links


def extract_title(html: str) -> str:
    """Text of ``<title>`` or ``""`` if absent."""
    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    return title_tag.get_text(strip=True) if title_tag else ""
