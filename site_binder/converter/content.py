"""HTML extraction and metadata parsing for a single page."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_binder.logger import logger

_NOISE_TAGS = ("script", "style", "iframe", "noscript")
_MAIN_SELECTORS = (
    "main",
    "article",
    "#content",
    ".content",
    ".main",
    ".article",
    ".post",
    ".post-content",
)


@dataclass(slots=True)
class PageMetadata:
    """Descriptive metadata read from ``<head>``."""

    url: str
    domain: str
    path: str
    title: str = ""
    description: Optional[str] = None
    keywords: Optional[str] = None
    author: Optional[str] = None
    og_title: Optional[str] = None
    og_image: Optional[str] = None
    og_type: Optional[str] = None
    og_url: Optional[str] = None
    favicon: Optional[str] = None


@dataclass(slots=True)
class ImageRef:
    src: str
    alt: str
    data_uri: Optional[str] = None


@dataclass(slots=True)
class LinkRef:
    href: str
    text: str


@dataclass(slots=True)
class ExtractedContent:
    """Main content markup plus the images and links found in the page."""

    html: str
    images: List[ImageRef] = field(default_factory=list)
    links: List[LinkRef] = field(default_factory=list)


def _meta_content(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"name": name}) or soup.find("meta", attrs={"property": name})
    if isinstance(tag, Tag):
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def extract_metadata(html: str, url: str) -> PageMetadata:
    soup = BeautifulSoup(html, "html.parser")
    parsed = urlparse(url)
    title_tag = soup.find("title")

    favicon: Optional[str] = None
    icon = soup.find("link", rel=lambda rel: bool(rel) and "icon" in rel)
    if isinstance(icon, Tag) and isinstance(icon.get("href"), str):
        favicon = urljoin(url, icon["href"])

    return PageMetadata(
        url=url,
        domain=parsed.hostname or "",
        path=parsed.path or "/",
        title=title_tag.get_text(strip=True) if title_tag else "",
        description=_meta_content(soup, "description") or _meta_content(soup, "og:description"),
        keywords=_meta_content(soup, "keywords"),
        author=_meta_content(soup, "author"),
        og_title=_meta_content(soup, "og:title"),
        og_image=_meta_content(soup, "og:image"),
        og_type=_meta_content(soup, "og:type"),
        og_url=_meta_content(soup, "og:url"),
        favicon=favicon,
    )


def _main_scope(soup: BeautifulSoup) -> Tag | BeautifulSoup:
    """First common content container, falling back to ``<body>``."""
    for selector in _MAIN_SELECTORS:
        candidate = soup.select_one(selector)
        if candidate is not None:
            return candidate
    return soup.body or soup


def extract_content(html: str, url: str) -> ExtractedContent:
    """Strip noisy tags, pick the main content and collect its images and links."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(list(_NOISE_TAGS)):
        tag.decompose()

    scope = _main_scope(soup)

    images: List[ImageRef] = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if not isinstance(src, str) or not src.strip() or src.startswith("data:"):
            continue
        try:
            absolute = urljoin(url, src.strip())
        except ValueError:
            logger.debug("Skipping malformed image src %r on %s", src, url)
            continue
        img["src"] = absolute
        images.append(ImageRef(src=absolute, alt=str(img.get("alt", "")).strip()))

    links: List[LinkRef] = []
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        if not href or href.startswith("#") or href.lower().startswith("javascript:"):
            continue
        try:
            absolute = urljoin(url, href)
        except ValueError:
            continue
        anchor["href"] = absolute
        text = anchor.get_text(" ", strip=True)
        links.append(LinkRef(href=absolute, text=text or absolute))

    return ExtractedContent(html=scope.decode_contents(), images=images, links=links)
