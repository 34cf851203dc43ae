# File: site_binder/utils.py
"""site_binder.utils: URL helpers and filename sanitising shared by the crawler and reports."""

from __future__ import annotations

import re
from typing import Optional, Sequence, Set
from urllib.parse import urldefrag, urlparse

from site_binder.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_http_url",
    "extract_domain",
    "same_domain",
    "safe_filename",
    "unique_filename",
)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")
_REPEATED_UNDERSCORES = re.compile(r"_+")
MAX_FILENAME_LENGTH = 50


def normalize_url(url: str) -> str:
    """Strip the fragment and any trailing slash so equivalent URLs compare equal."""
    defragged, _ = urldefrag(url.strip())
    return defragged.rstrip("/")


def is_http_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def extract_domain(url: str) -> str:
    """Hostname of *url* (no port, lower case), or ``""`` when it has none."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def same_domain(url: str, domain: str) -> bool:
    return bool(domain) and extract_domain(url) == domain.lower()


def safe_filename(name: Optional[str], fallback: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """Reduce *name* to ``[A-Za-z0-9_-]``, collapse underscores and cap the length.

    Returns *fallback* when nothing usable survives.
    """
    cleaned = _UNSAFE_CHARS.sub("_", name or "")
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned).strip("_")
    if not cleaned:
        cleaned = fallback
    return cleaned[:max_length]


def unique_filename(base: str, index: int, taken: Set[str]) -> str:
    """Return *base* if free, else fall back to the page index, then a counter."""
    if base not in taken:
        return base
    candidate = f"{base[:MAX_FILENAME_LENGTH - 8]}_{index}"
    counter = 2
    while candidate in taken:
        candidate = f"{base[:MAX_FILENAME_LENGTH - 12]}_{index}_{counter}"
        counter += 1
    logger.debug("Filename collision for %s, using %s", base, candidate)
    return candidate

