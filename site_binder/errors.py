"""site_binder.errors: exception hierarchy for site conversion jobs."""

from __future__ import annotations

from typing import Optional

__all__ = (
    "BinderError",
    "DiscoveryError",
    "PageProcessingError",
    "AssemblyError",
    "ResourceError",
)


class BinderError(Exception):
    """Base class for every error raised by SiteBinder."""


class DiscoveryError(BinderError):
    """The root page could not be loaded, so no sitemap can be built."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to discover sitemap for {url}: {message}")
        self.url = url


class PageProcessingError(BinderError):
    """A single page failed to convert. Never fatal for the whole job."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Failed to process page {url}: {message}")
        self.url = url


class AssemblyError(BinderError):
    """Writing or rendering the final output failed."""


class ResourceError(BinderError):
    """A temp directory or render context could not be acquired."""

    def __init__(self, message: str, resource: Optional[str] = None) -> None:
        super().__init__(message)
        self.resource = resource
