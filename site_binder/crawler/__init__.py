"""site_binder.crawler: render contexts, link extraction and sitemap discovery."""

from site_binder.crawler.models import ConvertedPage, PageLink, PageNode, RenderedPage, Sitemap
from site_binder.crawler.renderer import RenderContext, launch_render_context
from site_binder.crawler.sitemap import SitemapDiscoverer

__all__ = [
    "ConvertedPage",
    "PageLink",
    "PageNode",
    "RenderContext",
    "RenderedPage",
    "Sitemap",
    "SitemapDiscoverer",
    "launch_render_context",
]
