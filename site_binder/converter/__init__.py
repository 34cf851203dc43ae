"""site_binder.converter: turns one page into a Markdown fragment."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from site_binder.config import ConversionOptions
from site_binder.converter.content import extract_content, extract_metadata
from site_binder.converter.images import embed_images, to_data_uri
from site_binder.converter.markdown import render_error_fragment, render_page_fragment
from site_binder.crawler.renderer import RenderContext
from site_binder.logger import logger

__all__ = ["PageConverter"]


class PageConverter:
    """Fetches a page through the job's render context and renders it as Markdown."""

    def __init__(self, context: RenderContext, temp_dir: Optional[Path] = None) -> None:
        self.context = context
        self.temp_dir = temp_dir

    async def convert_page(self, url: str, options: ConversionOptions) -> str:
        """Return the Markdown fragment for *url*.

        Never raises for page-level problems: the fragment then describes the error.
        """
        try:
            page = await self.context.fetch_page(url, wait_time=options.wait_time)
            content = extract_content(page.html, page.final_url)

            if options.include_images and content.images:
                count = await embed_images(self.context, content.images, self.temp_dir)
                logger.debug("Embedded %d/%d images for %s", count, len(content.images), url)

            screenshot: Optional[str] = None
            if options.include_screenshot:
                png = await self.context.screenshot(url)
                if png:
                    screenshot = to_data_uri(png, "image/png")

            metadata = extract_metadata(page.html, url)
            return render_page_fragment(metadata, content, options, screenshot)
        except Exception as exc:
            logger.warning("Failed to process page %s: %s", url, exc)
            return render_error_fragment(url, str(exc) or type(exc).__name__)
