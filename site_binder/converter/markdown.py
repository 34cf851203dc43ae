"""HTML to Markdown conversion and page fragment rendering."""

from __future__ import annotations

from typing import Iterable, Optional

import html2text
from bs4 import BeautifulSoup

from site_binder.config import ConversionOptions
from site_binder.converter.content import ExtractedContent, ImageRef, PageMetadata
from site_binder.report import get_environment


def _create_converter() -> html2text.HTML2Text:
    converter = html2text.HTML2Text()
    converter.ignore_links = False
    converter.ignore_images = False
    converter.body_width = 0
    converter.unicode_snob = True
    converter.mark_code = False
    return converter


def html_to_markdown(html: str, images: Iterable[ImageRef] = ()) -> str:
    """Convert a content fragment, pointing images at their data URI when one is known."""
    inline = {img.src: img.data_uri for img in images if img.data_uri}
    if inline:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup.find_all("img", src=True):
            data_uri = inline.get(str(tag["src"]))
            if data_uri:
                tag["src"] = data_uri
        html = soup.decode()
    return _create_converter().handle(html).strip()


def render_page_fragment(
    metadata: PageMetadata,
    content: ExtractedContent,
    options: ConversionOptions,
    screenshot: Optional[str] = None,
) -> str:
    """Render the Markdown document for one page."""
    template = get_environment().get_template("page_fragment.md.j2")
    return template.render(
        heading=metadata.title or f"Web Page: {metadata.url}",
        meta=metadata,
        screenshot=screenshot,
        body=html_to_markdown(content.html, content.images if options.include_images else ()),
        links=content.links if options.include_links else [],
    )


def render_error_fragment(url: str, message: str) -> str:
    return f"# Error Processing Page: {url}\n\nFailed to process this page: {message}\n"
