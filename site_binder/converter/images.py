"""Image download and inlining helpers."""

from __future__ import annotations

import base64
import hashlib
import mimetypes
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse

from site_binder.converter.content import ImageRef
from site_binder.crawler.renderer import RenderContext
from site_binder.logger import logger
from site_binder.utils import safe_filename


def to_data_uri(data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type or 'application/octet-stream'};base64,{encoded}"


def _image_filename(src: str, content_type: str) -> str:
    """Stable, filesystem-safe name for an image URL."""
    stem = Path(urlparse(src).path).stem
    digest = hashlib.sha1(src.encode("utf-8")).hexdigest()[:10]
    ext = Path(urlparse(src).path).suffix or mimetypes.guess_extension(content_type or "") or ".bin"
    return f"{safe_filename(stem, 'image', max_length=40)}_{digest}{ext}"


async def embed_images(
    context: RenderContext,
    images: Iterable[ImageRef],
    temp_dir: Optional[Path],
) -> int:
    """Download every image, keep a copy under ``temp_dir/images`` and set its data URI.

    Failed downloads are logged and keep their original URL. Returns the number
    of images embedded.
    """
    images_dir: Optional[Path] = None
    if temp_dir is not None:
        images_dir = temp_dir / "images"
        images_dir.mkdir(parents=True, exist_ok=True)

    embedded = 0
    for image in images:
        try:
            data, content_type = await context.fetch_resource(image.src)
        except Exception as exc:
            logger.warning("Failed to download image %s: %s", image.src, exc)
            continue
        if not content_type.startswith("image/"):
            content_type = mimetypes.guess_type(image.src)[0] or content_type
        if images_dir is not None:
            (images_dir / _image_filename(image.src, content_type)).write_bytes(data)
        image.data_uri = to_data_uri(data, content_type)
        embedded += 1
    return embedded
