# app/sync/components/images.py
from __future__ import annotations

import logging
import mimetypes
import os

import httpx

from typing import Any, Dict, List, TYPE_CHECKING
from app.config import settings
from app.sync.components.util import basename, sanitize_filename
from app.woocommerce import WooError

if TYPE_CHECKING:
    from app.sync.context import SyncContext

logger = logging.getLogger(__name__)


class ImageUploadError(Exception):
    """Download, write or media registration failed; nothing was registered."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


async def download_image(url: str) -> bytes:
    try:
        async with httpx.AsyncClient(timeout=30.0, verify=settings.VERIFY_SSL, follow_redirects=True) as client:
            resp = await client.get(url)
    except httpx.HTTPError as e:
        raise ImageUploadError(url, f"download failed: {e}") from e
    if resp.status_code != 200:
        raise ImageUploadError(url, f"download returned HTTP {resp.status_code}")
    return resp.content


def _ensure_writable_dir(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise ImageUploadError(path, f"cannot create upload directory: {e}") from e
    if not os.access(path, os.W_OK):
        raise ImageUploadError(path, "upload directory is not writable")


async def upload_image(ctx: "SyncContext", url: str) -> int:
    """
    Return the media library id for the image at `url`, uploading it only when
    no entry titled with its filename exists yet. Raises ImageUploadError.
    """
    url = (url or "").strip()
    filename = basename(url)
    if not url or not filename:
        raise ImageUploadError(url, "no filename in image url")
    title = sanitize_filename(filename) or filename

    try:
        media = await ctx.media()
    except WooError as e:
        raise ImageUploadError(url, f"media library listing failed: {e}") from e
    for key in (filename, title):
        if key in media:
            return media[key]

    _ensure_writable_dir(ctx.upload_dir)
    content = await ctx.downloader(url)
    if not content:
        raise ImageUploadError(url, "download returned an empty body")

    local_path = os.path.join(ctx.upload_dir, title)
    try:
        with open(local_path, "wb") as f:
            f.write(content)
    except OSError as e:
        raise ImageUploadError(url, f"cannot write {local_path}: {e}") from e

    mime_type = mimetypes.guess_type(title)[0] or "application/octet-stream"
    try:
        created = await ctx.store.create_media(title, content, mime_type, title=title)
    except WooError as e:
        raise ImageUploadError(url, f"media upload failed: {e}") from e
    media_id = int((created or {}).get("id") or 0)
    if not media_id:
        raise ImageUploadError(url, "media library returned no id")

    await ctx.remember_media(title, media_id)
    if filename != title:
        await ctx.remember_media(filename, media_id)
    logger.info("[IMG] uploaded %s as media %s", title, media_id)
    return media_id


async def add_images_to_product(ctx: "SyncContext", product: Dict[str, Any], image_urls: List[str]) -> None:
    """
    Top up a product's images from the feed, never removing or reordering:
      - nothing happens unless the feed has more images than the product,
      - the first uploaded image becomes featured only if none is set,
      - the rest become the gallery only if the product has no gallery yet.
    `product["images"]` follows the Woo shape: [featured, *gallery].
    """
    if not image_urls:
        return

    current = [img for img in (product.get("images") or []) if isinstance(img, dict) and img.get("id")]
    featured = current[0] if current else None
    gallery = current[1:]
    if len(image_urls) <= len(current):
        return

    uploaded: List[int] = []
    for url in image_urls:
        try:
            media_id = await upload_image(ctx, url)
        except ImageUploadError as e:
            logger.warning("[IMG] skipping image for %s: %s", product.get("sku") or product.get("name"), e)
            continue
        uploaded.append(media_id)

    if not uploaded:
        return

    if featured is None:
        featured = {"id": uploaded[0]}
    if not gallery:
        gallery = [{"id": mid} for mid in uploaded[1:]]

    product["images"] = [featured] + gallery
