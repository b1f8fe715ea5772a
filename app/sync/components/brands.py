# app/sync/components/brands.py
# Breez brands -> product_cat terms nested under one "Brand" root term.
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from pydantic import ValidationError

from app.config import settings
from app.models.feed import BreezBrand
from app.sync.components.categories import with_meta
from app.sync.components.images import ImageUploadError, upload_image
from app.woocommerce import WooError

if TYPE_CHECKING:
    from app.sync.context import SyncContext

logger = logging.getLogger("uvicorn.error")

BRAND_META_KEY = "breez_brand_id"
THUMBNAIL_META_KEY = "thumbnail_id"


def _parse(raw: Any) -> Optional[BreezBrand]:
    if not isinstance(raw, dict):
        return None
    try:
        return BreezBrand.model_validate(raw)
    except ValidationError as e:
        logger.warning("[BRAND] invalid brand record %r: %s", raw, e)
        return None


async def ensure_brand_parent(ctx: "SyncContext") -> int:
    """Term id of the shared brand root, created on first use. 0 if it can't be created."""
    slug = settings.BRAND_PARENT_SLUG
    existing = await ctx.term_by_slug(slug)
    if existing:
        return int(existing["id"])
    try:
        term = await ctx.store.create_category(settings.BRAND_PARENT_NAME, slug, parent=0)
    except WooError as e:
        logger.error("[BRAND] could not create brand root %r: %s %s", slug, e, e.detail or "")
        return 0
    if not term or not term.get("id"):
        return 0
    ctx.remember_term(term)
    logger.info("🟢 [BRAND] created brand root %r (id=%s)", slug, term["id"])
    return int(term["id"])


async def _attach_thumbnail(ctx: "SyncContext", term_id: int, brand: BreezBrand) -> None:
    if not brand.image_url:
        return
    try:
        image_id = await upload_image(ctx, brand.image_url)
        await ctx.store.update_category(term_id, meta={THUMBNAIL_META_KEY: image_id})
    except (ImageUploadError, WooError) as e:
        logger.warning("[BRAND] no thumbnail for %r: %s", brand.slug, e)


async def import_brands(ctx: "SyncContext") -> List[int]:
    """Upsert every feed brand under the brand root; returns ids of terms created by this run."""
    brands = await ctx.feed.get_brands()
    created: List[int] = []
    if not brands:
        logger.info("[BRAND] feed returned no brands")
        return created

    parent = await ensure_brand_parent(ctx)
    if not parent:
        return created

    for breez_id, raw in brands.items():
        brand = _parse(raw)
        if brand is None or not brand.title or not brand.slug:
            logger.warning("[BRAND] skipping brand %s without title/slug", breez_id)
            continue

        existing = await ctx.term_by_slug(brand.slug)
        try:
            if existing:
                term = await ctx.store.update_category(existing["id"], name=brand.title, parent=parent)
                ctx.remember_term({**existing, **(term or {}), "name": brand.title, "parent": parent})
                continue

            term = await ctx.store.create_category(
                brand.title, brand.slug, parent=parent, meta={BRAND_META_KEY: str(breez_id)}
            )
        except WooError as e:
            logger.error("[BRAND] error while saving brand %r: %s %s", brand.slug, e, e.detail or "")
            continue

        if not term or not term.get("id"):
            logger.error("[BRAND] store returned no id for brand %r", brand.slug)
            continue
        term_id = int(term["id"])
        ctx.remember_term(with_meta(term, BRAND_META_KEY, str(breez_id)))
        await _attach_thumbnail(ctx, term_id, brand)
        created.append(term_id)
        logger.info("🟢 [BRAND] created %r (id=%s)", brand.slug, term_id)

    return created
