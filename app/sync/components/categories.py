# app/sync/components/categories.py
# Breez categories -> product_cat terms (upsert by slug, remote id kept in term meta).
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from pydantic import ValidationError

from app.models.feed import BreezCategory
from app.woocommerce import WooError

if TYPE_CHECKING:
    from app.sync.context import SyncContext

logger = logging.getLogger("uvicorn.error")

CATEGORY_META_KEY = "breeze_category_id"


def with_meta(term: Dict[str, Any], key: str, value) -> Dict[str, Any]:
    """Index copy of a term carrying the meta we just wrote (WP may not echo it back)."""
    meta = dict(term.get("meta") or {}) if isinstance(term.get("meta"), dict) else {}
    meta[key] = value
    return {**term, "meta": meta}


def _parse(raw: Any) -> Optional[BreezCategory]:
    if not isinstance(raw, dict):
        return None
    try:
        return BreezCategory.model_validate(raw)
    except ValidationError as e:
        logger.warning("[CAT] invalid category record %r: %s", raw, e)
        return None


def _sibling(categories: Dict[Any, Any], key) -> Optional[Dict[str, Any]]:
    """Feed maps are keyed by id; JSON gives str keys, fixtures may use ints."""
    for k in (key, str(key)):
        row = categories.get(k)
        if isinstance(row, dict):
            return row
    return None


async def resolve_parent_id(ctx: "SyncContext", categories: Dict[Any, Any], cat: BreezCategory) -> int:
    """
    Parent term id for a feed category, 0 meaning root.

    An explicit parent_id (looked up through term meta) wins. Otherwise the legacy
    `level` field names the parent record in the same response; its slug is
    matched against existing terms. Anything unresolved falls back to root.
    """
    if cat.parent_id:
        parent = await ctx.term_id_by_meta(CATEGORY_META_KEY, cat.parent_id)
        if parent:
            return parent

    if cat.level <= 0:
        return 0
    sibling = _sibling(categories, cat.level)
    if sibling is None:
        return 0
    term = await ctx.term_by_slug(sibling.get("chpu") or sibling.get("slug"))
    return int(term["id"]) if term else 0


async def import_categories(ctx: "SyncContext") -> List[int]:
    """Upsert every feed category; returns ids of terms created by this run."""
    categories = await ctx.feed.get_categories()
    created: List[int] = []
    if not categories:
        logger.info("[CAT] feed returned no categories")
        return created

    for breez_id, raw in categories.items():
        cat = _parse(raw)
        if cat is None or not cat.title or not cat.slug:
            logger.warning("[CAT] skipping category %s without title/slug", breez_id)
            continue

        parent = await resolve_parent_id(ctx, categories, cat)
        existing = await ctx.term_by_slug(cat.slug)
        try:
            if existing:
                term = await ctx.store.update_category(existing["id"], name=cat.title, parent=parent)
                ctx.remember_term({**existing, **(term or {}), "name": cat.title, "parent": parent})
                continue

            term = await ctx.store.create_category(
                cat.title, cat.slug, parent=parent, meta={CATEGORY_META_KEY: str(breez_id)}
            )
        except WooError as e:
            logger.error("[CAT] error while saving category %r: %s %s", cat.slug, e, e.detail or "")
            continue

        if not term or not term.get("id"):
            logger.error("[CAT] store returned no id for category %r", cat.slug)
            continue
        ctx.remember_term(with_meta(term, CATEGORY_META_KEY, str(breez_id)))
        created.append(int(term["id"]))
        logger.info("🟢 [CAT] created %r (id=%s, parent=%s)", cat.slug, term["id"], parent)

    return created
