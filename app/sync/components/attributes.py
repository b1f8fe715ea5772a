# app/sync/components/attributes.py
# Breez technical specs -> local (non-taxonomy) product attributes, full replace.
from __future__ import annotations

import logging
from typing import Any, Dict, List, TYPE_CHECKING

from pydantic import ValidationError

from app.models.feed import BreezTech
from app.sync.components.util import get_meta
from app.woocommerce import WooError

if TYPE_CHECKING:
    from app.sync.context import SyncContext

logger = logging.getLogger("uvicorn.error")

PRODUCT_META_KEY = "breez_product_id"


def extract_techs(payload: Dict[Any, Any], breez_product_id) -> List[BreezTech]:
    """
    Pull the tech list for one product out of the /tech/ response:
      { "<id>": { "techs": [ {title, value, order}, ... ] } }
    `techs` may also come as an object keyed by tech id.
    """
    entry = None
    for k in (breez_product_id, str(breez_product_id)):
        if isinstance(payload, dict) and isinstance(payload.get(k), dict):
            entry = payload[k]
            break
    if entry is None:
        return []

    raw = entry.get("techs") or []
    if isinstance(raw, dict):
        raw = list(raw.values())

    techs: List[BreezTech] = []
    for row in raw:
        if not isinstance(row, dict):
            continue
        try:
            techs.append(BreezTech.model_validate(row))
        except ValidationError as e:
            logger.debug("[TECH] dropping tech row %r: %s", row, e)
    return techs


def build_attributes(techs: List[BreezTech]) -> List[Dict[str, Any]]:
    return [
        {
            "name": t.title,
            "options": [t.value],
            "position": t.order,
            "visible": True,
            "variation": False,
        }
        for t in techs
    ]


async def import_product_techs(ctx: "SyncContext", product: Dict[str, Any], breez_product_id=0) -> bool:
    """
    Replace the product's attribute set with the feed's techs.
    Returns True when the product was updated, False when there was nothing to do.
    Store errors propagate (WooError).
    """
    if not product or not product.get("id"):
        return False

    breez_product_id = breez_product_id or get_meta(product, PRODUCT_META_KEY)
    if not breez_product_id:
        return False

    payload = await ctx.feed.get_product_tech(breez_product_id)
    if not payload:
        return False
    techs = extract_techs(payload, breez_product_id)
    if not techs:
        return False

    attributes = build_attributes(techs)
    await ctx.store.update_product(product["id"], {"attributes": attributes})
    product["attributes"] = attributes
    return True


async def import_all_product_techs(ctx: "SyncContext") -> Dict[str, int]:
    """Full re-sync of techs for every published product."""
    stats = {"updated": 0, "skipped": 0, "errors": 0}
    products = await ctx.products()
    if not products:
        return stats

    for product in products:
        try:
            if await import_product_techs(ctx, product):
                stats["updated"] += 1
            else:
                stats["skipped"] += 1
        except WooError as e:
            stats["errors"] += 1
            logger.error("[TECH] failed to save attributes for product %s: %s", product.get("id"), e)

    logger.info("[TECH] done: %s", stats)
    return stats
