# app/sync/components/stock.py
# Breez stock levels + prices -> existing WooCommerce products (matched by SKU).
from __future__ import annotations

import logging
from typing import Any, Dict, List, TYPE_CHECKING

from pydantic import ValidationError

from app.models.feed import BreezStock
from app.sync.components.util import format_wc_price, normalize_sku
from app.woocommerce import WooError

if TYPE_CHECKING:
    from app.sync.context import SyncContext

logger = logging.getLogger("uvicorn.error")


def index_stocks(rows: List[Dict[str, Any]]) -> Dict[str, BreezStock]:
    """Normalized SKU -> first stock record for it (later duplicates are ignored)."""
    out: Dict[str, BreezStock] = {}
    for row in rows or []:
        try:
            stock = BreezStock.model_validate(row)
        except ValidationError as e:
            logger.debug("[STOCK] dropping stock row %r: %s", row, e)
            continue
        key = normalize_sku(stock.sku)
        if key:
            out.setdefault(key, stock)
    return out


def stock_update_payload(stock: BreezStock | None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"manage_stock": True}
    quantity = 0
    if stock is not None:
        quantity = max(0, stock.quantity)
        if stock.has_base_price:
            payload["sale_price"] = format_wc_price(stock.price.base)
            # no ric in the record: keep whatever regular price the product has
            regular = format_wc_price(stock.price.ric)
            if regular:
                payload["regular_price"] = regular
        else:
            payload["status"] = "draft"
    payload["stock_quantity"] = quantity
    payload["stock_status"] = "instock" if quantity > 0 else "outofstock"
    return payload


async def import_product_stocks(ctx: "SyncContext") -> Dict[str, int]:
    stats = {"updated": 0, "drafted": 0, "unmatched": 0, "errors": 0}

    rows = await ctx.feed.get_product_stocks()
    if not rows:
        logger.info("[STOCK] feed returned no stock records")
        return stats
    products = await ctx.products()
    if not products:
        return stats

    stocks = index_stocks(rows)
    for product in products:
        sku = normalize_sku(product.get("sku"))
        if not sku:
            continue
        stock = stocks.get(sku)
        if stock is None:
            stats["unmatched"] += 1

        payload = stock_update_payload(stock)
        try:
            await ctx.store.update_product(product["id"], payload)
        except WooError as e:
            stats["errors"] += 1
            logger.error("[STOCK] failed to update %s (id=%s): %s", product.get("sku"), product.get("id"), e)
            continue

        product.update(payload)
        stats["updated"] += 1
        if payload.get("status") == "draft":
            stats["drafted"] += 1
            logger.info("🟠 [STOCK] %s has no base price; moved to draft", product.get("sku"))

    logger.info("[STOCK] done: %s", stats)
    return stats
