# app/sync/sync.py
# ==========================================
# Breez → WooCommerce sync entry points.
# Each one is an independent batch job; pass a SyncContext to share
# lookup indices between calls, or let it build a fresh one.
# ==========================================

import logging
from typing import Dict, List, Optional

from app.sync.context import SyncContext
from app.sync.components import attributes, brands, categories, products, stock
from app.sync.components.products import ProductPageReport

logger = logging.getLogger("uvicorn.error")


def _ctx(ctx: Optional[SyncContext]) -> SyncContext:
    return ctx if ctx is not None else SyncContext.from_settings()


async def import_categories(ctx: Optional[SyncContext] = None) -> List[int]:
    logger.info("[SYNC] importing categories")
    return await categories.import_categories(_ctx(ctx))


async def import_brands(ctx: Optional[SyncContext] = None) -> List[int]:
    logger.info("[SYNC] importing brands")
    return await brands.import_brands(_ctx(ctx))


async def import_products(page_number: int = 1, ctx: Optional[SyncContext] = None) -> ProductPageReport:
    logger.info("[SYNC] importing products, page %s", page_number)
    return await products.import_products(_ctx(ctx), page_number)


async def import_all_products(ctx: Optional[SyncContext] = None, start_page: int = 1) -> List[ProductPageReport]:
    """Walk product pages with one shared context until the feed is exhausted."""
    ctx = _ctx(ctx)
    reports: List[ProductPageReport] = []
    page: Optional[int] = max(1, start_page)
    while page:
        report = await products.import_products(ctx, page)
        reports.append(report)
        page = report.next_page
    return reports


async def import_product_techs(product: dict, breez_product_id=0, ctx: Optional[SyncContext] = None) -> bool:
    return await attributes.import_product_techs(_ctx(ctx), product, breez_product_id)


async def import_all_product_techs(ctx: Optional[SyncContext] = None) -> Dict[str, int]:
    logger.info("[SYNC] importing techs for all products")
    return await attributes.import_all_product_techs(_ctx(ctx))


async def import_product_stocks(ctx: Optional[SyncContext] = None) -> Dict[str, int]:
    logger.info("[SYNC] importing stocks and prices")
    return await stock.import_product_stocks(_ctx(ctx))
