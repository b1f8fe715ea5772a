# app/sync/components/products.py
# =======================================================
# Breez products -> new WooCommerce products, one page at a time.
# Existing SKUs are never touched here; prices/stock and techs
# are refreshed by their own importers.
# =======================================================
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Tuple, TYPE_CHECKING

from pydantic import ValidationError

from app.models.feed import BreezProduct
from app.sync.components.attributes import PRODUCT_META_KEY, import_product_techs
from app.sync.components.brands import BRAND_META_KEY
from app.sync.components.categories import CATEGORY_META_KEY
from app.sync.components.images import add_images_to_product
from app.sync.components.util import (
    decode_html,
    format_wc_price,
    meta_data,
    slug_from_title,
)

if TYPE_CHECKING:
    from app.sync.context import SyncContext

logger = logging.getLogger("uvicorn.error")

CREATED = "created"
SKIPPED_PRICE = "skipped_price"
SKIPPED_EXISTS = "skipped_exists"
INVALID = "invalid"
FAILED = "failed"


@dataclass
class ProductImportResult:
    breez_id: str
    sku: str = ""
    status: str = FAILED
    product_id: int = 0
    reason: str = ""

    @property
    def created(self) -> bool:
        return self.status == CREATED


@dataclass
class ProductPageReport:
    page_number: int
    page_size: int
    total_remote: int
    results: List[ProductImportResult] = field(default_factory=list)

    @property
    def created_ids(self) -> List[int]:
        return [r.product_id for r in self.results if r.created]

    @property
    def has_more(self) -> bool:
        return self.page_number * self.page_size < self.total_remote

    @property
    def next_page(self) -> int | None:
        return self.page_number + 1 if self.has_more else None

    def counts(self) -> Dict[str, int]:
        return dict(Counter(r.status for r in self.results))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_remote": self.total_remote,
            "created_ids": self.created_ids,
            "counts": self.counts(),
            "has_more": self.has_more,
            "next_page": self.next_page,
            "results": [asdict(r) for r in self.results],
        }


def page_window(items: List[Tuple[Any, Any]], page_number: int, page_size: int) -> List[Tuple[Any, Any]]:
    """Fixed-size window: page 1 is items[0:size], page 2 is items[size:2*size], ..."""
    start = (max(1, page_number) - 1) * page_size
    return items[start:start + page_size]


async def build_product_payload(ctx: "SyncContext", breez_id, p: BreezProduct) -> Dict[str, Any]:
    rrc = format_wc_price(p.price.rrc)
    categories = []
    for key, value in ((CATEGORY_META_KEY, p.category_id), (BRAND_META_KEY, p.brand_id)):
        term_id = await ctx.term_id_by_meta(key, value)
        if term_id:
            categories.append({"id": term_id})

    return {
        "name": p.title,
        "slug": slug_from_title(p.title),
        "type": "simple",
        "sku": p.sku,
        "description": decode_html(p.description),
        "short_description": decode_html(p.short_description),
        "regular_price": rrc,
        "sale_price": rrc,
        "categories": categories,
        "catalog_visibility": "visible",
        "status": "publish",
        "manage_stock": True,
        "stock_quantity": 0,
        "stock_status": "outofstock",
        "backorders": "no",
        "reviews_allowed": True,
        "sold_individually": False,
        "virtual": False,
        "downloadable": False,
        "meta_data": meta_data(**{PRODUCT_META_KEY: str(breez_id)}),
        "images": [],
    }


async def create_product(ctx: "SyncContext", breez_id, p: BreezProduct) -> ProductImportResult:
    result = ProductImportResult(breez_id=str(breez_id), sku=p.sku or "")
    try:
        payload = await build_product_payload(ctx, breez_id, p)
        await add_images_to_product(ctx, payload, p.images)
        if not payload["images"]:
            payload.pop("images")

        product = await ctx.store.create_product(payload)
        if not product or not product.get("id"):
            result.reason = "store returned no product id"
            return result
    except Exception as e:
        logger.exception("[PRODUCT] failed to create %s (breez id %s)", p.sku, breez_id)
        result.reason = str(e) or e.__class__.__name__
        return result

    result.status = CREATED
    result.product_id = int(product["id"])
    product.setdefault("sku", p.sku)
    product.setdefault("meta_data", payload["meta_data"])
    await ctx.add_product(product)
    logger.info("🟢 [PRODUCT] created %s (id=%s)", p.sku, result.product_id)

    try:
        await import_product_techs(ctx, product, breez_id)
    except Exception as e:
        logger.error("[PRODUCT] %s created but techs failed: %s", p.sku, e)
    return result


async def import_products(ctx: "SyncContext", page_number: int = 1) -> ProductPageReport:
    """Create the products of one page of the feed that are not in the store yet."""
    page_number = max(1, int(page_number or 1))
    remote = await ctx.feed.get_products()
    items = list((remote or {}).items())
    report = ProductPageReport(page_number=page_number, page_size=ctx.page_size, total_remote=len(items))

    window = page_window(items, page_number, ctx.page_size)
    if not window:
        logger.info("[PRODUCT] page %s is empty (%s products in feed)", page_number, len(items))
        return report

    await ctx.product_skus()
    for breez_id, raw in window:
        try:
            p = BreezProduct.model_validate(raw if isinstance(raw, dict) else {})
        except ValidationError as e:
            report.results.append(ProductImportResult(str(breez_id), status=INVALID, reason=str(e)))
            continue
        if not p.sku:
            report.results.append(ProductImportResult(str(breez_id), status=INVALID, reason="missing articul"))
            continue
        if not p.has_cost_price:
            report.results.append(ProductImportResult(str(breez_id), p.sku, SKIPPED_PRICE, reason="empty ric price"))
            continue
        existing = await ctx.product_id_by_sku(p.sku)
        if existing:
            report.results.append(ProductImportResult(str(breez_id), p.sku, SKIPPED_EXISTS, existing))
            continue
        report.results.append(await create_product(ctx, breez_id, p))

    logger.info("[PRODUCT] page %s done: %s", page_number, report.counts())
    return report
