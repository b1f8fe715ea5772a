# app/sync/context.py
# =======================================================
# Per-invocation sync state: clients + lazily built lookup indices
# (terms by slug, products by SKU, media by title).
# Nothing here outlives the context; nothing is persisted.
# =======================================================
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.config import settings
from app.sync.components.util import get_meta, same_id

logger = logging.getLogger("uvicorn.error")

Downloader = Callable[[str], Awaitable[bytes]]


class SyncContext:
    def __init__(
        self,
        feed,
        store,
        *,
        page_size: int | None = None,
        upload_dir: str | None = None,
        downloader: Downloader | None = None,
    ):
        self.feed = feed
        self.store = store
        self.page_size = max(1, int(page_size or settings.PRODUCTS_PER_REQUEST))
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        if downloader is None:
            from app.sync.components.images import download_image
            downloader = download_image
        self.downloader = downloader

        self._terms: Optional[Dict[str, Dict[str, Any]]] = None
        self._products: Optional[List[Dict[str, Any]]] = None
        self._product_skus: Optional[Dict[str, int]] = None
        self._media: Optional[Dict[str, int]] = None

    @classmethod
    def from_settings(cls) -> "SyncContext":
        from app.breez import BreezClient
        from app.woocommerce import WooStore
        return cls(BreezClient(), WooStore())

    # ---- Terms ----

    async def terms(self) -> Dict[str, Dict[str, Any]]:
        if self._terms is None:
            rows = await self.store.list_categories()
            self._terms = {t["slug"]: t for t in rows if isinstance(t, dict) and t.get("slug")}
            logger.info("[CTX] indexed %d product categories", len(self._terms))
        return self._terms

    async def term_by_slug(self, slug: str | None) -> Optional[Dict[str, Any]]:
        if not slug:
            return None
        return (await self.terms()).get(slug)

    async def term_id_by_meta(self, key: str, value) -> int:
        if value is None or str(value).strip() == "":
            return 0
        for term in (await self.terms()).values():
            if same_id(get_meta(term, key), value):
                return int(term["id"])
        return 0

    def remember_term(self, term: Dict[str, Any]) -> None:
        if self._terms is not None and term and term.get("slug"):
            self._terms[term["slug"]] = term

    # ---- Products ----

    async def products(self) -> List[Dict[str, Any]]:
        if self._products is None:
            self._products = list(await self.store.list_products(status="publish"))
            logger.info("[CTX] indexed %d published products", len(self._products))
        return self._products

    async def product_skus(self) -> Dict[str, int]:
        if self._product_skus is None:
            self._product_skus = {}
            for p in await self.products():
                sku = (p.get("sku") or "").strip()
                if sku and sku not in self._product_skus:
                    self._product_skus[sku] = int(p["id"])
        return self._product_skus

    async def product_id_by_sku(self, sku: str | None) -> int:
        if not sku:
            return 0
        return (await self.product_skus()).get(sku.strip(), 0)

    async def add_product(self, product: Dict[str, Any]) -> None:
        (await self.products()).append(product)
        sku = (product.get("sku") or "").strip()
        if sku:
            (await self.product_skus())[sku] = int(product["id"])

    # ---- Media ----

    async def media(self) -> Dict[str, int]:
        if self._media is None:
            self._media = {}
            for m in await self.store.list_media():
                title = m.get("title")
                if isinstance(title, dict):
                    title = title.get("raw") or title.get("rendered")
                if title and m.get("id"):
                    self._media.setdefault(str(title), int(m["id"]))
            logger.info("[CTX] indexed %d media library entries", len(self._media))
        return self._media

    async def remember_media(self, title: str, media_id: int) -> None:
        (await self.media())[title] = int(media_id)
