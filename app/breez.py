#===========================================================================
# app/breez.py
# Breez feed API interface module.
# Read-only access to categories, brands, products, stock levels and techs.
#===========================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings

logger = logging.getLogger("uvicorn.error")

CATEGORIES_PATH = "/categories/"
BRANDS_PATH = "/brands/"
PRODUCTS_PATH = "/products/"
STOCKS_PATH = "/leftoversnew/"
TECH_PATH = "/tech/"


class BreezClient:
    """
    Thin async client for the Breez REST feed.

    Every getter returns an empty map/list on transport or HTTP errors (logged),
    which the importers treat as "nothing to do".
    """

    def __init__(
        self,
        base_url: str | None = None,
        login: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.BREEZ_API_URL).rstrip("/")
        self.login = login if login is not None else settings.BREEZ_LOGIN
        self.password = password if password is not None else settings.BREEZ_PASSWORD
        self.timeout = timeout or settings.BREEZ_TIMEOUT
        self.transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, verify=settings.VERIFY_SSL, transport=self.transport)

    def _auth(self):
        if self.login or self.password:
            return (self.login, self.password)
        return None

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self._client(self.timeout) as client:
                resp = await client.get(url, params=params or {}, auth=self._auth())
        except httpx.HTTPError as e:
            logger.error("[BREEZ] GET %s failed: %s", url, e)
            return None
        if resp.status_code != 200:
            logger.error("[BREEZ] GET %s -> %s: %s", url, resp.status_code, resp.text)
            return None
        try:
            return resp.json()
        except ValueError:
            logger.error("[BREEZ] GET %s returned non-JSON body: %s", url, resp.text)
            return None

    async def _get_map(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = await self._get_json(path, params)
        if isinstance(data, dict):
            return data
        if data:
            logger.warning("[BREEZ] %s: expected an object keyed by id, got %s", path, type(data).__name__)
        return {}

    # ---- Catalog ----

    async def get_categories(self) -> Dict[str, Dict[str, Any]]:
        """{breez_category_id: {title, chpu, level, ...}}"""
        return await self._get_map(CATEGORIES_PATH)

    async def get_brands(self) -> Dict[str, Dict[str, Any]]:
        """{breez_brand_id: {title, chpu, image, ...}}"""
        return await self._get_map(BRANDS_PATH)

    async def get_products(self) -> Dict[str, Dict[str, Any]]:
        """{breez_product_id: {articul, title, price: {ric, rrc}, images, ...}}"""
        return await self._get_map(PRODUCTS_PATH)

    async def get_product_stocks(self) -> List[Dict[str, Any]]:
        """[{articul, quantity, price: {base, ric}}, ...]"""
        data = await self._get_json(STOCKS_PATH)
        if isinstance(data, dict):
            data = list(data.values())
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]

    async def get_product_tech(self, breez_product_id) -> Dict[str, Any]:
        """{breez_product_id: {techs: [{title, value, order}, ...]}}"""
        return await self._get_map(TECH_PATH, params={"id": breez_product_id})

    async def ping(self) -> Dict[str, Any]:
        url = f"{self.base_url}{BRANDS_PATH}"
        try:
            async with self._client(10.0) as client:
                r = await client.get(url, auth=self._auth())
            return {"ok": r.status_code == 200, "status": r.status_code, "url": url}
        except httpx.HTTPError as e:
            return {"ok": False, "error": str(e), "url": url}
