#==========================================================================================
# # woocommerce.py
# WooCommerce / WordPress API interface module.
# Product categories (with term meta), products and the media library.
#==========================================================================================
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings

logger = logging.getLogger("uvicorn.error")

PER_PAGE = 100


class WooError(Exception):
    """Non-2xx answer (or transport failure) from the store."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail

    def __str__(self):
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status {self.status_code})"
        return base


def _body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class WooStore:
    """
    Catalog store backed by the WooCommerce REST API (products, consumer key auth)
    and the WordPress REST API (product_cat terms + media, application password auth).

    Term meta (breeze_category_id, breez_brand_id, thumbnail_id) must be registered
    with show_in_rest on the site so it is readable/writable through /wp/v2/product_cat.
    """

    def __init__(
        self,
        base_url: str | None = None,
        wp_api_url: str | None = None,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.WC_BASE_URL).rstrip("/")
        self.wp_api_url = (wp_api_url or settings.WP_API_URL or f"{self.base_url}/wp-json").rstrip("/")
        self.wc_auth = (settings.WC_API_KEY, settings.WC_API_SECRET)
        self.wp_auth = (settings.WP_USERNAME, settings.WP_PASSWORD)
        self.timeout = timeout
        self.transport = transport

    # ---- plumbing ----

    @property
    def _wc(self) -> str:
        return f"{self.base_url}/wp-json/wc/v3"

    @property
    def _wp(self) -> str:
        return f"{self.wp_api_url}/wp/v2"

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, verify=settings.VERIFY_SSL, transport=self.transport)

    async def _send(self, method: str, url: str, auth, **kwargs) -> httpx.Response:
        async with self._client(self.timeout) as client:
            try:
                return await client.request(method, url, auth=auth, **kwargs)
            except httpx.HTTPError as e:
                raise WooError(f"{method} {url} failed: {e}") from e

    async def _request(self, method: str, url: str, auth, **kwargs) -> Any:
        resp = await self._send(method, url, auth, **kwargs)
        if resp.status_code not in (200, 201):
            raise WooError(f"{method} {url} rejected", status_code=resp.status_code, detail=_body(resp))
        return _body(resp) if resp.content else None

    async def _get_all(self, url: str, auth, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Walk a paginated collection. Stops at X-WP-TotalPages when the server sends it,
        otherwise at a short page. WP answers a page past the end with 400
        (rest_post_invalid_page_number); after page 1 that just means "no more".
        """
        out: List[Dict[str, Any]] = []
        page = 1
        while True:
            q = dict(params or {}, per_page=PER_PAGE, page=page)
            resp = await self._send("GET", url, auth, params=q)
            if resp.status_code == 400 and page > 1:
                break
            if resp.status_code != 200:
                raise WooError(f"GET {url} rejected", status_code=resp.status_code, detail=_body(resp))
            batch = _body(resp) if resp.content else None
            if not batch or not isinstance(batch, list):
                break
            out.extend(batch)
            total_pages = resp.headers.get("X-WP-TotalPages")
            if total_pages and total_pages.isdigit():
                if page >= int(total_pages):
                    break
            elif len(batch) < PER_PAGE:
                break
            page += 1
        return out

    # ---- Categories (product_cat terms) ----

    async def list_categories(self) -> List[Dict[str, Any]]:
        return await self._get_all(f"{self._wp}/product_cat", self.wp_auth, {"context": "edit"})

    async def create_category(
        self,
        name: str,
        slug: str,
        parent: int = 0,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": name, "slug": slug, "parent": int(parent or 0)}
        if meta:
            payload["meta"] = meta
        term = await self._request("POST", f"{self._wp}/product_cat", self.wp_auth, json=payload)
        logger.info("[WC] created product_cat %r (id=%s)", slug, (term or {}).get("id"))
        return term

    async def update_category(self, term_id: int, **fields) -> Dict[str, Any]:
        """WordPress accepts POST for updates on term endpoints."""
        return await self._request("POST", f"{self._wp}/product_cat/{term_id}", self.wp_auth, json=fields)

    # ---- Products ----

    async def list_products(self, status: str = "publish") -> List[Dict[str, Any]]:
        return await self._get_all(f"{self._wc}/products", self.wc_auth, {"status": status})

    async def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", f"{self._wc}/products", self.wc_auth, json=payload)

    async def update_product(self, product_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"{self._wc}/products/{product_id}", self.wc_auth, json=payload)

    # ---- Media ----

    async def list_media(self) -> List[Dict[str, Any]]:
        return await self._get_all(f"{self._wp}/media", self.wp_auth, {"media_type": "image"})

    async def create_media(self, filename: str, content: bytes, mime_type: str, title: str | None = None) -> Dict[str, Any]:
        """
        Register a file in the media library. WordPress stores it in its upload
        directory and generates the derived sizes itself.
        """
        files = {"file": (filename, content, mime_type)}
        data = {"title": title or filename}
        return await self._request("POST", f"{self._wp}/media", self.wp_auth, files=files, data=data)

    # ---- Health ----

    async def ping(self) -> Dict[str, Any]:
        url = self.wp_api_url
        try:
            async with self._client(10.0) as client:
                r = await client.get(url)
            return {"ok": r.status_code == 200, "status": r.status_code, "url": url}
        except httpx.HTTPError as e:
            return {"ok": False, "error": str(e), "url": url}
