import copy

import pytest

from app.sync.components.images import ImageUploadError
from app.sync.context import SyncContext
from app.woocommerce import WooError


class FakeFeed:
    """In-memory Breez feed with the BreezClient interface."""

    def __init__(self, categories=None, brands=None, products=None, stocks=None, techs=None):
        self.categories = categories or {}
        self.brands = brands or {}
        self.products = products or {}
        self.stocks = stocks or []
        self.techs = techs or {}
        self.tech_calls = []

    async def get_categories(self):
        return copy.deepcopy(self.categories)

    async def get_brands(self):
        return copy.deepcopy(self.brands)

    async def get_products(self):
        return copy.deepcopy(self.products)

    async def get_product_stocks(self):
        return copy.deepcopy(self.stocks)

    async def get_product_tech(self, breez_product_id):
        self.tech_calls.append(str(breez_product_id))
        techs = self.techs.get(str(breez_product_id))
        if techs is None:
            return {}
        return {str(breez_product_id): {"techs": copy.deepcopy(techs)}}


class FakeStore:
    """
    In-memory WooCommerce/WordPress store with the WooStore interface.
    Everything handed out is a copy, like a real HTTP round trip.
    `fail_on` maps an operation name to a predicate(args) -> bool that makes it raise WooError.
    """

    def __init__(self, terms=None, products=None, media=None):
        self.terms = {}
        self.products = {}
        self.media = {}
        self.calls = []
        self.fail_on = {}
        self._next_id = 100
        for t in terms or []:
            self._put_term(t)
        for p in products or []:
            self._put_product(p)
        for m in media or []:
            self.media[m["id"]] = dict(m)

    def _id(self):
        self._next_id += 1
        return self._next_id

    def _put_term(self, t):
        term = {"parent": 0, "meta": {}, **copy.deepcopy(t)}
        term.setdefault("id", self._id())
        self.terms[term["id"]] = term
        return term

    def _put_product(self, p):
        product = {"status": "publish", "images": [], "attributes": [], "meta_data": [], **copy.deepcopy(p)}
        product.setdefault("id", self._id())
        self.products[product["id"]] = product
        return product

    def _check(self, op, *args):
        self.calls.append((op,) + args)
        pred = self.fail_on.get(op)
        if pred is not None and pred(*args):
            raise WooError(f"{op} rejected", status_code=500, detail={"code": "fake_error"})

    def term_by_slug(self, slug):
        return next((t for t in self.terms.values() if t["slug"] == slug), None)

    def product_by_sku(self, sku):
        return next((p for p in self.products.values() if p.get("sku") == sku), None)

    # ---- Categories ----

    async def list_categories(self):
        return copy.deepcopy(list(self.terms.values()))

    async def create_category(self, name, slug, parent=0, meta=None):
        self._check("create_category", slug)
        if self.term_by_slug(slug):
            raise WooError("term_exists", status_code=400, detail={"code": "term_exists"})
        term = self._put_term({"name": name, "slug": slug, "parent": parent, "meta": dict(meta or {})})
        return copy.deepcopy(term)

    async def update_category(self, term_id, **fields):
        self._check("update_category", term_id, fields)
        term = self.terms[term_id]
        meta = fields.pop("meta", None)
        term.update(fields)
        if meta:
            term["meta"].update(meta)
        return copy.deepcopy(term)

    # ---- Products ----

    async def list_products(self, status="publish"):
        return copy.deepcopy([p for p in self.products.values() if p.get("status") == status])

    async def create_product(self, payload):
        self._check("create_product", payload.get("sku"))
        return copy.deepcopy(self._put_product(payload))

    async def update_product(self, product_id, payload):
        self._check("update_product", product_id, payload)
        product = self.products[product_id]
        product.update(copy.deepcopy(payload))
        product["price"] = product.get("sale_price") or product.get("regular_price")
        return copy.deepcopy(product)

    # ---- Media ----

    async def list_media(self):
        self._check("list_media")
        return copy.deepcopy(list(self.media.values()))

    async def create_media(self, filename, content, mime_type, title=None):
        self._check("create_media", filename)
        media_id = self._id()
        self.media[media_id] = {
            "id": media_id,
            "title": {"raw": title or filename, "rendered": title or filename},
            "mime_type": mime_type,
            "size": len(content),
        }
        return copy.deepcopy(self.media[media_id])


class CountingDownloader:
    """Records every download; URLs containing "broken" fail like a dead link."""

    def __init__(self, content=b"\x89PNG fake image bytes"):
        self.content = content
        self.urls = []

    async def __call__(self, url):
        self.urls.append(url)
        if "broken" in url:
            raise ImageUploadError(url, "download returned HTTP 404")
        return self.content


@pytest.fixture
def downloader():
    return CountingDownloader()


@pytest.fixture
def make_ctx(tmp_path, downloader):
    def _make(feed=None, store=None, page_size=10):
        return SyncContext(
            feed or FakeFeed(),
            store or FakeStore(),
            page_size=page_size,
            upload_dir=str(tmp_path / "uploads"),
            downloader=downloader,
        )
    return _make
