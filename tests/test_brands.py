import asyncio

from app.config import settings
from app.sync.components.brands import BRAND_META_KEY, THUMBNAIL_META_KEY, import_brands
from tests.conftest import FakeFeed, FakeStore

BRANDS = {
    "11": {"title": "Daikin", "chpu": "daikin", "image": "https://breez.ru/upload/brands/daikin.png"},
    "12": {"title": "Mitsubishi Electric", "chpu": "mitsubishi-electric", "image": ""},
}


def test_brands_nest_under_one_root(make_ctx, downloader):
    store = FakeStore()
    ids = asyncio.run(import_brands(make_ctx(FakeFeed(brands=BRANDS), store)))

    root = store.term_by_slug(settings.BRAND_PARENT_SLUG)
    assert root is not None and root["parent"] == 0
    assert len(ids) == 2
    daikin = store.term_by_slug("daikin")
    assert daikin["parent"] == root["id"]
    assert daikin["meta"][BRAND_META_KEY] == "11"
    assert daikin["meta"][THUMBNAIL_META_KEY] in store.media
    assert THUMBNAIL_META_KEY not in store.term_by_slug("mitsubishi-electric")["meta"]
    assert downloader.urls == ["https://breez.ru/upload/brands/daikin.png"]


def test_second_run_creates_nothing(make_ctx, downloader):
    store = FakeStore()
    feed = FakeFeed(brands=BRANDS)
    asyncio.run(import_brands(make_ctx(feed, store)))
    count = len(store.terms)
    downloads = list(downloader.urls)
    media = dict(store.media)
    thumbnail = store.term_by_slug("daikin")["meta"][THUMBNAIL_META_KEY]

    assert asyncio.run(import_brands(make_ctx(feed, store))) == []
    assert len(store.terms) == count
    assert downloader.urls == downloads
    assert store.media == media
    assert [c for c in store.calls if c[0] == "create_media"] == [("create_media", "daikin.png")]
    assert store.term_by_slug("daikin")["meta"][THUMBNAIL_META_KEY] == thumbnail
    roots = [t for t in store.terms.values() if t["slug"] == settings.BRAND_PARENT_SLUG]
    assert len(roots) == 1


def test_thumbnail_failure_keeps_the_brand(make_ctx):
    store = FakeStore()
    feed = FakeFeed(brands={"13": {"title": "Ballu", "chpu": "ballu", "image": "https://breez.ru/broken/ballu.png"}})
    ids = asyncio.run(import_brands(make_ctx(feed, store)))

    assert len(ids) == 1
    assert THUMBNAIL_META_KEY not in store.term_by_slug("ballu")["meta"]
    assert store.media == {}


def test_no_root_no_brands(make_ctx):
    store = FakeStore()
    store.fail_on["create_category"] = lambda slug: slug == settings.BRAND_PARENT_SLUG
    assert asyncio.run(import_brands(make_ctx(FakeFeed(brands=BRANDS), store))) == []
    assert store.terms == {}
