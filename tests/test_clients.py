import asyncio

import httpx
import pytest

from app.breez import BreezClient
from app.woocommerce import PER_PAGE, WooError, WooStore


def _breez(handler):
    return BreezClient(base_url="https://api.breez.test/v1", login="u", password="p",
                       transport=httpx.MockTransport(handler))


def _store(handler):
    return WooStore(base_url="https://shop.test", wp_api_url="https://shop.test/wp-json",
                    transport=httpx.MockTransport(handler))


def _media(start, count):
    return [{"id": i, "title": {"raw": f"img-{i}.jpg"}} for i in range(start, start + count)]


# ---- Breez feed ----

def test_breez_returns_feed_map():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"1": {"title": "Кондиционеры", "chpu": "konditsionery"}})

    cats = asyncio.run(_breez(handler).get_categories())
    assert cats["1"]["chpu"] == "konditsionery"
    assert seen[0].url.path == "/v1/categories/"
    assert seen[0].headers["authorization"].startswith("Basic ")


@pytest.mark.parametrize("status, kwargs", [
    (500, {"text": "server error"}),
    (404, {"json": {"error": "not found"}}),
    (200, {"text": "<html><title>Maintenance</title></html>"}),
    (200, {"json": ["not", "a", "map"]}),
])
def test_breez_bad_answers_give_empty_results(status, kwargs):
    client = _breez(lambda request: httpx.Response(status, **kwargs))
    assert asyncio.run(client.get_products()) == {}
    assert asyncio.run(client.get_brands()) == {}


def test_breez_transport_error_gives_empty_results():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _breez(handler)
    assert asyncio.run(client.get_categories()) == {}
    assert asyncio.run(client.get_product_stocks()) == []
    assert asyncio.run(client.ping())["ok"] is False


def test_breez_stocks_accept_object_or_list():
    rows = [{"articul": "A", "quantity": 1}, "junk"]
    assert asyncio.run(_breez(lambda r: httpx.Response(200, json=rows)).get_product_stocks()) == [rows[0]]
    keyed = {"7": {"articul": "B", "quantity": 2}}
    assert asyncio.run(_breez(lambda r: httpx.Response(200, json=keyed)).get_product_stocks()) == [keyed["7"]]


def test_breez_tech_passes_product_id():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"501": {"techs": []}})

    assert "501" in asyncio.run(_breez(handler).get_product_tech(501))
    assert seen[0].url.path == "/v1/tech/"
    assert seen[0].url.params["id"] == "501"


# ---- WooCommerce / WordPress store ----

def test_pager_stops_on_short_page():
    pages = []

    def handler(request):
        page = int(request.url.params["page"])
        pages.append(page)
        return httpx.Response(200, json=_media(0, PER_PAGE) if page == 1 else _media(PER_PAGE, 30))

    media = asyncio.run(_store(handler).list_media())
    assert len(media) == PER_PAGE + 30
    assert pages == [1, 2]


def test_pager_treats_out_of_range_page_as_the_end():
    pages = []

    def handler(request):
        page = int(request.url.params["page"])
        pages.append(page)
        if page == 1:
            return httpx.Response(200, json=_media(0, PER_PAGE))
        return httpx.Response(400, json={"code": "rest_post_invalid_page_number"})

    media = asyncio.run(_store(handler).list_media())
    assert len(media) == PER_PAGE
    assert pages == [1, 2]


def test_pager_follows_total_pages_header():
    pages = []

    def handler(request):
        page = int(request.url.params["page"])
        pages.append(page)
        return httpx.Response(200, json=_media(page * PER_PAGE, PER_PAGE), headers={"X-WP-TotalPages": "2"})

    media = asyncio.run(_store(handler).list_media())
    assert len(media) == 2 * PER_PAGE
    assert pages == [1, 2]


def test_first_page_rejection_raises():
    def handler(request):
        return httpx.Response(401, json={"code": "rest_forbidden"})

    with pytest.raises(WooError) as exc:
        asyncio.run(_store(handler).list_categories())
    assert exc.value.status_code == 401
    assert exc.value.detail == {"code": "rest_forbidden"}


def test_write_rejection_raises_with_detail():
    def handler(request):
        return httpx.Response(400, json={"code": "term_exists", "message": "A term with the name provided already exists."})

    with pytest.raises(WooError) as exc:
        asyncio.run(_store(handler).create_category("Daikin", "daikin", parent=3))
    assert exc.value.status_code == 400
    assert exc.value.detail["code"] == "term_exists"


def test_transport_error_raises():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(WooError):
        asyncio.run(_store(handler).update_product(1, {"stock_quantity": 3}))


def test_media_upload_is_multipart_with_title():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"id": 55})

    created = asyncio.run(_store(handler).create_media("split.png", b"png", "image/png", title="split.png"))
    assert created == {"id": 55}
    assert seen[0].url.path == "/wp-json/wp/v2/media"
    assert seen[0].headers["content-type"].startswith("multipart/form-data")
    body = seen[0].content
    assert b'name="title"' in body
    assert b'filename="split.png"' in body
