from app.logging_filters import summarize_html
from app.models.feed import BreezCategory, BreezProduct
from app.sync.components.util import (
    basename,
    format_wc_price,
    get_meta,
    normalize_sku,
    sanitize_filename,
    slug_from_title,
)


def test_slug_from_title():
    assert slug_from_title("Daikin  FTXB 35C!") == "daikin-ftxb-35c"
    assert slug_from_title(None) == ""


def test_normalize_sku():
    assert normalize_sku(" A-1х00 ") == "A-1x00"
    assert normalize_sku(None) == ""


def test_prices_are_two_decimal_strings():
    assert format_wc_price(1500) == "1500.00"
    assert format_wc_price("99.995") == "100.00"
    assert format_wc_price(0) == "0.00"
    assert format_wc_price(None) == ""
    assert format_wc_price("") == ""
    assert format_wc_price("abc") == ""


def test_filenames():
    assert basename("https://breez.ru/img/%D1%84%D0%BE%D1%82%D0%BE.jpg?v=2") == "фото.jpg"
    assert sanitize_filename("a (b) c.png") == "a-b-c.png"


def test_get_meta_reads_terms_and_products():
    assert get_meta({"meta": {"k": "1"}}, "k") == "1"
    assert get_meta({"meta": {"k": ["2"]}}, "k") == "2"
    assert get_meta({"meta_data": [{"key": "k", "value": 3}]}, "k") == 3
    assert get_meta({"meta": []}, "k") is None


def test_feed_records_accept_wire_names():
    cat = BreezCategory.model_validate({"title": "Кондиционеры", "chpu": "konditsionery", "level": "2"})
    assert cat.slug == "konditsionery" and cat.level == 2

    p = BreezProduct.model_validate({
        "articul": 123,
        "utp": None,
        "price": {"ric": "1 200,50", "rrc": ""},
        "images": {"0": "https://a/1.jpg", "1": ""},
    })
    assert p.sku == "123"
    assert p.short_description == ""
    assert p.price.ric == 1200.5 and p.price.rrc is None
    assert p.images == ["https://a/1.jpg"]
    assert p.has_cost_price


def test_html_error_pages_are_summarized():
    page = "<!DOCTYPE html><html><head><title>502 Bad Gateway</title></head><body>" + "x" * 500 + "</body></html>"
    assert summarize_html(page).startswith("502 Bad Gateway")
