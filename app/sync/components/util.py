# app/sync/components/util.py
from __future__ import annotations

import html
import os
import re
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from urllib.parse import urlparse, unquote
from typing import Any, Dict, List

CYRILLIC_HA = "х"  # "х", shows up inside Breez articuls instead of Latin "x"

_WS_RE = re.compile(r"\s+")
_NOT_SLUG_RE = re.compile(r"[^a-z0-9-]")
_FILENAME_BAD_RE = re.compile(r"[?\[\]/\\=<>:;,'\"&$#*()|~`!{}%+«»”“\x00]")


def slug_from_title(title: str | None) -> str:
    """Lower-case, whitespace runs -> '-', drop everything outside [a-z0-9-]."""
    slug = (title or "").lower()
    slug = _WS_RE.sub("-", slug)
    return _NOT_SLUG_RE.sub("", slug)


def decode_html(text: str | None) -> str:
    return html.unescape(text or "")


def normalize_sku(sku: str | None) -> str:
    return (sku or "").strip().replace(CYRILLIC_HA, "x")


def basename(url_or_path: str) -> str:
    if url_or_path.startswith(("http://", "https://")):
        return unquote(os.path.basename(urlparse(url_or_path).path))
    return os.path.basename(url_or_path)


def sanitize_filename(name: str) -> str:
    """Close to WordPress' sanitize_file_name(): strip special chars, spaces to dashes."""
    name = _FILENAME_BAD_RE.sub("", name or "")
    name = re.sub(r"[\s-]+", "-", name)
    return name.strip(".-_")


def format_wc_price(value) -> str:
    """Two-decimal price string. Missing or unparseable values give "" (Woo: no price, not purchasable)."""
    if value is None or str(value).strip() == "":
        return ""
    try:
        d = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        # avoid scientific notation and guarantee 2 decimals
        return f"{d:.2f}"
    except (InvalidOperation, ValueError):
        return ""


def get_meta(obj: Dict[str, Any] | None, key: str):
    """
    Read a meta value from either shape the store returns:
      - terms:    {"meta": {key: value}}
      - products: {"meta_data": [{"key": key, "value": value}, ...]}
    """
    if not isinstance(obj, dict):
        return None
    meta = obj.get("meta")
    if isinstance(meta, dict) and key in meta:
        v = meta[key]
        # unregistered "single" meta comes back as a list
        if isinstance(v, list):
            return v[0] if v else None
        return v
    for row in obj.get("meta_data") or []:
        if isinstance(row, dict) and row.get("key") == key:
            return row.get("value")
    return None


def meta_data(**values) -> List[Dict[str, Any]]:
    return [{"key": k, "value": v} for k, v in values.items()]


def same_id(a, b) -> bool:
    if a is None or b is None:
        return False
    return str(a).strip() == str(b).strip() and str(a).strip() != ""
