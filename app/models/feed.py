# app/models/feed.py
# Breez feed records. Wire names (chpu, articul, utp, ...) are accepted via aliases.
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


def to_float(v: Any) -> Optional[float]:
    """Feed prices arrive as numbers, numeric strings, "" or null."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return float(v)
    s = str(v).strip().replace(" ", "").replace(",", ".")
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        return None


def to_int(v: Any, default: int = 0) -> int:
    f = to_float(v)
    return int(f) if f is not None else default


def to_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


class BreezCategory(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = Field(None, alias="chpu")
    # legacy feed: key of the parent record in the same response
    level: int = 0
    parent_id: Optional[str] = None

    class Config:
        extra = "allow"
        populate_by_name = True

    @field_validator("level", mode="before")
    @classmethod
    def _level(cls, v):
        return to_int(v)

    @field_validator("title", "slug", "parent_id", mode="before")
    @classmethod
    def _strs(cls, v):
        return to_str(v)


class BreezBrand(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = Field(None, alias="chpu")
    image_url: Optional[str] = Field(None, alias="image")

    class Config:
        extra = "allow"
        populate_by_name = True

    @field_validator("title", "slug", "image_url", mode="before")
    @classmethod
    def _strs(cls, v):
        return to_str(v)


class BreezPrice(BaseModel):
    ric: Optional[float] = None
    rrc: Optional[float] = None
    base: Optional[float] = None

    class Config:
        extra = "allow"

    @field_validator("ric", "rrc", "base", mode="before")
    @classmethod
    def _prices(cls, v):
        return to_float(v)


def _price_dict(v: Any) -> dict:
    return v if isinstance(v, dict) else {}


class BreezProduct(BaseModel):
    title: str = ""
    sku: Optional[str] = Field(None, alias="articul")
    description: str = ""
    short_description: str = Field("", alias="utp")
    price: BreezPrice = Field(default_factory=BreezPrice)
    category_id: Optional[str] = None
    brand_id: Optional[str] = Field(None, alias="brand")
    images: List[str] = Field(default_factory=list)

    class Config:
        extra = "allow"
        populate_by_name = True

    @field_validator("title", "description", "short_description", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("sku", "category_id", "brand_id", mode="before")
    @classmethod
    def _ids(cls, v):
        return to_str(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return _price_dict(v)

    @field_validator("images", mode="before")
    @classmethod
    def _images(cls, v):
        if not v:
            return []
        if isinstance(v, dict):
            v = list(v.values())
        if isinstance(v, str):
            v = [v]
        return [str(u).strip() for u in v if u and str(u).strip()]

    @property
    def has_cost_price(self) -> bool:
        return self.price.ric is not None and self.price.ric > 0


class BreezStock(BaseModel):
    sku: Optional[str] = Field(None, alias="articul")
    quantity: int = 0
    price: BreezPrice = Field(default_factory=BreezPrice)

    class Config:
        extra = "allow"
        populate_by_name = True

    @field_validator("sku", mode="before")
    @classmethod
    def _sku(cls, v):
        return to_str(v)

    @field_validator("quantity", mode="before")
    @classmethod
    def _qty(cls, v):
        return to_int(v)

    @field_validator("price", mode="before")
    @classmethod
    def _price(cls, v):
        return _price_dict(v)

    @property
    def has_base_price(self) -> bool:
        return self.price.base is not None and self.price.base > 0


class BreezTech(BaseModel):
    title: str
    value: str = ""
    order: int = 0

    class Config:
        extra = "allow"

    @field_validator("value", mode="before")
    @classmethod
    def _value(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("order", mode="before")
    @classmethod
    def _order(cls, v):
        return to_int(v)
