from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import Any, List, Optional
from datetime import datetime
import math

from storefront.services.qty_offers import parse_qty_offers
from storefront.utils.parsing import (
    normalize_text,
    normalize_optional_text,
    parse_boolean,
    parse_number,
    parse_positive_int,
    STATUS_VALUES,
)

TEXT_FIELDS = ("description", "weight", "length", "breadth", "height", "hsn", "seo_title", "seo_description")
PRICE_MESSAGES = {
    "prise": "Prise must be 0 or greater",
    "offer_prise": "Offer prise must be 0 or greater",
    "tax": "Tax must be 0 or greater",
}


def parse_images(value: Any) -> List[str]:
    if isinstance(value, list):
        return [normalize_text(item) for item in value if normalize_text(item)]
    text = normalize_text(value)
    return [text] if text else []


def parse_keywords(value: Any) -> List[str]:
    if isinstance(value, list):
        return [normalize_text(item) for item in value if normalize_text(item)]
    return [part.strip() for part in normalize_text(value).split(",") if part.strip()]


def _whole_count(value: Any) -> int:
    number = parse_number(value)
    return max(0, math.trunc(number)) if number is not None else 0


class ProductCreate(BaseModel):
    name: Optional[str] = Field(None, examples=["Ashwagandha Capsules"])
    slug: Optional[str] = Field(None, description="Lower-cased, unique", examples=["ashwagandha-capsules"])
    sku: Optional[str] = Field(None, description="Upper-cased, unique", examples=["ASH-60"])
    category_id: Optional[int] = None
    images: List[str] = Field(default_factory=list)
    qty: int = 0
    sold_qty: int = 0
    description: Optional[str] = None
    weight: Optional[str] = None
    length: Optional[str] = None
    breadth: Optional[str] = None
    height: Optional[str] = Field(None, validation_alias=AliasChoices("height", "hight"))
    prise: Optional[float] = Field(None, description="List price")
    offer_prise: Optional[float] = Field(None, description="Selling price when discounted")
    tax: Optional[float] = None
    hsn: Optional[str] = None
    seo_title: Optional[str] = Field(None, validation_alias=AliasChoices("seo_title", "sep_title"))
    seo_description: Optional[str] = Field(
        None, validation_alias=AliasChoices("seo_description", "seo_descrition")
    )
    keywords: List[str] = Field(default_factory=list)
    qty_offers: List[dict] = Field(
        default_factory=list,
        description="Tiered packs [{qty, price, label, label2?}]; a JSON string is accepted",
        examples=[[{"qty": 2, "price": 450, "label": "Pack of 2"}]],
    )
    new_product: bool = False
    is_top: bool = False
    is_best: bool = False
    status: str = "active"

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("slug", mode="before")
    @classmethod
    def clean_slug(cls, v):
        return normalize_text(v).lower()

    @field_validator("sku", mode="before")
    @classmethod
    def clean_sku(cls, v):
        return normalize_text(v).upper()

    @field_validator("category_id", mode="before")
    @classmethod
    def clean_category_id(cls, v):
        return parse_positive_int(v)

    @field_validator("images", mode="before")
    @classmethod
    def clean_images(cls, v):
        return parse_images(v)

    @field_validator("keywords", mode="before")
    @classmethod
    def clean_keywords(cls, v):
        return parse_keywords(v)

    @field_validator("qty", "sold_qty", mode="before")
    @classmethod
    def clean_counts(cls, v):
        return _whole_count(v)

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def clean_text(cls, v):
        return normalize_optional_text(v)

    @field_validator("prise", "offer_prise", "tax", mode="before")
    @classmethod
    def validate_prices(cls, v, info):
        number = parse_number(v)
        if number is not None and number < 0:
            raise ValueError(PRICE_MESSAGES[info.field_name])
        return number

    @field_validator("qty_offers", mode="before")
    @classmethod
    def validate_qty_offers(cls, v):
        return parse_qty_offers(v)

    @field_validator("new_product", "is_top", "is_best", mode="before")
    @classmethod
    def clean_flags(cls, v):
        return bool(parse_boolean(v))

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        value = normalize_text(v) or "active"
        if value not in STATUS_VALUES:
            raise ValueError("Status must be 'active' or 'inactive'")
        return value

    @model_validator(mode="after")
    def check_required(self):
        if not (self.name and self.slug and self.sku and self.category_id):
            raise ValueError("Name, slug, sku and valid category_id are required")
        return self


class ProductUpdate(BaseModel):
    """Partial update; a field is validated and written only when it is sent."""
    id: Optional[Any] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    sku: Optional[str] = None
    category_id: Optional[int] = None
    images: Optional[List[str]] = None
    qty: Optional[int] = None
    sold_qty: Optional[int] = None
    description: Optional[str] = None
    weight: Optional[str] = None
    length: Optional[str] = None
    breadth: Optional[str] = None
    height: Optional[str] = Field(None, validation_alias=AliasChoices("height", "hight"))
    prise: Optional[float] = None
    offer_prise: Optional[float] = None
    tax: Optional[float] = None
    hsn: Optional[str] = None
    seo_title: Optional[str] = Field(None, validation_alias=AliasChoices("seo_title", "sep_title"))
    seo_description: Optional[str] = Field(
        None, validation_alias=AliasChoices("seo_description", "seo_descrition")
    )
    keywords: Optional[List[str]] = None
    qty_offers: Optional[List[dict]] = None
    new_product: Optional[bool] = None
    is_top: Optional[bool] = None
    is_best: Optional[bool] = None
    status: Optional[str] = None

    @field_validator("name", "slug", "sku", mode="before")
    @classmethod
    def validate_identity(cls, v, info):
        text = normalize_text(v)
        if not text:
            raise ValueError(f"{info.field_name.capitalize()} cannot be empty")
        if info.field_name == "slug":
            return text.lower()
        if info.field_name == "sku":
            return text.upper()
        return text

    @field_validator("category_id", mode="before")
    @classmethod
    def validate_category_id(cls, v):
        parsed = parse_positive_int(v)
        if parsed is None:
            raise ValueError("Valid category_id is required")
        return parsed

    @field_validator("images", mode="before")
    @classmethod
    def clean_images(cls, v):
        return parse_images(v)

    @field_validator("keywords", mode="before")
    @classmethod
    def clean_keywords(cls, v):
        return parse_keywords(v)

    @field_validator("qty", "sold_qty", mode="before")
    @classmethod
    def validate_counts(cls, v, info):
        number = parse_number(v)
        if number is None or number < 0:
            label = "Qty" if info.field_name == "qty" else "Sold qty"
            raise ValueError(f"{label} must be 0 or greater")
        return math.trunc(number)

    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def clean_text(cls, v):
        return normalize_optional_text(v)

    @field_validator("prise", "tax", mode="before")
    @classmethod
    def validate_required_prices(cls, v, info):
        number = parse_number(v)
        if number is None or number < 0:
            raise ValueError(PRICE_MESSAGES[info.field_name])
        return number

    @field_validator("offer_prise", mode="before")
    @classmethod
    def validate_offer_prise(cls, v):
        number = parse_number(v)
        if number is not None and number < 0:
            raise ValueError(PRICE_MESSAGES["offer_prise"])
        return number

    @field_validator("qty_offers", mode="before")
    @classmethod
    def validate_qty_offers(cls, v):
        return parse_qty_offers(v)

    @field_validator("new_product", "is_top", "is_best", mode="before")
    @classmethod
    def validate_flags(cls, v, info):
        parsed = parse_boolean(v)
        if parsed is None:
            raise ValueError(f"{info.field_name} must be boolean")
        return parsed

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        value = normalize_text(v)
        if value not in STATUS_VALUES:
            raise ValueError("Status must be 'active' or 'inactive'")
        return value

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class ProductResponse(BaseModel):
    id: int
    name: str
    slug: str
    sku: str
    category_id: int
    images: List[str] = []
    qty: int
    sold_qty: int
    description: Optional[str] = None
    weight: Optional[str] = None
    length: Optional[str] = None
    breadth: Optional[str] = None
    height: Optional[str] = None
    prise: Optional[float] = None
    offer_prise: Optional[float] = None
    tax: Optional[float] = None
    hsn: Optional[str] = None
    seo_title: Optional[str] = None
    seo_description: Optional[str] = None
    keywords: List[str] = []
    qty_offers: List[dict] = []
    new_product: bool
    is_top: bool
    is_best: bool
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _inventory_count(v: Any, field: str) -> int:
    number = parse_number(v)
    if number is None or number < 0:
        raise ValueError(f"{'Qty' if field == 'qty' else 'Sold qty'} must be 0 or greater")
    return math.trunc(number)


class InventoryUpdate(BaseModel):
    id: Optional[Any] = None
    product_id: Optional[Any] = None
    qty: Optional[int] = None
    sold_qty: Optional[int] = None
    status: Optional[str] = None

    @field_validator("qty", "sold_qty", mode="before")
    @classmethod
    def validate_counts(cls, v, info):
        return _inventory_count(v, info.field_name)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        value = normalize_text(v)
        if value not in STATUS_VALUES:
            raise ValueError("Status must be 'active' or 'inactive'")
        return value

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key not in ("id", "product_id")}


class InventoryResponse(BaseModel):
    id: int
    name: str
    sku: str
    category_id: int
    tax: Optional[float] = None
    hsn: Optional[str] = None
    qty: int
    sold_qty: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
