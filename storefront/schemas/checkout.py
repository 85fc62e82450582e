from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Any, List, Optional

from storefront.utils.parsing import normalize_text, parse_positive_int


def _optional_positive(v: Any, message: str) -> Optional[int]:
    if v is None or normalize_text(v) == "":
        return None
    parsed = parse_positive_int(v)
    if parsed is None:
        raise ValueError(message)
    return parsed


class CartItem(BaseModel):
    product_id: Optional[int] = Field(None, validation_alias=AliasChoices("product_id", "id"), validate_default=True)
    offer_qty: Optional[int] = Field(None, description="qty of the selected quantity offer, if any")
    count: int = Field(1, description="How many times the selection was added to the cart")

    @field_validator("product_id", mode="before")
    @classmethod
    def validate_product_id(cls, v):
        parsed = parse_positive_int(v)
        if parsed is None:
            raise ValueError("Each cart item needs a valid product_id")
        return parsed

    @field_validator("offer_qty", mode="before")
    @classmethod
    def validate_offer_qty(cls, v):
        return _optional_positive(v, "offer_qty must be a positive whole number")

    @field_validator("count", mode="before")
    @classmethod
    def validate_count(cls, v):
        return _optional_positive(v, "count must be a positive whole number") or 1


class CheckoutRequest(BaseModel):
    address_id: Optional[int] = None
    payment_gateway_id: Optional[int] = None
    items: List[CartItem] = Field(default_factory=list)
    coupon_code: Optional[str] = None

    @field_validator("address_id", "payment_gateway_id", mode="before")
    @classmethod
    def clean_ids(cls, v):
        return parse_positive_int(v)

    @field_validator("items", mode="before")
    @classmethod
    def clean_items(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("coupon_code", mode="before")
    @classmethod
    def clean_coupon_code(cls, v):
        return normalize_text(v).upper() or None


class PaymentGatewayPublic(BaseModel):
    """What the checkout widget needs; the secret never leaves the server."""
    id: int
    name: str
    app_id: Optional[str] = None

    class Config:
        from_attributes = True
