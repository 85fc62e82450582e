"""
Tiered quantity offers.

A product may carry ``qty_offers``: packs such as "buy 3 for 499" stored as
``[{"qty": 3, "price": 499, "label": "Pack of 3"}]``. This module validates
offer lists coming from the admin and prices cart lines against them.
"""
import json
import math
from typing import Any, List, Optional

from storefront.utils.parsing import normalize_text, parse_number

INVALID_JSON = "qty_offers must be valid JSON"
NOT_AN_ARRAY = "qty_offers must be an array"
INVALID_ITEM = "Each qty_offers item needs qty, price and label"


class QtyOfferError(ValueError):
    """Raised for a rejected offer list or an unknown offer selection."""


def parse_qty_offers(value: Any) -> List[dict]:
    """
    Validate and normalize an offer list.

    Accepts a list or a JSON-encoded string; an empty string is an empty
    list. One bad element rejects the whole list.

    Args:
        value: Raw ``qty_offers`` value from the request body

    Returns:
        List[dict]: offers with int ``qty``, numeric ``price`` and trimmed labels

    Raises:
        QtyOfferError: with the message sent back to the client
    """
    source = value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            source = json.loads(text)
        except ValueError:
            raise QtyOfferError(INVALID_JSON)

    if not isinstance(source, list):
        raise QtyOfferError(NOT_AN_ARRAY)

    offers = []
    for item in source:
        offer = _normalize_offer(item)
        if offer is None:
            raise QtyOfferError(INVALID_ITEM)
        offers.append(offer)
    return offers


def _normalize_offer(item: Any) -> Optional[dict]:
    if not isinstance(item, dict):
        return None

    qty = parse_number(item.get("qty"))
    price = parse_number(item.get("price"))
    label = normalize_text(item.get("label"))

    if qty is None or qty <= 0 or math.trunc(qty) < 1:
        return None
    if price is None or price < 0:
        return None
    if not label:
        return None

    offer = {"qty": math.trunc(qty), "price": int(price) if float(price).is_integer() else price, "label": label}
    label2 = normalize_text(item.get("label2"))
    if label2:
        offer["label2"] = label2
    return offer


def base_unit_price(product) -> float:
    if product.offer_prise is not None:
        return float(product.offer_prise)
    return float(product.prise or 0)


def quote_line(product, offer_qty: Optional[int] = None, count: int = 1) -> dict:
    """
    Price one cart line.

    Without an offer the unit price is the product's offer price (or list
    price) and one unit is bought per ``count``. With an offer the unit
    price is the offer's price and each ``count`` buys ``offer.qty`` units.

    Raises:
        QtyOfferError: offer_qty does not match any offer of the product
    """
    if count < 1:
        raise QtyOfferError("count must be 1 or greater")

    offer = None
    if offer_qty is not None:
        offer = next(
            (item for item in (product.qty_offers or []) if int(item.get("qty", 0)) == int(offer_qty)),
            None,
        )
        if offer is None:
            raise QtyOfferError(f"No quantity offer of {offer_qty} for product {product.id}")

    unit_price = float(offer["price"]) if offer else base_unit_price(product)
    pack_size = int(offer["qty"]) if offer else 1
    quantity = pack_size * count
    list_price = float(product.prise or 0)

    discount_percent = 0
    if list_price > 0 and unit_price < list_price:
        discount_percent = round((list_price - unit_price) / list_price * 100)

    return {
        "product_id": product.id,
        "name": product.name,
        "slug": product.slug,
        "label": offer["label"] if offer else None,
        "offer_qty": pack_size if offer else None,
        "unit_price": round(unit_price, 2),
        "quantity": quantity,
        "discount_percent": discount_percent,
        "line_total": round(unit_price * quantity, 2),
    }
