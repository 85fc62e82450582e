"""
Order intent for the checkout screen.

The cart lives on the client; it is re-priced here from the catalog so the
totals shown before payment come from the server. Nothing is persisted.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

import razorpay
from sqlalchemy.orm import Session

from storefront.models.addresses import Address
from storefront.models.coupons import Coupon
from storefront.models.payment import PaymentGateway
from storefront.models.products import Product
from storefront.models.shipping import ShippingRate
from storefront.models.user import User
from storefront.schemas.checkout import CheckoutRequest
from storefront.schemas.coupons import as_utc
from storefront.services.qty_offers import QtyOfferError, quote_line

logger = logging.getLogger(__name__)

EMPTY_CART = "Add product to cart before proceeding."
NO_ADDRESS = "Please select an address before proceeding."
NO_GATEWAY = "No active payment gateway available."


class CheckoutError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _get_address(db: Session, user: User, address_id: Optional[int]) -> Address:
    address = None
    if address_id:
        address = (
            db.query(Address)
            .filter(Address.id == address_id, Address.user_id == user.id, Address.status == "active")
            .first()
        )
    if not address:
        raise CheckoutError(NO_ADDRESS)
    return address


def _get_gateway(db: Session, gateway_id: Optional[int]) -> PaymentGateway:
    query = db.query(PaymentGateway).filter(PaymentGateway.is_active == True)
    if gateway_id:
        gateway = query.filter(PaymentGateway.id == gateway_id).first()
    else:
        gateway = query.order_by(PaymentGateway.created_at.desc(), PaymentGateway.id.desc()).first()
    if not gateway:
        raise CheckoutError(NO_GATEWAY)
    return gateway


def apply_coupon(db: Session, code: str, subtotal: float, now: Optional[datetime] = None) -> Tuple[Coupon, float]:
    """
    Check a coupon against the order subtotal and work out its discount.

    Raises:
        CheckoutError: with the reason the coupon cannot be used
    """
    now = now or datetime.now(timezone.utc)
    coupon = db.query(Coupon).filter(Coupon.code == code.strip().upper()).first()
    if not coupon:
        raise CheckoutError("Invalid coupon code")
    if coupon.status != "active":
        raise CheckoutError("Coupon is not active")
    if coupon.start_date and now < as_utc(coupon.start_date):
        raise CheckoutError("Coupon is not valid yet")
    if coupon.end_date and now > as_utc(coupon.end_date):
        raise CheckoutError("Coupon has expired")
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        raise CheckoutError("Coupon usage limit reached")
    if coupon.min_order_amount and subtotal < coupon.min_order_amount:
        raise CheckoutError(f"Minimum order amount for this coupon is {coupon.min_order_amount:g}")

    if coupon.discount_type == "percentage":
        discount = subtotal * coupon.discount_value / 100
        if coupon.max_discount_amount is not None:
            discount = min(discount, coupon.max_discount_amount)
    else:
        discount = coupon.discount_value

    return coupon, round(min(discount, subtotal), 2)


def shipping_for(db: Session, pincode_id: Optional[int], subtotal: float) -> float:
    """Rate of the address' pincode band first, then a rate that applies everywhere."""
    in_band = (
        db.query(ShippingRate)
        .filter(
            ShippingRate.status == "active",
            ShippingRate.min_amount <= subtotal,
            ShippingRate.max_amount >= subtotal,
        )
        .order_by(ShippingRate.created_at.desc(), ShippingRate.id.desc())
    )
    rate = None
    if pincode_id:
        rate = in_band.filter(ShippingRate.pincode_id == pincode_id).first()
    if rate is None:
        rate = in_band.filter(ShippingRate.pincode_id.is_(None)).first()
    return float(rate.shipping_amount) if rate else 0.0


def build_checkout_intent(db: Session, user: User, request: CheckoutRequest) -> dict:
    """
    Price the cart and gather everything the payment step needs.

    Returns:
        dict: items, subtotal, discount, shipping, total and the address,
        payment_gateway and coupon records

    Raises:
        CheckoutError: empty cart, unusable address, gateway, product or coupon
    """
    if not request.items:
        raise CheckoutError(EMPTY_CART)

    address = _get_address(db, user, request.address_id)
    gateway = _get_gateway(db, request.payment_gateway_id)

    product_ids = {item.product_id for item in request.items}
    products = {
        product.id: product
        for product in db.query(Product).filter(Product.id.in_(product_ids), Product.status == "active").all()
    }

    lines = []
    for item in request.items:
        product = products.get(item.product_id)
        if not product:
            raise CheckoutError(f"Product {item.product_id} is not available")
        try:
            lines.append(quote_line(product, item.offer_qty, item.count))
        except QtyOfferError as e:
            raise CheckoutError(str(e))

    subtotal = round(sum(line["line_total"] for line in lines), 2)

    coupon, discount = None, 0.0
    if request.coupon_code:
        coupon, discount = apply_coupon(db, request.coupon_code, subtotal)

    shipping = shipping_for(db, address.pincode_id, subtotal)
    total = round(subtotal - discount + shipping, 2)

    logger.info(
        f"Checkout intent for user {user.id}: {len(lines)} lines, subtotal={subtotal}, "
        f"discount={discount}, shipping={shipping}, total={total}"
    )

    return {
        "items": lines,
        "subtotal": subtotal,
        "discount": discount,
        "shipping": shipping,
        "total": total,
        "address": address,
        "payment_gateway": gateway,
        "coupon": coupon,
    }


def create_gateway_order(gateway: PaymentGateway, total: float, user: User) -> dict:
    """
    Create the Razorpay order the checkout widget pays against.

    Raises:
        CheckoutError: 400 for a gateway that cannot take orders, 502 when Razorpay fails
    """
    if (gateway.name or "").strip().lower() != "razorpay":
        raise CheckoutError(f"Payment gateway {gateway.name} does not support online orders")
    if not gateway.app_id or not gateway.secret_key:
        raise CheckoutError("Payment gateway is not configured")

    amount = int(round(total * 100))  # paise
    order_data = {
        "amount": amount,
        "currency": "INR",
        "notes": {"user_id": str(user.id), "email": user.email},
    }

    try:
        client = razorpay.Client(auth=(gateway.app_id, gateway.secret_key))
        razorpay_order = client.order.create(data=order_data)
    except Exception as razorpay_error:
        logger.error(f"Razorpay order creation failed: {str(razorpay_error)}")
        raise CheckoutError("Unable to create payment order. Please try again in a few moments.", 502)

    logger.info(f"Razorpay order {razorpay_order['id']} created for user {user.id} ({amount} paise)")
    return {
        "order_id": razorpay_order["id"],
        "amount": razorpay_order["amount"],
        "currency": razorpay_order["currency"],
        "key_id": gateway.app_id,
    }
