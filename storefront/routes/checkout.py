import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.user import User
from storefront.schemas.addresses import AddressResponse
from storefront.schemas.checkout import CheckoutRequest, PaymentGatewayPublic
from storefront.schemas.coupons import CouponResponse
from storefront.services.checkout_service import CheckoutError, build_checkout_intent, create_gateway_order
from storefront.core.dependencies import get_current_user
from storefront.core.errors import server_error
from storefront.utils.responses import serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _checkout_error(e: CheckoutError) -> HTTPException:
    error = "PaymentGatewayError" if e.status_code == status.HTTP_502_BAD_GATEWAY else "CheckoutError"
    return HTTPException(
        status_code=e.status_code,
        detail={"error": error, "message": e.message, "type": "checkout_error"},
    )


def _intent_payload(intent: dict) -> dict:
    return {
        "items": intent["items"],
        "subtotal": intent["subtotal"],
        "discount": intent["discount"],
        "shipping": intent["shipping"],
        "total": intent["total"],
        "address": serialize_one(AddressResponse, intent["address"]),
        "payment_gateway": serialize_one(PaymentGatewayPublic, intent["payment_gateway"]),
        "coupon": serialize_one(CouponResponse, intent["coupon"]) if intent["coupon"] else None,
    }


@router.post(
    "/intent",
    status_code=status.HTTP_200_OK,
    summary="Price the cart for the checkout screen",
    description="""
    Re-prices the client-side cart against the catalog and returns the order summary.

    **Body:** `{address_id, payment_gateway_id, items: [{product_id, offer_qty?, count?}], coupon_code?}`
    """,
)
async def checkout_intent(
    checkout: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        intent = build_checkout_intent(db, current_user, checkout)
        return {"message": "Checkout summary fetched successfully", "data": _intent_payload(intent)}

    except CheckoutError as e:
        logger.warning(f"Checkout rejected for user {current_user.id}: {e.message}")
        raise _checkout_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error building checkout intent: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to prepare checkout")


@router.post("/create-order", status_code=status.HTTP_201_CREATED, summary="Create a payment order")
async def create_order(
    checkout: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Create the gateway order for the checkout total. The order is not stored;
    the client opens the payment widget with the returned order_id and key_id.
    """
    try:
        intent = build_checkout_intent(db, current_user, checkout)
        order = create_gateway_order(intent["payment_gateway"], intent["total"], current_user)
        return {"message": "Payment order created successfully", "data": {**order, "summary": _intent_payload(intent)}}

    except CheckoutError as e:
        logger.warning(f"Payment order rejected for user {current_user.id}: {e.message}")
        raise _checkout_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating payment order: {str(e)}", exc_info=True)
        raise server_error(e, "Unable to process payment. Please try again or contact support if the issue persists.")
