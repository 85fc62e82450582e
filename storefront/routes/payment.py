import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.payment import PaymentGateway
from storefront.schemas.payment import PaymentGatewayCreate, PaymentGatewayUpdate, PaymentGatewayResponse
from storefront.core.errors import bad_request, not_found, server_error
from storefront.utils.parsing import parse_positive_int, resolve_record_id
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get("", status_code=status.HTTP_200_OK, summary="Get payment gateways")
async def get_payment_gateways(
    id: Optional[str] = Query(None),
    active_only: Optional[str] = Query(None, description="true to list only active gateways"),
    db: Session = Depends(get_db),
):
    try:
        gateway_id = parse_positive_int(id)
        if gateway_id:
            gateway = db.query(PaymentGateway).filter(PaymentGateway.id == gateway_id).first()
            if not gateway:
                raise not_found("Payment gateway not found")
            return {
                "message": "Payment gateway fetched successfully",
                "data": serialize_one(PaymentGatewayResponse, gateway),
            }

        query = db.query(PaymentGateway)
        if active_only == "true":
            query = query.filter(PaymentGateway.is_active == True)
        gateways = query.order_by(PaymentGateway.created_at.desc(), PaymentGateway.id.desc()).all()

        return {
            "message": "Payment gateways fetched successfully",
            "data": serialize(PaymentGatewayResponse, gateways),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching payment gateways: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch payment gateways")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create payment gateway")
async def create_payment_gateway(gateway_data: PaymentGatewayCreate, db: Session = Depends(get_db)):
    try:
        gateway = PaymentGateway(**gateway_data.model_dump())
        db.add(gateway)
        db.commit()
        db.refresh(gateway)

        logger.info(f"Payment gateway created: {gateway.name} (active={gateway.is_active})")
        return {
            "message": "Payment gateway created successfully",
            "data": serialize_one(PaymentGatewayResponse, gateway),
        }

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating payment gateway: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create payment gateway")


@router.patch("", status_code=status.HTTP_200_OK, summary="Update payment gateway")
async def update_payment_gateway(
    gateway_data: PaymentGatewayUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        gateway_id = resolve_record_id(id, {"id": gateway_data.id})
        if gateway_id is None:
            raise bad_request("Valid payment gateway id is required")

        gateway = db.query(PaymentGateway).filter(PaymentGateway.id == gateway_id).first()
        if not gateway:
            raise not_found("Payment gateway not found")

        updates = gateway_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        for key, value in updates.items():
            setattr(gateway, key, value)

        db.commit()
        db.refresh(gateway)

        logger.info(f"Payment gateway {gateway_id} updated")
        return {
            "message": "Payment gateway updated successfully",
            "data": serialize_one(PaymentGatewayResponse, gateway),
        }

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating payment gateway: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update payment gateway")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete payment gateway")
async def delete_payment_gateway(id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    try:
        gateway_id = parse_positive_int(id)
        if gateway_id is None:
            raise bad_request("Valid payment gateway id is required")

        gateway = db.query(PaymentGateway).filter(PaymentGateway.id == gateway_id).first()
        if not gateway:
            raise not_found("Payment gateway not found")

        db.delete(gateway)
        db.commit()

        logger.info(f"Payment gateway {gateway_id} deleted")
        return {"message": "Payment gateway deleted successfully", "id": gateway_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting payment gateway: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete payment gateway")
