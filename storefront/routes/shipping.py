import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.pincodes import Pincode
from storefront.models.shipping import ShippingRate
from storefront.schemas.locations import ShippingRateCreate, ShippingRateUpdate, ShippingRateResponse
from storefront.core.errors import bad_request, not_found, server_error
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _ensure_pincode(db: Session, pincode_id: Optional[int]) -> None:
    if pincode_id is not None and not db.query(Pincode).filter(Pincode.id == pincode_id).first():
        raise not_found("Pincode not found")


@router.get("", status_code=status.HTTP_200_OK, summary="List shipping rates or get one by id")
async def get_shipping_rates(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    pincode_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        if id is not None:
            rate_id = parse_positive_int(id)
            rate = db.query(ShippingRate).filter(ShippingRate.id == rate_id).first() if rate_id else None
            if not rate:
                raise not_found("Shipping not found")
            return {"message": "Shipping fetched successfully", "data": serialize_one(ShippingRateResponse, rate)}

        query = db.query(ShippingRate)
        parsed_pincode_id = parse_positive_int(pincode_id)
        if parsed_pincode_id:
            query = query.filter(ShippingRate.pincode_id == parsed_pincode_id)
        if status_filter(status_value):
            query = query.filter(ShippingRate.status == status_value)

        rates, pagination = paginate(query, [ShippingRate.created_at.desc(), ShippingRate.id.desc()], page, limit)
        return {
            "message": "Shipping list fetched successfully",
            "data": serialize(ShippingRateResponse, rates),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching shipping rates: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch shipping data")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create shipping rate")
async def create_shipping_rate(shipping_data: ShippingRateCreate, db: Session = Depends(get_db)):
    """
    Create a shipping charge for a subtotal band, optionally bound to one pincode.

    Raises:
        HTTPException: 400 invalid amounts or range, 404 unknown pincode
    """
    try:
        _ensure_pincode(db, shipping_data.pincode_id)

        rate = ShippingRate(**shipping_data.model_dump())
        db.add(rate)
        db.commit()
        db.refresh(rate)

        logger.info(f"Created shipping rate {rate.id} for pincode {rate.pincode_id}")
        return {"message": "Shipping created successfully", "data": serialize_one(ShippingRateResponse, rate)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating shipping rate: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create shipping")


@router.put("", status_code=status.HTTP_200_OK, summary="Update shipping rate")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update shipping rate")
async def update_shipping_rate(
    shipping_data: ShippingRateUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        rate_id = resolve_record_id(id, {"id": shipping_data.id})
        if rate_id is None:
            raise bad_request("Valid shipping id is required")

        rate = db.query(ShippingRate).filter(ShippingRate.id == rate_id).first()
        if not rate:
            raise not_found("Shipping not found")

        updates = shipping_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        # the band is checked against the merged values
        min_amount = updates.get("min_amount", rate.min_amount)
        max_amount = updates.get("max_amount", rate.max_amount)
        if min_amount > max_amount:
            raise bad_request("min_amount cannot be greater than max_amount")

        if "pincode_id" in updates:
            _ensure_pincode(db, updates["pincode_id"])

        for key, value in updates.items():
            setattr(rate, key, value)

        db.commit()
        db.refresh(rate)

        logger.info(f"Updated shipping rate {rate.id}")
        return {"message": "Shipping updated successfully", "data": serialize_one(ShippingRateResponse, rate)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating shipping rate: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update shipping")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete shipping rate")
async def delete_shipping_rate(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        rate_id = resolve_record_id(id, body)
        if rate_id is None:
            raise bad_request("Valid shipping id is required")

        rate = db.query(ShippingRate).filter(ShippingRate.id == rate_id).first()
        if not rate:
            raise not_found("Shipping not found")

        db.delete(rate)
        db.commit()

        logger.info(f"Deleted shipping rate {rate_id}")
        return {"message": "Shipping deleted successfully", "id": rate_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting shipping rate: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete shipping")
