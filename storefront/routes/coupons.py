import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.coupons import Coupon
from storefront.schemas.coupons import CouponCreate, CouponUpdate, CouponResponse, check_date_window
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
)
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get("", status_code=status.HTTP_200_OK, summary="Get coupons")
async def get_coupons(id: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """
    Get one coupon by id, or every coupon newest first (the admin screen is not paginated).
    """
    try:
        coupon_id = parse_positive_int(id)
        if coupon_id:
            coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
            if not coupon:
                raise not_found("Coupon not found")
            return {"message": "Coupon fetched successfully", "data": serialize_one(CouponResponse, coupon)}

        coupons = db.query(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
        return {"message": "Coupon list fetched successfully", "data": serialize(CouponResponse, coupons)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching coupons: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch coupon data")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create coupon")
async def create_coupon(coupon_data: CouponCreate, db: Session = Depends(get_db)):
    """
    Create a coupon. The code is upper-cased and must be unique.

    Raises:
        HTTPException: 400 validation, 409 code taken
    """
    try:
        if db.query(Coupon).filter(Coupon.code == coupon_data.code).first():
            logger.warning(f"Coupon code already exists: {coupon_data.code}")
            raise conflict("Coupon already exists with this code", field="code")

        coupon = Coupon(**coupon_data.model_dump())
        db.add(coupon)
        db.commit()
        db.refresh(coupon)

        logger.info(f"Coupon created: {coupon.code} ({coupon.discount_type} {coupon.discount_value})")
        return {"message": "Coupon created successfully", "data": serialize_one(CouponResponse, coupon)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"IntegrityError creating coupon: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating coupon: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create coupon")


@router.put("", status_code=status.HTTP_200_OK, summary="Update coupon")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update coupon")
async def update_coupon(
    coupon_data: CouponUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        coupon_id = resolve_record_id(id, {"id": coupon_data.id})
        if coupon_id is None:
            raise bad_request("Valid coupon id is required")

        coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not coupon:
            raise not_found("Coupon not found")

        updates = coupon_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "code" in updates:
            if db.query(Coupon).filter(Coupon.code == updates["code"], Coupon.id != coupon_id).first():
                raise conflict("Coupon code is already in use", field="code")

        try:
            check_date_window(
                updates.get("start_date", coupon.start_date),
                updates.get("end_date", coupon.end_date),
            )
        except ValueError as e:
            raise bad_request(str(e))

        for key, value in updates.items():
            setattr(coupon, key, value)

        db.commit()
        db.refresh(coupon)

        logger.info(f"Coupon {coupon_id} updated: {sorted(updates.keys())}")
        return {"message": "Coupon updated successfully", "data": serialize_one(CouponResponse, coupon)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"IntegrityError updating coupon: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating coupon: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update coupon")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete coupon")
async def delete_coupon(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        coupon_id = resolve_record_id(id, body)
        if coupon_id is None:
            raise bad_request("Valid coupon id is required")

        coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not coupon:
            raise not_found("Coupon not found")

        db.delete(coupon)
        db.commit()

        logger.info(f"Coupon {coupon_id} deleted")
        return {"message": "Coupon deleted successfully", "id": coupon_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting coupon: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete coupon")
