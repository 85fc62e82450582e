import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.cities import City
from storefront.models.pincodes import Pincode
from storefront.schemas.locations import PincodeCreate, PincodeUpdate, PincodeResponse
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
    validation_exception,
)
from storefront.services.excel_import import ExcelImportError, import_pincodes, is_multipart, read_upload_rows
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import import_response, serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List pincodes or get one by id",
    description="Paginated pincode list filtered by status and city_id; search matches the pincode text",
)
async def get_pincodes(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    city_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        if id is not None:
            pincode_id = parse_positive_int(id)
            pincode = db.query(Pincode).filter(Pincode.id == pincode_id).first() if pincode_id else None
            if not pincode:
                logger.warning(f"Pincode with ID {id} not found")
                raise not_found("Pincode not found")
            return {"message": "Pincode fetched successfully", "data": serialize_one(PincodeResponse, pincode)}

        query = db.query(Pincode)
        if status_filter(status_value):
            query = query.filter(Pincode.status == status_value)
        parent_id = parse_positive_int(city_id)
        if parent_id:
            query = query.filter(Pincode.city_id == parent_id)
        if search and search.strip():
            query = query.filter(Pincode.pincode.ilike(f"%{search.strip()}%"))

        pincodes, pagination = paginate(query, [Pincode.created_at.desc(), Pincode.id.desc()], page, limit)
        logger.info(f"Fetched {len(pincodes)} of {pagination['totalItems']} pincodes")
        return {
            "message": "Pincode list fetched successfully",
            "data": serialize(PincodeResponse, pincodes),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching pincodes: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch pincode data")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create pincode or import an Excel sheet",
    description="JSON body creates one pincode; multipart/form-data with a 'file' field bulk-imports pincodes",
)
async def create_pincode(request: Request, db: Session = Depends(get_db)):
    """
    Create a pincode under an existing city.

    The same pincode text may exist under different cities, but only once per city.
    """
    if is_multipart(request.headers.get("content-type")):
        return await _import_from_excel(request, db)

    body = await read_json_body(request)
    try:
        pincode_data = PincodeCreate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        logger.info(f"Creating pincode {pincode_data.pincode} in city {pincode_data.city_id}")

        if not db.query(City).filter(City.id == pincode_data.city_id).first():
            raise not_found("City not found")

        duplicate = db.query(Pincode).filter(
            Pincode.city_id == pincode_data.city_id,
            Pincode.pincode == pincode_data.pincode,
        ).first()
        if duplicate:
            raise conflict("Pincode already exists for this city", field="pincode")

        new_pincode = Pincode(**pincode_data.model_dump())
        db.add(new_pincode)
        db.commit()
        db.refresh(new_pincode)

        logger.info(f"Successfully created pincode: {new_pincode.pincode} (ID: {new_pincode.id})")
        return {"message": "Pincode created successfully", "data": serialize_one(PincodeResponse, new_pincode)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating pincode: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating pincode: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create pincode")


async def _import_from_excel(request: Request, db: Session):
    try:
        form = await request.form()
        rows = await read_upload_rows(form)
        result = import_pincodes(db, rows)
    except ExcelImportError as e:
        raise bad_request(e.message)
    except Exception as e:
        logger.error(f"Unexpected error importing pincodes: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to import pincode excel")
    return import_response(result, "Pincode")


@router.put("", status_code=status.HTTP_200_OK, summary="Update pincode")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update pincode")
async def update_pincode(
    pincode_data: PincodeUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        pincode_id = resolve_record_id(id, {"id": pincode_data.id})
        if pincode_id is None:
            raise bad_request("Valid pincode id is required")

        pincode = db.query(Pincode).filter(Pincode.id == pincode_id).first()
        if not pincode:
            logger.warning(f"Pincode with ID {pincode_id} not found")
            raise not_found("Pincode not found")

        updates = pincode_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "city_id" in updates and not db.query(City).filter(City.id == updates["city_id"]).first():
            raise not_found("City not found")

        if "city_id" in updates or "pincode" in updates:
            duplicate = db.query(Pincode).filter(
                Pincode.city_id == updates.get("city_id", pincode.city_id),
                Pincode.pincode == updates.get("pincode", pincode.pincode),
                Pincode.id != pincode_id,
            ).first()
            if duplicate:
                raise conflict("Pincode already exists for this city", field="pincode")

        for key, value in updates.items():
            setattr(pincode, key, value)

        db.commit()
        db.refresh(pincode)

        logger.info(f"Successfully updated pincode: {pincode.pincode} (ID: {pincode.id})")
        return {"message": "Pincode updated successfully", "data": serialize_one(PincodeResponse, pincode)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating pincode: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating pincode: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update pincode")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete pincode")
async def delete_pincode(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        pincode_id = resolve_record_id(id, body)
        if pincode_id is None:
            raise bad_request("Valid pincode id is required")

        pincode = db.query(Pincode).filter(Pincode.id == pincode_id).first()
        if not pincode:
            raise not_found("Pincode not found")

        db.delete(pincode)
        db.commit()

        logger.info(f"Successfully deleted pincode with ID: {pincode_id}")
        return {"message": "Pincode deleted successfully", "id": pincode_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting pincode: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete pincode")
