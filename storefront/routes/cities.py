import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.states import State
from storefront.models.cities import City
from storefront.schemas.locations import CityCreate, CityUpdate, CityResponse
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
    validation_exception,
)
from storefront.services.excel_import import ExcelImportError, import_cities, is_multipart, read_upload_rows
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import import_response, serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List cities or get one by id",
    description="Paginated city list filtered by status and state_id, with name search",
)
async def get_cities(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    state_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        if id is not None:
            city_id = parse_positive_int(id)
            city = db.query(City).filter(City.id == city_id).first() if city_id else None
            if not city:
                logger.warning(f"City with ID {id} not found")
                raise not_found("City not found")
            return {"message": "City fetched successfully", "data": serialize_one(CityResponse, city)}

        query = db.query(City)
        if status_filter(status_value):
            query = query.filter(City.status == status_value)
        parent_id = parse_positive_int(state_id)
        if parent_id:
            query = query.filter(City.state_id == parent_id)
        if search and search.strip():
            query = query.filter(City.name.ilike(f"%{search.strip()}%"))

        cities, pagination = paginate(query, [City.created_at.desc(), City.id.desc()], page, limit)
        logger.info(f"Fetched {len(cities)} of {pagination['totalItems']} cities")
        return {
            "message": "City list fetched successfully",
            "data": serialize(CityResponse, cities),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching cities: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch city data")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create city or import an Excel sheet",
    description="JSON body creates one city; multipart/form-data with a 'file' field bulk-imports cities",
)
async def create_city(request: Request, db: Session = Depends(get_db)):
    """Create a new city under an existing state."""
    if is_multipart(request.headers.get("content-type")):
        return await _import_from_excel(request, db)

    body = await read_json_body(request)
    try:
        city_data = CityCreate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        logger.info(f"Creating city {city_data.name} in state {city_data.state_id}")

        if not db.query(State).filter(State.id == city_data.state_id).first():
            raise not_found("State not found")

        duplicate = db.query(City).filter(
            City.state_id == city_data.state_id,
            City.name == city_data.name,
        ).first()
        if duplicate:
            logger.warning(f"City already exists: {city_data.name} (state {city_data.state_id})")
            raise conflict("City already exists in this state", field="name")

        new_city = City(**city_data.model_dump())
        db.add(new_city)
        db.commit()
        db.refresh(new_city)

        logger.info(f"Successfully created city: {new_city.name} (ID: {new_city.id})")
        return {"message": "City created successfully", "data": serialize_one(CityResponse, new_city)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating city: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating city: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create city")


async def _import_from_excel(request: Request, db: Session):
    try:
        form = await request.form()
        rows = await read_upload_rows(form)
        result = import_cities(db, rows)
    except ExcelImportError as e:
        raise bad_request(e.message)
    except Exception as e:
        logger.error(f"Unexpected error importing cities: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to import city excel")
    return import_response(result, "City")


@router.put("", status_code=status.HTTP_200_OK, summary="Update city")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update city")
async def update_city(
    city_data: CityUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        city_id = resolve_record_id(id, {"id": city_data.id})
        if city_id is None:
            raise bad_request("Valid city id is required")

        city = db.query(City).filter(City.id == city_id).first()
        if not city:
            logger.warning(f"City with ID {city_id} not found")
            raise not_found("City not found")

        updates = city_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "state_id" in updates and not db.query(State).filter(State.id == updates["state_id"]).first():
            raise not_found("State not found")

        if "state_id" in updates or "name" in updates:
            duplicate = db.query(City).filter(
                City.state_id == updates.get("state_id", city.state_id),
                City.name == updates.get("name", city.name),
                City.id != city_id,
            ).first()
            if duplicate:
                raise conflict("City already exists in this state", field="name")

        for key, value in updates.items():
            setattr(city, key, value)

        db.commit()
        db.refresh(city)

        logger.info(f"Successfully updated city: {city.name} (ID: {city.id})")
        return {"message": "City updated successfully", "data": serialize_one(CityResponse, city)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating city: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating city: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update city")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete city")
async def delete_city(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        city_id = resolve_record_id(id, body)
        if city_id is None:
            raise bad_request("Valid city id is required")

        city = db.query(City).filter(City.id == city_id).first()
        if not city:
            raise not_found("City not found")

        db.delete(city)
        db.commit()

        logger.info(f"Successfully deleted city with ID: {city_id}")
        return {"message": "City deleted successfully", "id": city_id}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error deleting city: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting city: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete city")
