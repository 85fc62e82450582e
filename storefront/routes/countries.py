import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.countries import Country
from storefront.schemas.locations import CountryCreate, CountryUpdate, CountryResponse
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
    validation_exception,
)
from storefront.services.excel_import import (
    ExcelImportError,
    import_countries,
    is_multipart,
    read_upload_rows,
)
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import import_response, serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List countries or get one by id",
    description="Paginated country list with status filter and name search; pass id for a single country",
)
async def get_countries(
    id: Optional[str] = Query(None, description="Return a single country"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Substring match on name"),
    db: Session = Depends(get_db),
):
    """
    Get countries.

    Returns:
        dict: ``{message, data}`` for a single country, or
        ``{message, data, pagination}`` for the list
    """
    try:
        if id is not None:
            country_id = parse_positive_int(id)
            country = db.query(Country).filter(Country.id == country_id).first() if country_id else None
            if not country:
                logger.warning(f"Country with ID {id} not found")
                raise not_found("Country not found")
            return {"message": "Country fetched successfully", "data": serialize_one(CountryResponse, country)}

        query = db.query(Country)
        if status_filter(status_value):
            query = query.filter(Country.status == status_value)
        if search and search.strip():
            query = query.filter(Country.name.ilike(f"%{search.strip()}%"))

        countries, pagination = paginate(query, [Country.created_at.desc(), Country.id.desc()], page, limit)
        logger.info(f"Fetched {len(countries)} of {pagination['totalItems']} countries")
        return {
            "message": "Country list fetched successfully",
            "data": serialize(CountryResponse, countries),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching countries: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch country data")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create country or import an Excel sheet",
    description="JSON body creates one country; multipart/form-data with a 'file' field bulk-imports countries",
)
async def create_country(request: Request, db: Session = Depends(get_db)):
    """
    Create a new country, or upsert countries from an uploaded workbook.

    Raises:
        HTTPException: 400 on validation errors, 409 when name or iso_code is taken
    """
    if is_multipart(request.headers.get("content-type")):
        return await _import_from_excel(request, db)

    body = await read_json_body(request)
    try:
        country_data = CountryCreate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        logger.info(f"Creating new country: {country_data.name}")

        if db.query(Country).filter(Country.name == country_data.name).first():
            logger.warning(f"Country already exists: {country_data.name}")
            raise conflict("Country already exists with this name", field="name")

        if country_data.iso_code and db.query(Country).filter(Country.iso_code == country_data.iso_code).first():
            raise conflict("Country already exists with this iso_code", field="iso_code")

        new_country = Country(**country_data.model_dump())
        db.add(new_country)
        db.commit()
        db.refresh(new_country)

        logger.info(f"Successfully created country: {new_country.name} (ID: {new_country.id})")
        return {"message": "Country created successfully", "data": serialize_one(CountryResponse, new_country)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating country: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating country: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create country")


async def _import_from_excel(request: Request, db: Session):
    try:
        form = await request.form()
        rows = await read_upload_rows(form)
        result = import_countries(db, rows)
    except ExcelImportError as e:
        raise bad_request(e.message)
    except Exception as e:
        logger.error(f"Unexpected error importing countries: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to import country excel")
    return import_response(result, "Country")


@router.put("", status_code=status.HTTP_200_OK, summary="Update country")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update country")
async def update_country(
    country_data: CountryUpdate,
    id: Optional[str] = Query(None, description="Country id; falls back to the body id"),
    db: Session = Depends(get_db),
):
    """
    Partially update a country. Only the fields present in the body change.

    Raises:
        HTTPException: 400 invalid id or empty update, 404 missing, 409 name/iso_code in use
    """
    try:
        country_id = resolve_record_id(id, {"id": country_data.id})
        if country_id is None:
            raise bad_request("Valid country id is required")

        country = db.query(Country).filter(Country.id == country_id).first()
        if not country:
            logger.warning(f"Country with ID {country_id} not found")
            raise not_found("Country not found")

        updates = country_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "name" in updates:
            duplicate = db.query(Country).filter(Country.name == updates["name"], Country.id != country_id).first()
            if duplicate:
                raise conflict("Country name is already in use", field="name")

        if updates.get("iso_code"):
            duplicate = db.query(Country).filter(
                Country.iso_code == updates["iso_code"], Country.id != country_id
            ).first()
            if duplicate:
                raise conflict("iso_code is already in use", field="iso_code")

        for key, value in updates.items():
            setattr(country, key, value)

        db.commit()
        db.refresh(country)

        logger.info(f"Successfully updated country: {country.name} (ID: {country.id})")
        return {"message": "Country updated successfully", "data": serialize_one(CountryResponse, country)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating country: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating country: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update country")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete country")
async def delete_country(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        country_id = resolve_record_id(id, body)
        if country_id is None:
            raise bad_request("Valid country id is required")

        country = db.query(Country).filter(Country.id == country_id).first()
        if not country:
            logger.warning(f"Country with ID {country_id} not found")
            raise not_found("Country not found")

        db.delete(country)
        db.commit()

        logger.info(f"Successfully deleted country with ID: {country_id}")
        return {"message": "Country deleted successfully", "id": country_id}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error deleting country: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting country: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete country")
