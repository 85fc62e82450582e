import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.countries import Country
from storefront.models.states import State
from storefront.schemas.locations import StateCreate, StateUpdate, StateResponse
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
    validation_exception,
)
from storefront.services.excel_import import ExcelImportError, import_states, is_multipart, read_upload_rows
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import import_response, serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List states or get one by id",
    description="Paginated state list filtered by status and country_id, with name search",
)
async def get_states(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    country_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        if id is not None:
            state_id = parse_positive_int(id)
            state = db.query(State).filter(State.id == state_id).first() if state_id else None
            if not state:
                logger.warning(f"State with ID {id} not found")
                raise not_found("State not found")
            return {"message": "State fetched successfully", "data": serialize_one(StateResponse, state)}

        query = db.query(State)
        if status_filter(status_value):
            query = query.filter(State.status == status_value)
        parent_id = parse_positive_int(country_id)
        if parent_id:
            query = query.filter(State.country_id == parent_id)
        if search and search.strip():
            query = query.filter(State.name.ilike(f"%{search.strip()}%"))

        states, pagination = paginate(query, [State.created_at.desc(), State.id.desc()], page, limit)
        logger.info(f"Fetched {len(states)} of {pagination['totalItems']} states")
        return {
            "message": "State list fetched successfully",
            "data": serialize(StateResponse, states),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching states: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch state data")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create state or import an Excel sheet",
    description="JSON body creates one state; multipart/form-data with a 'file' field bulk-imports states",
)
async def create_state(request: Request, db: Session = Depends(get_db)):
    """
    Create a new state under an existing country.

    A state name is unique within its country; a second state with the same
    (country_id, name) is rejected and nothing is written.

    Raises:
        HTTPException: 400 missing fields, 404 unknown country, 409 duplicate
    """
    if is_multipart(request.headers.get("content-type")):
        return await _import_from_excel(request, db)

    body = await read_json_body(request)
    try:
        state_data = StateCreate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        logger.info(f"Creating state {state_data.name} in country {state_data.country_id}")

        if not db.query(Country).filter(Country.id == state_data.country_id).first():
            raise not_found("Country not found")

        duplicate = db.query(State).filter(
            State.country_id == state_data.country_id,
            State.name == state_data.name,
        ).first()
        if duplicate:
            logger.warning(f"State already exists: {state_data.name} (country {state_data.country_id})")
            raise conflict("State already exists in this country", field="name")

        new_state = State(**state_data.model_dump())
        db.add(new_state)
        db.commit()
        db.refresh(new_state)

        logger.info(f"Successfully created state: {new_state.name} (ID: {new_state.id})")
        return {"message": "State created successfully", "data": serialize_one(StateResponse, new_state)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating state: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating state: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create state")


async def _import_from_excel(request: Request, db: Session):
    try:
        form = await request.form()
        rows = await read_upload_rows(form)
        result = import_states(db, rows)
    except ExcelImportError as e:
        raise bad_request(e.message)
    except Exception as e:
        logger.error(f"Unexpected error importing states: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to import state excel")
    return import_response(result, "State")


@router.put("", status_code=status.HTTP_200_OK, summary="Update state")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update state")
async def update_state(
    state_data: StateUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Partially update a state.

    Raises:
        HTTPException: 400 invalid id or empty update, 404 state/country missing, 409 duplicate
    """
    try:
        state_id = resolve_record_id(id, {"id": state_data.id})
        if state_id is None:
            raise bad_request("Valid state id is required")

        state = db.query(State).filter(State.id == state_id).first()
        if not state:
            logger.warning(f"State with ID {state_id} not found")
            raise not_found("State not found")

        updates = state_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "country_id" in updates and not db.query(Country).filter(Country.id == updates["country_id"]).first():
            raise not_found("Country not found")

        if "country_id" in updates or "name" in updates:
            duplicate = db.query(State).filter(
                State.country_id == updates.get("country_id", state.country_id),
                State.name == updates.get("name", state.name),
                State.id != state_id,
            ).first()
            if duplicate:
                raise conflict("State already exists in this country", field="name")

        for key, value in updates.items():
            setattr(state, key, value)

        db.commit()
        db.refresh(state)

        logger.info(f"Successfully updated state: {state.name} (ID: {state.id})")
        return {"message": "State updated successfully", "data": serialize_one(StateResponse, state)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating state: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating state: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update state")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete state")
async def delete_state(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        state_id = resolve_record_id(id, body)
        if state_id is None:
            raise bad_request("Valid state id is required")

        state = db.query(State).filter(State.id == state_id).first()
        if not state:
            raise not_found("State not found")

        db.delete(state)
        db.commit()

        logger.info(f"Successfully deleted state with ID: {state_id}")
        return {"message": "State deleted successfully", "id": state_id}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error deleting state: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting state: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete state")
