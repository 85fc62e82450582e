import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.addresses import Address
from storefront.schemas.addresses import AddressCreate, AddressUpdate, AddressResponse
from storefront.core.errors import bad_request, not_found, server_error
from storefront.services.address_service import create_address, fill_location_ids, update_address
from storefront.services.location_resolver import LocationResolutionError, resolve_postal_code
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "/resolve",
    status_code=status.HTTP_200_OK,
    summary="Resolve a postal code",
    description="Walks pincode -> city -> state -> country for a 6 digit postal code",
)
async def resolve_address_location(
    postal_code: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        location = resolve_postal_code(db, postal_code)
    except LocationResolutionError as e:
        logger.info(f"Postal code {postal_code} not resolved: {e.message}")
        if e.status_code == status.HTTP_400_BAD_REQUEST:
            raise bad_request(e.message)
        raise not_found(e.message)
    except Exception as e:
        logger.error(f"Unexpected error resolving postal code: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to resolve postal code")
    return {"message": "Location resolved successfully", "data": location}


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="List addresses",
    description="Single address by id, all addresses of a user by user_id, or a paginated list",
)
async def get_addresses(
    id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    """
    Get addresses.

    ``user_id`` returns that user's addresses unpaginated, default first
    and then newest first, ready for the checkout address picker.
    """
    try:
        if id is not None:
            address_id = parse_positive_int(id)
            address = db.query(Address).filter(Address.id == address_id).first() if address_id else None
            if not address:
                raise not_found("Address not found")
            return {"message": "Address fetched successfully", "data": serialize_one(AddressResponse, address)}

        owner_id = parse_positive_int(user_id)
        if owner_id:
            addresses = (
                db.query(Address)
                .filter(Address.user_id == owner_id)
                .order_by(Address.is_default.desc(), Address.created_at.desc(), Address.id.desc())
                .all()
            )
            logger.info(f"Fetched {len(addresses)} addresses for user {owner_id}")
            return {"message": "User addresses fetched successfully", "data": serialize(AddressResponse, addresses)}

        query = db.query(Address)
        if status_filter(status_value):
            query = query.filter(Address.status == status_value)

        addresses, pagination = paginate(query, [Address.created_at.desc(), Address.id.desc()], page, limit)
        return {
            "message": "Address list fetched successfully",
            "data": serialize(AddressResponse, addresses),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching addresses: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch address data")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create address")
async def create_new_address(address_data: AddressCreate, db: Session = Depends(get_db)):
    """
    Create an address. With is_default=true every other address of the user
    loses its default flag in the same transaction.
    """
    try:
        values = fill_location_ids(db, address_data.model_dump())
        address = create_address(db, values)
        logger.info(f"Created address {address.id} for user {address.user_id} (default={address.is_default})")
        return {"message": "Address created successfully", "data": serialize_one(AddressResponse, address)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error creating address: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create address")


@router.patch("", status_code=status.HTTP_200_OK, summary="Update address")
@router.put("", status_code=status.HTTP_200_OK, summary="Update address")
async def update_existing_address(
    address_data: AddressUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        address_id = resolve_record_id(id, {"id": address_data.id})
        if address_id is None:
            raise bad_request("Valid address id is required")

        address = db.query(Address).filter(Address.id == address_id).first()
        if not address:
            raise not_found("Address not found")

        updates = address_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        address = update_address(db, address, updates)
        logger.info(f"Updated address {address.id}")
        return {"message": "Address updated successfully", "data": serialize_one(AddressResponse, address)}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error updating address: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update address")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete address")
async def delete_address(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        address_id = resolve_record_id(id, body)
        if address_id is None:
            raise bad_request("Valid address id is required")

        address = db.query(Address).filter(Address.id == address_id).first()
        if not address:
            raise not_found("Address not found")

        db.delete(address)
        db.commit()
        logger.info(f"Deleted address {address_id}")
        return {"message": "Address deleted successfully", "id": address_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting address: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete address")
