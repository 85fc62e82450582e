import logging

from sqlalchemy.orm import Session

from storefront.models.addresses import Address
from storefront.schemas.addresses import LOCATION_ID_FIELDS
from storefront.services.location_resolver import (
    LocationResolutionError,
    is_postal_code,
    resolve_postal_code,
)

logger = logging.getLogger(__name__)


def clear_default(db: Session, user_id: int) -> int:
    """Unset is_default on every address of the user. Not committed."""
    return (
        db.query(Address)
        .filter(Address.user_id == user_id, Address.is_default.is_(True))
        .update({Address.is_default: False}, synchronize_session="fetch")
    )


def fill_location_ids(db: Session, values: dict) -> dict:
    """
    Fill country/state/city/pincode ids from the postal code when the client
    sent none of them. An unresolvable code leaves the ids empty.
    """
    if any(values.get(field) for field in LOCATION_ID_FIELDS):
        return values
    if not is_postal_code(values.get("postal_code")):
        return values
    try:
        resolved = resolve_postal_code(db, values["postal_code"])
    except LocationResolutionError as e:
        logger.info(f"Postal code {values['postal_code']} not resolved: {e.message}")
        return values
    for field in LOCATION_ID_FIELDS:
        values[field] = resolved[field]
    return values


def create_address(db: Session, values: dict) -> Address:
    """Insert an address; a default address takes the flag from its siblings in the same transaction."""
    try:
        if values.get("is_default"):
            cleared = clear_default(db, values["user_id"])
            logger.info(f"Cleared {cleared} default address(es) for user {values['user_id']}")
        address = Address(**values)
        db.add(address)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(address)
    return address


def update_address(db: Session, address: Address, updates: dict) -> Address:
    """
    Apply a partial update. A row that ends up as the default, whether it was
    just flagged or moved to another user, takes the flag from that user's
    other addresses in the same transaction.
    """
    is_default = updates.get("is_default", address.is_default)
    try:
        for key, value in updates.items():
            if key != "is_default":
                setattr(address, key, value)
        if is_default and ("is_default" in updates or "user_id" in updates):
            db.flush()
            cleared = clear_default(db, address.user_id)
            logger.info(f"Cleared {cleared} default address(es) for user {address.user_id}")
        address.is_default = bool(is_default)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(address)
    return address
