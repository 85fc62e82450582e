"""
Postal-code resolution.

A six digit postal code is walked up the location hierarchy
(Pincode -> City -> State -> Country) so that a checkout form can be filled
in from the code alone. Each step short-circuits with its own message.
"""
import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from storefront.models.countries import Country
from storefront.models.states import State
from storefront.models.cities import City
from storefront.models.pincodes import Pincode
from storefront.utils.parsing import normalize_text

logger = logging.getLogger(__name__)

POSTAL_CODE_PATTERN = re.compile(r"^\d{6}$")


class LocationResolutionError(Exception):
    def __init__(self, message: str, status_code: int = 404):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def is_postal_code(value) -> bool:
    return bool(POSTAL_CODE_PATTERN.match(normalize_text(value)))


def resolve_postal_code(db: Session, postal_code) -> dict:
    """
    Resolve a postal code to its pincode, city, state and country.

    Args:
        db: Database session
        postal_code: Raw code as typed by the customer

    Returns:
        dict: ids and display names along the chain

    Raises:
        LocationResolutionError: 400 for a malformed code, 404 for a missing link
    """
    code = normalize_text(postal_code)
    if not POSTAL_CODE_PATTERN.match(code):
        raise LocationResolutionError("Postal code must be a 6 digit number", status_code=400)

    pincode: Optional[Pincode] = (
        db.query(Pincode)
        .filter(Pincode.pincode == code, Pincode.status == "active")
        .order_by(Pincode.created_at.desc(), Pincode.id.desc())
        .first()
    )
    if not pincode:
        raise LocationResolutionError("Pincode not found.")

    city = db.query(City).filter(City.id == pincode.city_id).first()
    if not city:
        raise LocationResolutionError("City not found for this pincode.")

    state = db.query(State).filter(State.id == city.state_id).first()
    if not state:
        raise LocationResolutionError("State not found for this pincode.")

    country = db.query(Country).filter(Country.id == state.country_id).first()
    if not country:
        raise LocationResolutionError("Country not found for this pincode.")

    logger.info(f"Resolved postal code {code} to pincode {pincode.id}")
    return {
        "pincode_id": pincode.id,
        "city_id": city.id,
        "state_id": state.id,
        "country_id": country.id,
        "pincode": pincode.pincode,
        "area_name": pincode.area_name,
        "city": city.name,
        "state": state.name,
        "country": country.name,
    }
