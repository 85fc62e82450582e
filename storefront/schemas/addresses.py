from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import datetime

from storefront.utils.parsing import (
    normalize_text,
    normalize_optional_text,
    parse_boolean,
    parse_positive_int,
    STATUS_VALUES,
)

ADDRESS_TYPES = ("home", "office", "other")

LOCATION_ID_FIELDS = ("country_id", "state_id", "city_id", "pincode_id")


def _address_type(v: Any) -> str:
    value = normalize_text(v) or "home"
    if value not in ADDRESS_TYPES:
        raise ValueError("address_type must be home, office or other")
    return value


def _status(v: Any) -> str:
    value = normalize_text(v) or "active"
    if value not in STATUS_VALUES:
        raise ValueError("status must be active or inactive")
    return value


class AddressCreate(BaseModel):
    user_id: Optional[int] = None
    full_name: Optional[str] = None
    mobile: Optional[str] = None
    alternate_mobile: Optional[str] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    landmark: Optional[str] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    pincode_id: Optional[int] = None
    postal_code: Optional[str] = Field(None, examples=["560001"])
    address_type: str = "home"
    is_default: bool = False
    status: str = "active"

    @field_validator("user_id", "country_id", "state_id", "city_id", "pincode_id", mode="before")
    @classmethod
    def clean_ids(cls, v):
        return parse_positive_int(v)

    @field_validator("full_name", "mobile", "address_line_1", "postal_code", mode="before")
    @classmethod
    def clean_required_text(cls, v):
        return normalize_text(v)

    @field_validator("alternate_mobile", "address_line_2", "landmark", mode="before")
    @classmethod
    def clean_optional_text(cls, v):
        return normalize_optional_text(v)

    @field_validator("address_type", mode="before")
    @classmethod
    def validate_address_type(cls, v):
        return _address_type(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _status(v)

    @field_validator("is_default", mode="before")
    @classmethod
    def clean_is_default(cls, v):
        parsed = parse_boolean(v)
        return False if parsed is None else parsed

    @model_validator(mode="after")
    def check_required(self):
        if not (self.user_id and self.full_name and self.mobile and self.address_line_1 and self.postal_code):
            raise ValueError("user_id, full_name, mobile, address_line_1 and postal_code are required")
        return self


class AddressUpdate(BaseModel):
    """Every field is optional; only the ones sent are validated and written."""
    id: Optional[Any] = None
    user_id: Optional[int] = None
    full_name: Optional[str] = None
    mobile: Optional[str] = None
    alternate_mobile: Optional[str] = None
    address_line_1: Optional[str] = None
    address_line_2: Optional[str] = None
    landmark: Optional[str] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    pincode_id: Optional[int] = None
    postal_code: Optional[str] = None
    address_type: Optional[str] = None
    is_default: Optional[bool] = None
    status: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def validate_user_id(cls, v):
        parsed = parse_positive_int(v)
        if parsed is None:
            raise ValueError("user_id must be a valid positive integer")
        return parsed

    @field_validator("full_name", "mobile", "address_line_1", "postal_code", mode="before")
    @classmethod
    def validate_required_text(cls, v, info):
        text = normalize_text(v)
        if not text:
            raise ValueError(f"{info.field_name} cannot be empty")
        return text

    @field_validator("alternate_mobile", "address_line_2", "landmark", mode="before")
    @classmethod
    def clean_optional_text(cls, v):
        return normalize_optional_text(v)

    @field_validator("country_id", "state_id", "city_id", "pincode_id", mode="before")
    @classmethod
    def clean_location_ids(cls, v):
        return parse_positive_int(v)

    @field_validator("address_type", mode="before")
    @classmethod
    def validate_address_type(cls, v):
        value = normalize_text(v)
        if value not in ADDRESS_TYPES:
            raise ValueError("address_type must be home, office or other")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        value = normalize_text(v)
        if value not in STATUS_VALUES:
            raise ValueError("status must be active or inactive")
        return value

    @field_validator("is_default", mode="before")
    @classmethod
    def validate_is_default(cls, v):
        parsed = parse_boolean(v)
        if parsed is None:
            raise ValueError("is_default must be boolean")
        return parsed

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class AddressResponse(BaseModel):
    id: int
    user_id: int
    full_name: str
    mobile: str
    alternate_mobile: Optional[str] = None
    address_line_1: str
    address_line_2: Optional[str] = None
    landmark: Optional[str] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    pincode_id: Optional[int] = None
    postal_code: str
    address_type: str
    is_default: bool
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
