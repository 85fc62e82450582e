from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import datetime

from storefront.utils.parsing import (
    normalize_text,
    normalize_optional_text,
    parse_number,
    parse_positive_int,
    to_valid_status,
    STATUS_VALUES,
)


def _strict_status(v: Any) -> str:
    status = normalize_text(v)
    if status not in STATUS_VALUES:
        raise ValueError("Status must be 'active' or 'inactive'")
    return status


def _required_parent(v: Any, field: str) -> int:
    parsed = parse_positive_int(v)
    if parsed is None:
        raise ValueError(f"Valid {field} is required")
    return parsed


def _required_name(v: Any, message: str = "Name cannot be empty") -> str:
    text = normalize_text(v)
    if not text:
        raise ValueError(message)
    return text


class LocationUpdateBase(BaseModel):
    """Shared shape of PUT/PATCH bodies: the record id may travel in the body."""
    id: Optional[Any] = None
    status: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _strict_status(v)

    def updates(self) -> dict:
        """Fields explicitly sent by the client, minus the id."""
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


# ---------------------------------------------------------------- Country

class CountryCreate(BaseModel):
    name: Optional[str] = Field(None, description="Country name (required, unique)", examples=["India"])
    iso_code: Optional[str] = Field(None, description="ISO code, unique when set", examples=["IN"])
    phone_code: Optional[str] = Field(None, examples=["+91"])
    status: str = Field("active", description="active or inactive; anything else becomes active")

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("iso_code", "phone_code", mode="before")
    @classmethod
    def clean_optional(cls, v):
        return normalize_optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, v):
        return to_valid_status(v)

    @model_validator(mode="after")
    def check_required(self):
        if not self.name:
            raise ValueError("name is required")
        return self


class CountryUpdate(LocationUpdateBase):
    name: Optional[str] = None
    iso_code: Optional[str] = None
    phone_code: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return _required_name(v)

    @field_validator("iso_code", "phone_code", mode="before")
    @classmethod
    def clean_optional(cls, v):
        return normalize_optional_text(v)


class CountryResponse(BaseModel):
    id: int
    name: str
    iso_code: Optional[str] = None
    phone_code: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- State

class StateCreate(BaseModel):
    country_id: Optional[int] = Field(None, description="Parent country id")
    name: Optional[str] = Field(None, examples=["Karnataka"])
    state_code: Optional[str] = Field(None, examples=["KA"])
    status: str = "active"

    @field_validator("country_id", mode="before")
    @classmethod
    def clean_country_id(cls, v):
        return parse_positive_int(v)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("state_code", mode="before")
    @classmethod
    def clean_code(cls, v):
        return normalize_optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, v):
        return to_valid_status(v)

    @model_validator(mode="after")
    def check_required(self):
        if not self.country_id or not self.name:
            raise ValueError("country_id and name are required")
        return self


class StateUpdate(LocationUpdateBase):
    country_id: Optional[int] = None
    name: Optional[str] = None
    state_code: Optional[str] = None

    @field_validator("country_id", mode="before")
    @classmethod
    def validate_country_id(cls, v):
        return _required_parent(v, "country_id")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return _required_name(v)

    @field_validator("state_code", mode="before")
    @classmethod
    def clean_code(cls, v):
        return normalize_optional_text(v)


class StateResponse(BaseModel):
    id: int
    country_id: int
    name: str
    state_code: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- City

class CityCreate(BaseModel):
    state_id: Optional[int] = None
    name: Optional[str] = Field(None, examples=["Bengaluru"])
    status: str = "active"

    @field_validator("state_id", mode="before")
    @classmethod
    def clean_state_id(cls, v):
        return parse_positive_int(v)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, v):
        return to_valid_status(v)

    @model_validator(mode="after")
    def check_required(self):
        if not self.state_id or not self.name:
            raise ValueError("state_id and name are required")
        return self


class CityUpdate(LocationUpdateBase):
    state_id: Optional[int] = None
    name: Optional[str] = None

    @field_validator("state_id", mode="before")
    @classmethod
    def validate_state_id(cls, v):
        return _required_parent(v, "state_id")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return _required_name(v)


class CityResponse(BaseModel):
    id: int
    state_id: int
    name: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- Pincode

class PincodeCreate(BaseModel):
    city_id: Optional[int] = None
    pincode: Optional[str] = Field(None, examples=["560001"])
    area_name: Optional[str] = Field(None, examples=["MG Road"])
    status: str = "active"

    @field_validator("city_id", mode="before")
    @classmethod
    def clean_city_id(cls, v):
        return parse_positive_int(v)

    @field_validator("pincode", mode="before")
    @classmethod
    def clean_pincode(cls, v):
        return normalize_text(v)

    @field_validator("area_name", mode="before")
    @classmethod
    def clean_area(cls, v):
        return normalize_optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, v):
        return to_valid_status(v)

    @model_validator(mode="after")
    def check_required(self):
        if not self.city_id or not self.pincode:
            raise ValueError("city_id and pincode are required")
        return self


class PincodeUpdate(LocationUpdateBase):
    city_id: Optional[int] = None
    pincode: Optional[str] = None
    area_name: Optional[str] = None

    @field_validator("city_id", mode="before")
    @classmethod
    def validate_city_id(cls, v):
        return _required_parent(v, "city_id")

    @field_validator("pincode", mode="before")
    @classmethod
    def validate_pincode(cls, v):
        return _required_name(v, "Pincode cannot be empty")

    @field_validator("area_name", mode="before")
    @classmethod
    def clean_area(cls, v):
        return normalize_optional_text(v)


class PincodeResponse(BaseModel):
    id: int
    city_id: int
    pincode: str
    area_name: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- Shipping

def _optional_pincode_id(v: Any) -> Optional[int]:
    if v is None or normalize_text(v) == "":
        return None
    parsed = parse_positive_int(v)
    if parsed is None:
        raise ValueError("pincode_id must be a valid positive number or null")
    return parsed


def _amount(v: Any, field: str) -> float:
    number = parse_number(v)
    if number is None:
        raise ValueError(f"{field} must be a valid number")
    if number < 0:
        raise ValueError(f"{field} must be 0 or greater")
    return number


class ShippingRateCreate(BaseModel):
    pincode_id: Optional[int] = Field(None, description="Pincode the rate applies to; null for all")
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    shipping_amount: Optional[float] = None
    status: str = "active"

    @field_validator("pincode_id", mode="before")
    @classmethod
    def validate_pincode_id(cls, v):
        return _optional_pincode_id(v)

    @field_validator("min_amount", "max_amount", "shipping_amount", mode="before")
    @classmethod
    def validate_amount(cls, v, info):
        return _amount(v, info.field_name)

    @field_validator("status", mode="before")
    @classmethod
    def clean_status(cls, v):
        return to_valid_status(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.min_amount is None or self.max_amount is None or self.shipping_amount is None:
            raise ValueError("min_amount, max_amount and shipping_amount must be valid numbers")
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount cannot be greater than max_amount")
        return self


class ShippingRateUpdate(LocationUpdateBase):
    pincode_id: Optional[int] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    shipping_amount: Optional[float] = None

    @field_validator("pincode_id", mode="before")
    @classmethod
    def validate_pincode_id(cls, v):
        return _optional_pincode_id(v)

    @field_validator("min_amount", "max_amount", "shipping_amount", mode="before")
    @classmethod
    def validate_amount(cls, v, info):
        return _amount(v, info.field_name)


class ShippingRateResponse(BaseModel):
    id: int
    pincode_id: Optional[int] = None
    min_amount: float
    max_amount: float
    shipping_amount: float
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
