from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import datetime, timezone

from storefront.utils.parsing import normalize_text, parse_number, STATUS_VALUES

DISCOUNT_TYPES = ("percentage", "fixed")


def parse_date(value: Any, field_name: str) -> Optional[datetime]:
    """Blank means no date; anything that is not an ISO date/datetime is rejected."""
    if isinstance(value, datetime):
        return as_utc(value)
    text = normalize_text(value)
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"{field_name} is invalid")
    return as_utc(parsed)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands timezone columns back naive
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def check_date_window(start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
    start_date, end_date = as_utc(start_date), as_utc(end_date)
    if start_date and end_date and start_date > end_date:
        raise ValueError("start_date cannot be greater than end_date")


def _non_negative(v: Any, field_name: str) -> Optional[float]:
    number = parse_number(v)
    if number is not None and number < 0:
        raise ValueError(f"{field_name} must be 0 or greater")
    return number


def _discount_type(v: Any) -> str:
    value = normalize_text(v)
    if value not in DISCOUNT_TYPES:
        raise ValueError("discount_type must be 'percentage' or 'fixed'")
    return value


def _status(v: Any) -> str:
    value = normalize_text(v)
    if value not in STATUS_VALUES:
        raise ValueError("Status must be 'active' or 'inactive'")
    return value


class CouponCreate(BaseModel):
    code: Optional[str] = Field(None, max_length=50, description="Stored upper-cased", examples=["WELCOME10"])
    discount_type: str = "percentage"
    discount_value: Optional[float] = None
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: str = "active"

    @field_validator("code", mode="before")
    @classmethod
    def clean_code(cls, v):
        return normalize_text(v).upper()

    @field_validator("discount_type", mode="before")
    @classmethod
    def validate_discount_type(cls, v):
        return _discount_type(normalize_text(v) or "percentage")

    @field_validator("discount_value", "min_order_amount", "max_discount_amount", mode="before")
    @classmethod
    def validate_amounts(cls, v, info):
        return _non_negative(v, info.field_name)

    @field_validator("usage_limit", "used_count", mode="before")
    @classmethod
    def validate_counts(cls, v, info):
        number = _non_negative(v, info.field_name)
        if number is None:
            return None if info.field_name == "usage_limit" else 0
        return int(number)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_dates(cls, v, info):
        return parse_date(v, info.field_name)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _status(normalize_text(v) or "active")

    @model_validator(mode="after")
    def check_coupon(self):
        if not self.code or self.discount_value is None:
            raise ValueError("Code and discount_value are required")
        check_date_window(self.start_date, self.end_date)
        return self


class CouponUpdate(BaseModel):
    id: Optional[Any] = None
    code: Optional[str] = Field(None, max_length=50)
    discount_type: Optional[str] = None
    discount_value: Optional[float] = None
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    used_count: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def validate_code(cls, v):
        code = normalize_text(v).upper()
        if not code:
            raise ValueError("code cannot be empty")
        return code

    @field_validator("discount_type", mode="before")
    @classmethod
    def validate_discount_type(cls, v):
        return _discount_type(v)

    @field_validator("discount_value", "used_count", mode="before")
    @classmethod
    def validate_required_numbers(cls, v, info):
        number = _non_negative(v, info.field_name)
        if number is None:
            raise ValueError(f"{info.field_name} must be 0 or greater")
        return int(number) if info.field_name == "used_count" else number

    @field_validator("min_order_amount", "max_discount_amount", mode="before")
    @classmethod
    def validate_amounts(cls, v, info):
        return _non_negative(v, info.field_name)

    @field_validator("usage_limit", mode="before")
    @classmethod
    def validate_usage_limit(cls, v):
        number = _non_negative(v, "usage_limit")
        return None if number is None else int(number)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_dates(cls, v, info):
        return parse_date(v, info.field_name)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _status(v)

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class CouponResponse(BaseModel):
    id: int
    code: str
    discount_type: str
    discount_value: float
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    usage_limit: Optional[int] = None
    used_count: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
