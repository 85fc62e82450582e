from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import datetime

from storefront.utils.parsing import normalize_text, normalize_optional_text, parse_boolean


class PaymentGatewayCreate(BaseModel):
    name: Optional[str] = Field(None, description="Gateway name, e.g. Razorpay")
    app_id: Optional[str] = Field(None, description="Public key id handed to the checkout widget")
    secret_key: Optional[str] = None
    is_active: bool = True

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("app_id", "secret_key", mode="before")
    @classmethod
    def clean_keys(cls, v):
        return normalize_optional_text(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def clean_is_active(cls, v):
        parsed = parse_boolean(v)
        return True if parsed is None else parsed

    @model_validator(mode="after")
    def check_name(self):
        if not self.name:
            raise ValueError("name is required")
        return self


class PaymentGatewayUpdate(BaseModel):
    id: Optional[Any] = None
    name: Optional[str] = None
    app_id: Optional[str] = None
    secret_key: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        name = normalize_text(v)
        if not name:
            raise ValueError("name cannot be empty")
        return name

    @field_validator("app_id", "secret_key", mode="before")
    @classmethod
    def clean_keys(cls, v):
        return normalize_optional_text(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def clean_is_active(cls, v):
        parsed = parse_boolean(v)
        return False if parsed is None else parsed

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class PaymentGatewayResponse(BaseModel):
    id: int
    name: str
    app_id: Optional[str] = None
    secret_key: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
