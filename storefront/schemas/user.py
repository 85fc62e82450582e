from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import datetime
from email_validator import EmailNotValidError, validate_email

from storefront.utils.parsing import normalize_text, normalize_optional_text, parse_positive_int

USER_STATUSES = ("block", "not_block")
STAFF_ROLES = ("admin", "inventory_manager", "sales", "warehouse")


def _email(v: Any) -> str:
    email = normalize_text(v).lower()
    if not email:
        return ""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Invalid email format")
    return email


def _optional_status(v: Any) -> Optional[str]:
    value = normalize_text(v)
    if not value:
        return None
    if value not in USER_STATUSES:
        raise ValueError("Status must be 'block' or 'not_block'")
    return value


def _optional_password(v: Any) -> Optional[str]:
    if v is None or v == "":
        return None
    password = str(v)
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    return password


class UserLogin(BaseModel):
    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="User password")

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, v):
        return _email(v)

    @model_validator(mode="after")
    def check_credentials(self):
        if not self.email or not self.password:
            raise ValueError("Email and password are required")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@gmail.com",
                "password": "myPassword123"
            }
        }


class UserRegister(UserLogin):
    name: Optional[str] = Field(None, max_length=100, description="Display name (optional)")

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_optional_text(v)

    @model_validator(mode="after")
    def check_password_length(self):
        if self.password and len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters")
        return self


class CustomerStatusUpdate(BaseModel):
    user_id: Optional[int] = Field(None, validation_alias=AliasChoices("userId", "user_id", "id"))
    status: Optional[str] = None

    @field_validator("user_id", mode="before")
    @classmethod
    def validate_user_id(cls, v):
        return parse_positive_int(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        value = normalize_text(v)
        if value not in USER_STATUSES:
            raise ValueError("Status must be 'block' or 'not_block'")
        return value

    @model_validator(mode="after")
    def check_fields(self):
        if not self.user_id:
            raise ValueError("Valid userId is required")
        if not self.status:
            raise ValueError("Status must be 'block' or 'not_block'")
        return self


class StaffCreate(UserLogin):
    """Back-office account; customers sign up through /auth/register instead."""
    role: Optional[str] = Field(None, description="One of admin, inventory_manager, sales, warehouse")
    status: str = Field("not_block", description="block or not_block")

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        return _optional_password(v)

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v):
        value = normalize_text(v)
        if value not in STAFF_ROLES:
            raise ValueError("Invalid role value")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _optional_status(v) or "not_block"

    @model_validator(mode="after")
    def check_role(self):
        if not self.role:
            raise ValueError("Invalid role value")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "email": "stock@gmail.com",
                "password": "myPassword123",
                "role": "inventory_manager"
            }
        }


class StaffUpdate(BaseModel):
    id: Optional[Any] = Field(None, validation_alias=AliasChoices("id", "userId"))
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None
    status: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, v):
        return _email(v) or None

    @field_validator("password", mode="before")
    @classmethod
    def validate_password(cls, v):
        return _optional_password(v)

    @field_validator("role", mode="before")
    @classmethod
    def validate_role(cls, v):
        value = normalize_text(v)
        if not value:
            return None
        if value not in STAFF_ROLES:
            raise ValueError("Invalid role value")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _optional_status(v)

    def updates(self) -> dict:
        """Non-empty fields sent by the client, minus the id."""
        return {
            key: getattr(self, key)
            for key in self.model_fields_set
            if key != "id" and getattr(self, key) is not None
        }


class PendingCustomerUpdate(BaseModel):
    user_id: Optional[Any] = Field(None, validation_alias=AliasChoices("userId", "user_id", "id"))
    email: Optional[str] = None
    status: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def clean_email(cls, v):
        return _email(v) or None

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _optional_status(v)

    def updates(self) -> dict:
        return {
            key: getattr(self, key)
            for key in ("email", "status")
            if getattr(self, key) is not None
        }


class UserResponse(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    role: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
