from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Optional
from datetime import datetime

from storefront.utils.parsing import normalize_text, normalize_optional_text, STATUS_VALUES


def _status(v: Any, default: Optional[str] = None) -> str:
    value = normalize_text(v) or default
    if value not in STATUS_VALUES:
        raise ValueError("Status must be 'active' or 'inactive'")
    return value


class CategoryCreate(BaseModel):
    """Schema for creating a new category"""
    name: Optional[str] = Field(None, max_length=100, description="Category name", examples=["Immunity"])
    slug: Optional[str] = Field(None, max_length=120, description="URL slug, unique", examples=["immunity"])
    image: Optional[str] = Field(None, max_length=500, description="Image url from the upload endpoint")
    status: str = "active"

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("slug", mode="before")
    @classmethod
    def clean_slug(cls, v):
        return normalize_text(v).lower()

    @field_validator("image", mode="before")
    @classmethod
    def clean_image(cls, v):
        return normalize_optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _status(v, default="active")

    @model_validator(mode="after")
    def check_required(self):
        if not self.name or not self.slug:
            raise ValueError("Name and slug are required")
        return self


class CategoryUpdate(BaseModel):
    """Schema for updating an existing category"""
    id: Optional[Any] = None
    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    image: Optional[str] = Field(None, max_length=500)
    status: Optional[str] = None

    @field_validator("name", "slug", mode="before")
    @classmethod
    def validate_not_empty(cls, v, info):
        text = normalize_text(v)
        if not text:
            raise ValueError(f"{info.field_name.capitalize()} cannot be empty")
        return text.lower() if info.field_name == "slug" else text

    @field_validator("image", mode="before")
    @classmethod
    def clean_image(cls, v):
        return normalize_optional_text(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        return _status(v)

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class CategoryResponse(BaseModel):
    """Schema for category response"""
    id: int = Field(..., description="Category ID")
    name: str
    slug: str
    image: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
