"""Schemas for the product page content: detail sections, FAQs and reviews."""
import json
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, List, Optional
from datetime import datetime

from storefront.utils.parsing import (
    normalize_text,
    normalize_optional_text,
    parse_boolean,
    parse_number,
    parse_positive_int,
)


def _array_input(value: Any, wrap_object: bool = False) -> list:
    source = value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            source = json.loads(text)
        except ValueError:
            return []
    if wrap_object and isinstance(source, dict):
        source = [source]
    return source if isinstance(source, list) else []


def parse_sections(value: Any) -> List[dict]:
    """Benefit / ingredient cards: ``[{img, heading, paragraph}]``; non-objects are dropped."""
    return [
        {
            "img": normalize_text(item.get("img")),
            "heading": normalize_text(item.get("heading")),
            "paragraph": normalize_text(item.get("paragraph")),
        }
        for item in _array_input(value)
        if isinstance(item, dict)
    ]


def parse_usage(value: Any) -> List[dict]:
    """How-to-use steps; a single object is accepted and wrapped in a list."""
    steps = []
    for item in _array_input(value, wrap_object=True):
        if not isinstance(item, dict):
            continue
        tips = item.get("protip")
        steps.append({
            "heading": normalize_text(item.get("heading")),
            "paragraph": normalize_text(item.get("paragraph")),
            "protip": [normalize_text(tip) for tip in tips if normalize_text(tip)] if isinstance(tips, list) else [],
        })
    return steps


def _positive_product_id(v: Any) -> int:
    parsed = parse_positive_int(v)
    if parsed is None:
        raise ValueError("Valid product_id is required")
    return parsed


# ---------------------------------------------------------------- Detail

class ProductDetailCreate(BaseModel):
    product_id: Optional[int] = None
    benefits: List[dict] = Field(default_factory=list)
    ingredients: List[dict] = Field(default_factory=list)
    usage: List[dict] = Field(default_factory=list)
    img1: Optional[str] = None
    img2: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def validate_product_id(cls, v):
        return _positive_product_id(v)

    @field_validator("benefits", "ingredients", mode="before")
    @classmethod
    def clean_sections(cls, v):
        return parse_sections(v)

    @field_validator("usage", mode="before")
    @classmethod
    def clean_usage(cls, v):
        return parse_usage(v)

    @field_validator("img1", "img2", mode="before")
    @classmethod
    def clean_images(cls, v):
        return normalize_optional_text(v)

    @model_validator(mode="after")
    def check_product(self):
        if not self.product_id:
            raise ValueError("Valid product_id is required")
        return self


class ProductDetailUpdate(BaseModel):
    id: Optional[Any] = None
    product_id: Optional[int] = None
    benefits: Optional[List[dict]] = None
    ingredients: Optional[List[dict]] = None
    usage: Optional[List[dict]] = None
    img1: Optional[str] = None
    img2: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def validate_product_id(cls, v):
        return _positive_product_id(v)

    @field_validator("benefits", "ingredients", mode="before")
    @classmethod
    def clean_sections(cls, v):
        return parse_sections(v)

    @field_validator("usage", mode="before")
    @classmethod
    def clean_usage(cls, v):
        return parse_usage(v)

    @field_validator("img1", "img2", mode="before")
    @classmethod
    def clean_images(cls, v):
        return normalize_optional_text(v)

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class ProductDetailResponse(BaseModel):
    id: int
    product_id: int
    benefits: List[dict] = []
    ingredients: List[dict] = []
    usage: List[dict] = []
    img1: Optional[str] = None
    img2: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- FAQ

class FaqCreate(BaseModel):
    product_id: Optional[int] = None
    product_name: Optional[str] = Field(None, description="Slug of the product the question is about")
    name: Optional[str] = None
    question: Optional[str] = None
    answer: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def clean_product_id(cls, v):
        return parse_positive_int(v)

    @field_validator("product_name", mode="before")
    @classmethod
    def clean_product_name(cls, v):
        return normalize_text(v).lower()

    @field_validator("question", "answer", mode="before")
    @classmethod
    def clean_text(cls, v):
        return normalize_text(v)

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_optional_text(v)

    @model_validator(mode="after")
    def check_required(self):
        if not self.product_id or not self.product_name:
            raise ValueError("product_id and product_name are required")
        if not self.question or not self.answer:
            raise ValueError("question and answer are required")
        return self


class FaqUpdate(BaseModel):
    id: Optional[Any] = None
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    name: Optional[str] = None
    question: Optional[str] = None
    answer: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def validate_product_id(cls, v):
        parsed = parse_positive_int(v)
        if parsed is None:
            raise ValueError("Valid product_id and product_name are required")
        return parsed

    @field_validator("product_name", mode="before")
    @classmethod
    def validate_product_name(cls, v):
        text = normalize_text(v).lower()
        if not text:
            raise ValueError("Valid product_id and product_name are required")
        return text

    @field_validator("question", "answer", mode="before")
    @classmethod
    def validate_text(cls, v, info):
        text = normalize_text(v)
        if not text:
            raise ValueError(f"{info.field_name} cannot be empty")
        return text

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_optional_text(v)

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class FaqResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    name: Optional[str] = None
    question: str
    answer: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- Review

def _rating(v: Any) -> float:
    number = parse_number(v)
    if number is None:
        number = 0
    if number < 0 or number > 5:
        raise ValueError("rating must be between 0 and 5")
    return number


class ReviewCreate(BaseModel):
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    rating: float = 0
    dis: Optional[str] = Field(None, description="Review text")
    is_active: bool = True

    @field_validator("product_id", mode="before")
    @classmethod
    def clean_product_id(cls, v):
        return parse_positive_int(v)

    @field_validator("product_name", mode="before")
    @classmethod
    def clean_product_name(cls, v):
        return normalize_text(v).lower()

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v):
        return normalize_text(v)

    @field_validator("image", "dis", mode="before")
    @classmethod
    def clean_optional(cls, v):
        return normalize_optional_text(v)

    @field_validator("rating", mode="before")
    @classmethod
    def validate_rating(cls, v):
        return _rating(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def clean_is_active(cls, v):
        parsed = parse_boolean(v)
        return True if parsed is None else parsed

    @model_validator(mode="after")
    def check_required(self):
        if not (self.product_id and self.product_name and self.name):
            raise ValueError("product_id, product_name and name are required")
        return self


class ReviewUpdate(BaseModel):
    id: Optional[Any] = None
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    rating: Optional[float] = None
    dis: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def validate_product_id(cls, v):
        return _positive_product_id(v)

    @field_validator("product_name", mode="before")
    @classmethod
    def validate_product_name(cls, v):
        text = normalize_text(v).lower()
        if not text:
            raise ValueError("product_name cannot be empty")
        return text

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        text = normalize_text(v)
        if not text:
            raise ValueError("name cannot be empty")
        return text

    @field_validator("image", "dis", mode="before")
    @classmethod
    def clean_optional(cls, v):
        return normalize_optional_text(v)

    @field_validator("rating", mode="before")
    @classmethod
    def validate_rating(cls, v):
        return _rating(v)

    @field_validator("is_active", mode="before")
    @classmethod
    def validate_is_active(cls, v):
        parsed = parse_boolean(v)
        if parsed is None:
            raise ValueError("is_active must be true or false")
        return parsed

    def updates(self) -> dict:
        return {key: getattr(self, key) for key in self.model_fields_set if key != "id"}


class ReviewResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    name: str
    image: Optional[str] = None
    rating: float
    dis: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
