from typing import Iterable, Type

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.services.excel_import import ImportResult


def serialize(schema: Type[BaseModel], rows: Iterable) -> list:
    return [schema.model_validate(row).model_dump(mode="json") for row in rows]


def serialize_one(schema: Type[BaseModel], row) -> dict:
    return schema.model_validate(row).model_dump(mode="json")


def import_response(result: ImportResult, entity: str) -> JSONResponse:
    """201 with the import counts, or 400 when not a single row made it in."""
    if result.valid_rows == 0:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "ValidationError",
                "message": "No valid rows found",
                "type": "validation_error",
                "data": result.summary(),
                "errors": result.errors,
            },
        )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "message": f"{entity} excel imported successfully",
            "data": result.summary(),
            "errors": result.errors,
        },
    )
