import logging
from typing import Optional
from fastapi import APIRouter, Depends, status, HTTPException, Query, Request
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.categories import Category
from storefront.models.products import Product
from storefront.schemas.categories import CategoryCreate, CategoryResponse, CategoryUpdate
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
)
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id, status_filter
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="Get categories",
    description="Retrieve one category by id, or a paginated list filtered by status and name search",
)
async def get_categories(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Get categories with proper error handling.

    Returns:
        dict: ``{message, data}`` for one category, ``{message, data, pagination}`` for the list
    """
    try:
        if id is not None:
            logger.info(f"Fetching category with ID: {id}")
            category_id = parse_positive_int(id)
            category = db.query(Category).filter(Category.id == category_id).first() if category_id else None
            if not category:
                logger.warning(f"Category with ID {id} not found")
                raise not_found("Category not found")
            return {"message": "Category fetched successfully", "data": serialize_one(CategoryResponse, category)}

        query = db.query(Category)
        if status_filter(status_value):
            query = query.filter(Category.status == status_value)
        if search and search.strip():
            query = query.filter(Category.name.ilike(f"%{search.strip()}%"))

        categories, pagination = paginate(query, [Category.created_at.desc(), Category.id.desc()], page, limit)
        logger.info(f"Successfully retrieved {len(categories)} categories")
        return {
            "message": "Category list fetched successfully",
            "data": serialize(CategoryResponse, categories),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching categories: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch category data")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create new category",
    description="Create a new product category",
)
async def create_category(category_data: CategoryCreate, db: Session = Depends(get_db)):
    """
    Create a new category with validation and error handling.

    Args:
        category_data: Category creation data
        db: Database session

    Raises:
        HTTPException: If the slug already exists or validation fails
    """
    try:
        logger.info(f"Creating new category: {category_data.name}")

        if db.query(Category).filter(Category.slug == category_data.slug).first():
            logger.warning(f"Category already exists: {category_data.slug}")
            raise conflict("Category already exists with this slug", field="slug")

        new_category = Category(**category_data.model_dump())
        db.add(new_category)
        db.commit()
        db.refresh(new_category)

        logger.info(f"Successfully created category: {new_category.name} (ID: {new_category.id})")
        return {"message": "Category created successfully", "data": serialize_one(CategoryResponse, new_category)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating category: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating category: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create category")


@router.put(
    "",
    status_code=status.HTTP_200_OK,
    summary="Update category",
    description="Update an existing category; id in the query or body",
)
@router.patch("", status_code=status.HTTP_200_OK, summary="Update category")
async def update_category(
    category_data: CategoryUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Update a category with validation and error handling.

    Raises:
        HTTPException: If category not found, slug in use or validation fails
    """
    try:
        category_id = resolve_record_id(id, {"id": category_data.id})
        if category_id is None:
            raise bad_request("Valid category id is required")

        logger.info(f"Updating category with ID: {category_id}")
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            logger.warning(f"Category with ID {category_id} not found")
            raise not_found("Category not found")

        updates = category_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        # Check for duplicate slug if being updated
        if "slug" in updates and updates["slug"] != category.slug:
            if db.query(Category).filter(Category.slug == updates["slug"], Category.id != category_id).first():
                raise conflict("Category slug is already in use", field="slug")

        for key, value in updates.items():
            setattr(category, key, value)

        db.commit()
        db.refresh(category)

        logger.info(f"Successfully updated category: {category.name} (ID: {category.id})")
        return {"message": "Category updated successfully", "data": serialize_one(CategoryResponse, category)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating category: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating category: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update category")


@router.delete(
    "",
    status_code=status.HTTP_200_OK,
    summary="Delete category",
    description="Delete a category by id; refused while products still use it",
)
async def delete_category(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        category_id = resolve_record_id(id, body)
        if category_id is None:
            raise bad_request("Valid category id is required")

        logger.info(f"Deleting category with ID: {category_id}")
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise not_found("Category not found")

        in_use = db.query(Product.id).filter(Product.category_id == category_id).count()
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "error": "ReferenceError",
                    "message": f"Category is used by {in_use} product(s)",
                    "type": "resource_in_use",
                    "suggestion": "Move or delete the products first",
                },
            )

        db.delete(category)
        db.commit()

        logger.info(f"Successfully deleted category with ID: {category_id}")
        return {"message": "Category deleted successfully", "id": category_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting category: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete category")
