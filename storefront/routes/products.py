import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.categories import Category
from storefront.models.products import Product
from storefront.schemas.products import ProductCreate, ProductUpdate, ProductResponse
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
    summary="Get products",
    description="""
    Retrieve one product by id, or a paginated product list.

    **Filters:**
    - status: active or inactive
    - category_id: products of one category
    - search: substring match on the product name
    """,
)
async def get_products(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        if id is not None:
            product_id = parse_positive_int(id)
            product = db.query(Product).filter(Product.id == product_id).first() if product_id else None
            if not product:
                logger.warning(f"Product with ID {id} not found")
                raise not_found("Product not found")
            return {"message": "Product fetched successfully", "data": serialize_one(ProductResponse, product)}

        query = db.query(Product)
        if status_filter(status_value):
            query = query.filter(Product.status == status_value)
        parsed_category_id = parse_positive_int(category_id)
        if parsed_category_id:
            query = query.filter(Product.category_id == parsed_category_id)
        if search and search.strip():
            query = query.filter(Product.name.ilike(f"%{search.strip()}%"))

        products, pagination = paginate(query, [Product.created_at.desc(), Product.id.desc()], page, limit)
        logger.info(f"Retrieved {len(products)} of {pagination['totalItems']} products")
        return {
            "message": "Product list fetched successfully",
            "data": serialize(ProductResponse, products),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching products: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch product data")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="""
    Create a product. Slug is stored lower-cased and sku upper-cased; both must be unique.

    **qty_offers** is a list of `{qty, price, label, label2?}` (or the same list as a JSON string).
    A single malformed entry rejects the request.
    """,
)
async def create_product(product_data: ProductCreate, db: Session = Depends(get_db)):
    """
    Create a new product.

    Raises:
        HTTPException: 400 validation, 404 unknown category, 409 slug or sku taken
    """
    try:
        logger.info(f"Creating product: {product_data.name} (slug: {product_data.slug}, sku: {product_data.sku})")

        if not db.query(Category).filter(Category.id == product_data.category_id).first():
            raise not_found("Category not found")

        if db.query(Product).filter(Product.slug == product_data.slug).first():
            logger.warning(f"Product slug already exists: {product_data.slug}")
            raise conflict("Product already exists with this slug", field="slug")

        if db.query(Product).filter(Product.sku == product_data.sku).first():
            logger.warning(f"Product sku already exists: {product_data.sku}")
            raise conflict("Product already exists with this sku", field="sku")

        new_product = Product(**product_data.model_dump())
        db.add(new_product)
        db.commit()
        db.refresh(new_product)

        logger.info(f"Product created successfully: ID={new_product.id}, offers={len(new_product.qty_offers)}")
        return {"message": "Product created successfully", "data": serialize_one(ProductResponse, new_product)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"IntegrityError creating product: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating product: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create product")


@router.patch(
    "",
    status_code=status.HTTP_200_OK,
    summary="Update product",
    description="Partial update; only the fields sent are validated and written",
)
@router.put("", status_code=status.HTTP_200_OK, summary="Update product")
async def update_product(
    product_data: ProductUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        product_id = resolve_record_id(id, {"id": product_data.id})
        if product_id is None:
            raise bad_request("Valid product id is required")

        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise not_found("Product not found")

        update_dict = product_data.updates()
        if not update_dict:
            raise bad_request("At least one field is required to update")

        logger.info(f"Updating product {product_id} fields: {sorted(update_dict.keys())}")

        if "slug" in update_dict:
            if db.query(Product).filter(Product.slug == update_dict["slug"], Product.id != product_id).first():
                raise conflict("Product slug is already in use", field="slug")

        if "sku" in update_dict:
            if db.query(Product).filter(Product.sku == update_dict["sku"], Product.id != product_id).first():
                raise conflict("Product sku is already in use", field="sku")

        if "category_id" in update_dict:
            if not db.query(Category).filter(Category.id == update_dict["category_id"]).first():
                raise not_found("Category not found")

        for field, value in update_dict.items():
            setattr(product, field, value)

        db.commit()
        db.refresh(product)

        logger.info(f"Product {product_id} updated successfully")
        return {"message": "Product updated successfully", "data": serialize_one(ProductResponse, product)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"IntegrityError updating product: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating product: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update product")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete product")
async def delete_product(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        product_id = resolve_record_id(id, body)
        if product_id is None:
            raise bad_request("Valid product id is required")

        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise not_found("Product not found")

        db.delete(product)
        db.commit()

        logger.info(f"Product deleted successfully: ID={product_id}")
        return {"message": "Product deleted successfully", "id": product_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting product: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete product")
