import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.product_details import ProductDetail
from storefront.models.products import Product
from storefront.schemas.product_content import ProductDetailCreate, ProductDetailUpdate, ProductDetailResponse
from storefront.core.errors import (
    bad_request,
    conflict,
    not_found,
    parse_exception_to_error_detail,
    server_error,
)
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, read_json_body, resolve_record_id
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _find_detail(db: Session, detail_id: Optional[int], product_id: Optional[int]) -> Optional[ProductDetail]:
    if detail_id:
        return db.query(ProductDetail).filter(ProductDetail.id == detail_id).first()
    return db.query(ProductDetail).filter(ProductDetail.product_id == product_id).first()


@router.get("", status_code=status.HTTP_200_OK, summary="Get product details")
async def get_product_details(
    id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Get the detail record by its id or by product_id, or a paginated list.
    """
    try:
        detail_id = parse_positive_int(id)
        parsed_product_id = parse_positive_int(product_id)
        if detail_id or parsed_product_id:
            details = _find_detail(db, detail_id, parsed_product_id)
            if not details:
                raise not_found("Product details not found")
            return {
                "message": "Product details fetched successfully",
                "data": serialize_one(ProductDetailResponse, details),
            }

        rows, pagination = paginate(
            db.query(ProductDetail), [ProductDetail.created_at.desc(), ProductDetail.id.desc()], page, limit
        )
        return {
            "message": "Product details list fetched successfully",
            "data": serialize(ProductDetailResponse, rows),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching product details: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch product details")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create product details")
async def create_product_details(detail_data: ProductDetailCreate, db: Session = Depends(get_db)):
    """
    Create the content block of a product page. Each product has at most one.

    Raises:
        HTTPException: 404 unknown product, 409 details already exist
    """
    try:
        if not db.query(Product).filter(Product.id == detail_data.product_id).first():
            raise not_found("Product not found")

        if db.query(ProductDetail).filter(ProductDetail.product_id == detail_data.product_id).first():
            raise conflict("Product details already exists for this product_id", field="product_id")

        details = ProductDetail(**detail_data.model_dump())
        db.add(details)
        db.commit()
        db.refresh(details)

        logger.info(f"Created product details {details.id} for product {details.product_id}")
        return {"message": "Product details created successfully", "data": serialize_one(ProductDetailResponse, details)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error creating product details: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating product details: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create product details")


@router.patch("", status_code=status.HTTP_200_OK, summary="Update product details")
@router.put("", status_code=status.HTTP_200_OK, summary="Update product details")
async def update_product_details(
    detail_data: ProductDetailUpdate,
    id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        detail_id = resolve_record_id(id, {"id": detail_data.id})
        lookup_product_id = parse_positive_int(product_id) or detail_data.product_id
        if not detail_id and not lookup_product_id:
            raise bad_request("Valid id or product_id is required")

        details = _find_detail(db, detail_id, lookup_product_id)
        if not details:
            raise not_found("Product details not found")

        updates = detail_data.updates()
        if detail_id is None:
            # product_id only located the row
            updates.pop("product_id", None)
        if not updates:
            raise bad_request("At least one field is required to update")

        new_product_id = updates.get("product_id")
        if new_product_id and new_product_id != details.product_id:
            if not db.query(Product).filter(Product.id == new_product_id).first():
                raise not_found("Product not found")
            if db.query(ProductDetail).filter(ProductDetail.product_id == new_product_id).first():
                raise conflict("Product details already exists for this product_id", field="product_id")

        for key, value in updates.items():
            setattr(details, key, value)

        db.commit()
        db.refresh(details)

        logger.info(f"Updated product details {details.id}")
        return {"message": "Product details updated successfully", "data": serialize_one(ProductDetailResponse, details)}

    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error updating product details: {str(e)}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=parse_exception_to_error_detail(e))
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating product details: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update product details")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete product details")
async def delete_product_details(
    request: Request,
    id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        detail_id = resolve_record_id(id, body)
        lookup_product_id = resolve_record_id(product_id, body, "product_id")
        if not detail_id and not lookup_product_id:
            raise bad_request("Valid id or product_id is required")

        details = _find_detail(db, detail_id, lookup_product_id)
        if not details:
            raise not_found("Product details not found")

        db.delete(details)
        db.commit()

        logger.info(f"Deleted product details {details.id}")
        return {"message": "Product details deleted successfully", "id": details.id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting product details: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete product details")
