import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.schemas.categories import CategoryResponse
from storefront.schemas.product_content import ProductDetailResponse
from storefront.schemas.products import ProductResponse
from storefront.services.catalog import get_active_product_by_slug, get_product_page
from storefront.core.errors import bad_request, not_found, server_error
from storefront.utils.responses import serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "/getproduct",
    status_code=status.HTTP_200_OK,
    summary="Get a product page by slug",
    description="Active product with its category and detail sections, as the shop renders it",
)
async def get_product_by_slug(slug: Optional[str] = Query(None), db: Session = Depends(get_db)):
    try:
        if not slug or not slug.strip():
            raise bad_request("slug is required")

        product = get_active_product_by_slug(db, slug)
        if not product:
            logger.warning(f"Storefront product not found for slug: {slug}")
            raise not_found("Product not found")

        page = get_product_page(db, product)
        data = serialize_one(ProductResponse, product)
        data["category"] = serialize_one(CategoryResponse, page["category"]) if page["category"] else None
        data["details"] = serialize_one(ProductDetailResponse, page["details"]) if page["details"] else None

        return {"message": "Product fetched successfully", "data": data}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching storefront product: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch product")
