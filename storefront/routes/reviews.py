import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.reviews import ProductReview
from storefront.schemas.product_content import ReviewCreate, ReviewUpdate, ReviewResponse
from storefront.services.catalog import ensure_product_slug
from storefront.core.errors import bad_request, not_found, server_error
from storefront.utils.pagination import paginate
from storefront.utils.parsing import (
    normalize_text,
    parse_boolean,
    parse_positive_int,
    read_json_body,
    resolve_record_id,
)
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="Get product reviews",
    description="""
    Retrieve one review by id, or a paginated list.

    **Filters:**
    - product_id / product_name: reviews of one product
    - is_active: true or false
    """,
)
async def get_reviews(
    id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    product_name: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        if id is not None:
            review_id = parse_positive_int(id)
            review = db.query(ProductReview).filter(ProductReview.id == review_id).first() if review_id else None
            if not review:
                raise not_found("Review not found")
            return {"message": "Review fetched successfully", "data": serialize_one(ReviewResponse, review)}

        query = db.query(ProductReview)
        parsed_product_id = parse_positive_int(product_id)
        if parsed_product_id:
            query = query.filter(ProductReview.product_id == parsed_product_id)
        slug = normalize_text(product_name).lower()
        if slug:
            query = query.filter(ProductReview.product_name == slug)
        active = parse_boolean(is_active)
        if active is not None:
            query = query.filter(ProductReview.is_active == active)

        reviews, pagination = paginate(query, [ProductReview.created_at.desc(), ProductReview.id.desc()], page, limit)
        return {
            "message": "Review list fetched successfully",
            "data": serialize(ReviewResponse, reviews),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching reviews: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch review data")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create product review")
async def create_review(review_data: ReviewCreate, db: Session = Depends(get_db)):
    try:
        ensure_product_slug(db, review_data.product_id, review_data.product_name)

        review = ProductReview(**review_data.model_dump())
        db.add(review)
        db.commit()
        db.refresh(review)

        logger.info(f"Review {review.id} created for product {review.product_id} (rating {review.rating})")
        return {"message": "Review created successfully", "data": serialize_one(ReviewResponse, review)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating review: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create review")


@router.patch("", status_code=status.HTTP_200_OK, summary="Update product review")
@router.put("", status_code=status.HTTP_200_OK, summary="Update product review")
async def update_review(
    review_data: ReviewUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        review_id = resolve_record_id(id, {"id": review_data.id})
        if review_id is None:
            raise bad_request("Valid review id is required")

        review = db.query(ProductReview).filter(ProductReview.id == review_id).first()
        if not review:
            raise not_found("Review not found")

        updates = review_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "product_id" in updates or "product_name" in updates:
            ensure_product_slug(
                db,
                updates.get("product_id", review.product_id),
                updates.get("product_name", review.product_name),
            )

        for key, value in updates.items():
            setattr(review, key, value)

        db.commit()
        db.refresh(review)

        logger.info(f"Review {review_id} updated")
        return {"message": "Review updated successfully", "data": serialize_one(ReviewResponse, review)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating review: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update review")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete product review")
async def delete_review(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        review_id = resolve_record_id(id, body)
        if review_id is None:
            raise bad_request("Valid review id is required")

        review = db.query(ProductReview).filter(ProductReview.id == review_id).first()
        if not review:
            raise not_found("Review not found")

        db.delete(review)
        db.commit()

        logger.info(f"Review {review_id} deleted")
        return {"message": "Review deleted successfully", "id": review_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting review: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete review")
