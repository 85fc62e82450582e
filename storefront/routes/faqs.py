import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.faqs import ProductFaq
from storefront.schemas.product_content import FaqCreate, FaqUpdate, FaqResponse
from storefront.services.catalog import ensure_product_slug
from storefront.core.errors import bad_request, not_found, server_error
from storefront.utils.pagination import paginate
from storefront.utils.parsing import normalize_text, parse_positive_int, read_json_body, resolve_record_id
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get("", status_code=status.HTTP_200_OK, summary="Get product FAQs")
async def get_faqs(
    id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    product_name: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """
    Get one FAQ by id, or a paginated list optionally narrowed to a product
    (by product_id or by product slug).
    """
    try:
        if id is not None:
            faq_id = parse_positive_int(id)
            faq = db.query(ProductFaq).filter(ProductFaq.id == faq_id).first() if faq_id else None
            if not faq:
                raise not_found("FAQ not found")
            return {"message": "FAQ fetched successfully", "data": serialize_one(FaqResponse, faq)}

        query = db.query(ProductFaq)
        parsed_product_id = parse_positive_int(product_id)
        if parsed_product_id:
            query = query.filter(ProductFaq.product_id == parsed_product_id)
        slug = normalize_text(product_name).lower()
        if slug:
            query = query.filter(ProductFaq.product_name == slug)

        faqs, pagination = paginate(query, [ProductFaq.created_at.desc(), ProductFaq.id.desc()], page, limit)
        return {
            "message": "FAQ list fetched successfully",
            "data": serialize(FaqResponse, faqs),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching FAQs: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch FAQ data")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create product FAQ")
async def create_faq(faq_data: FaqCreate, db: Session = Depends(get_db)):
    try:
        ensure_product_slug(db, faq_data.product_id, faq_data.product_name)

        faq = ProductFaq(**faq_data.model_dump())
        db.add(faq)
        db.commit()
        db.refresh(faq)

        logger.info(f"FAQ {faq.id} created for product {faq.product_id}")
        return {"message": "FAQ created successfully", "data": serialize_one(FaqResponse, faq)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating FAQ: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create FAQ")


@router.patch("", status_code=status.HTTP_200_OK, summary="Update product FAQ")
@router.put("", status_code=status.HTTP_200_OK, summary="Update product FAQ")
async def update_faq(
    faq_data: FaqUpdate,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        faq_id = resolve_record_id(id, {"id": faq_data.id})
        if faq_id is None:
            raise bad_request("Valid FAQ id is required")

        faq = db.query(ProductFaq).filter(ProductFaq.id == faq_id).first()
        if not faq:
            raise not_found("FAQ not found")

        updates = faq_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "product_id" in updates or "product_name" in updates:
            ensure_product_slug(
                db,
                updates.get("product_id", faq.product_id),
                updates.get("product_name", faq.product_name),
            )

        for key, value in updates.items():
            setattr(faq, key, value)

        db.commit()
        db.refresh(faq)

        logger.info(f"FAQ {faq_id} updated")
        return {"message": "FAQ updated successfully", "data": serialize_one(FaqResponse, faq)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating FAQ: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update FAQ")


@router.delete("", status_code=status.HTTP_200_OK, summary="Delete product FAQ")
async def delete_faq(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        body = await read_json_body(request)
        faq_id = resolve_record_id(id, body)
        if faq_id is None:
            raise bad_request("Valid FAQ id is required")

        faq = db.query(ProductFaq).filter(ProductFaq.id == faq_id).first()
        if not faq:
            raise not_found("FAQ not found")

        db.delete(faq)
        db.commit()

        logger.info(f"FAQ {faq_id} deleted")
        return {"message": "FAQ deleted successfully", "id": faq_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting FAQ: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete FAQ")
