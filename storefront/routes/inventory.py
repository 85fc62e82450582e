import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.products import Product
from storefront.schemas.products import InventoryUpdate, InventoryResponse
from storefront.core.errors import bad_request, not_found, server_error
from storefront.utils.pagination import paginate
from storefront.utils.parsing import parse_positive_int, resolve_record_id, status_filter
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@router.get("", status_code=status.HTTP_200_OK, summary="Get inventory")
async def get_inventory(
    id: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    category_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Stock view of products: identity, tax data and qty/sold_qty only."""
    try:
        if id is not None:
            product_id = parse_positive_int(id)
            product = db.query(Product).filter(Product.id == product_id).first() if product_id else None
            if not product:
                raise not_found("Inventory not found")
            return {"message": "Inventory fetched successfully", "data": serialize_one(InventoryResponse, product)}

        query = db.query(Product)
        if status_filter(status_value):
            query = query.filter(Product.status == status_value)
        parsed_category_id = parse_positive_int(category_id)
        if parsed_category_id:
            query = query.filter(Product.category_id == parsed_category_id)
        if search and search.strip():
            query = query.filter(Product.name.ilike(f"%{search.strip()}%"))

        products, pagination = paginate(query, [Product.created_at.desc(), Product.id.desc()], page, limit)
        return {
            "message": "Inventory list fetched successfully",
            "data": serialize(InventoryResponse, products),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching inventory: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch inventory data")


@router.put("", status_code=status.HTTP_200_OK, summary="Update stock levels")
@router.patch("", status_code=status.HTTP_200_OK, summary="Update stock levels")
async def update_inventory(
    inventory_data: InventoryUpdate,
    id: Optional[str] = Query(None),
    product_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        record_id = resolve_record_id(
            parse_positive_int(id) or parse_positive_int(product_id),
            {"id": inventory_data.id, "product_id": inventory_data.product_id},
            "id",
            "product_id",
        )
        if record_id is None:
            raise bad_request("Valid product id is required")

        product = db.query(Product).filter(Product.id == record_id).first()
        if not product:
            raise not_found("Inventory not found")

        updates = inventory_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        for key, value in updates.items():
            setattr(product, key, value)

        db.commit()
        db.refresh(product)

        logger.info(f"Inventory updated for product {record_id}: qty={product.qty}, sold_qty={product.sold_qty}")
        return {"message": "Inventory updated successfully", "data": serialize_one(InventoryResponse, product)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating inventory: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update inventory")
