from typing import Optional

from sqlalchemy.orm import Session

from storefront.core.errors import bad_request, not_found
from storefront.models.categories import Category
from storefront.models.product_details import ProductDetail
from storefront.models.products import Product


def ensure_product_slug(db: Session, product_id: int, product_name: str) -> Product:
    """FAQs and reviews name their product twice; the slug has to match the id."""
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise not_found("Product not found")
    if (product.slug or "").strip().lower() != product_name:
        raise bad_request("product_name must match selected product slug")
    return product


def get_active_product_by_slug(db: Session, slug: str) -> Optional[Product]:
    return (
        db.query(Product)
        .filter(Product.slug == slug.strip().lower(), Product.status == "active")
        .first()
    )


def get_product_page(db: Session, product: Product) -> dict:
    """The parts a storefront product page renders besides the product itself."""
    category = db.query(Category).filter(Category.id == product.category_id).first()
    details = db.query(ProductDetail).filter(ProductDetail.product_id == product.id).first()
    return {"category": category, "details": details}
