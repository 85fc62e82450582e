from sqlalchemy import Column, Integer, String, JSON, ForeignKey, DateTime
from sqlalchemy.sql import func

from storefront.database import Base


class ProductDetail(Base):
    """
    Long-form product page content, one row per product.
    """
    __tablename__ = "product_details"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    benefits = Column(JSON, default=list, nullable=False)  # [{img, heading, paragraph}]
    ingredients = Column(JSON, default=list, nullable=False)  # [{img, heading, paragraph}]
    usage = Column(JSON, default=list, nullable=False)  # [{heading, paragraph, protip: []}]
    img1 = Column(String(500), nullable=True)
    img2 = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
