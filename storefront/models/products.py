from sqlalchemy import Column, Integer, String, Text, Float, Boolean, JSON, ForeignKey, DateTime
from sqlalchemy.sql import func

from storefront.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), index=True, nullable=False)
    slug = Column(String(200), unique=True, index=True, nullable=False)
    sku = Column(String(100), unique=True, index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    images = Column(JSON, default=list, nullable=False)  # list of image urls
    qty = Column(Integer, default=0, nullable=False)
    sold_qty = Column(Integer, default=0, nullable=False)
    description = Column(Text, nullable=True)
    weight = Column(String(50), nullable=True)
    length = Column(String(50), nullable=True)
    breadth = Column(String(50), nullable=True)
    height = Column(String(50), nullable=True)
    prise = Column(Float, nullable=True)
    offer_prise = Column(Float, nullable=True)
    tax = Column(Float, nullable=True)
    hsn = Column(String(50), nullable=True)
    seo_title = Column(String(255), nullable=True)
    seo_description = Column(Text, nullable=True)
    keywords = Column(JSON, default=list, nullable=False)
    qty_offers = Column(JSON, default=list, nullable=False)  # [{qty, price, label, label2?}]
    new_product = Column(Boolean, default=False, nullable=False)
    is_top = Column(Boolean, default=False, nullable=False)
    is_best = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="active", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
