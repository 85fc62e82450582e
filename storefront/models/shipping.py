from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.sql import func

from storefront.database import Base


class ShippingRate(Base):
    """
    Flat shipping charge for an order subtotal band.
    A null pincode_id makes the rate apply to every pincode.
    """
    __tablename__ = "shipping_rates"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    pincode_id = Column(Integer, ForeignKey("pincodes.id", ondelete="SET NULL"), nullable=True, index=True)
    min_amount = Column(Float, default=0, nullable=False)
    max_amount = Column(Float, default=0, nullable=False)
    shipping_amount = Column(Float, default=0, nullable=False)
    status = Column(String(20), default="active", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
