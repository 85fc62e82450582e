from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime
from sqlalchemy.sql import func

from storefront.database import Base


class Address(Base):
    """
    Customer shipping address. At most one row per user_id has is_default set.
    """
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    full_name = Column(String(150), nullable=False)
    mobile = Column(String(20), nullable=False)
    alternate_mobile = Column(String(20), nullable=True)
    address_line_1 = Column(String(255), nullable=False)
    address_line_2 = Column(String(255), nullable=True)
    landmark = Column(String(150), nullable=True)
    country_id = Column(Integer, ForeignKey("countries.id", ondelete="SET NULL"), nullable=True)
    state_id = Column(Integer, ForeignKey("states.id", ondelete="SET NULL"), nullable=True)
    city_id = Column(Integer, ForeignKey("cities.id", ondelete="SET NULL"), nullable=True)
    pincode_id = Column(Integer, ForeignKey("pincodes.id", ondelete="SET NULL"), nullable=True)
    postal_code = Column(String(20), nullable=False)
    address_type = Column(String(20), default="home", nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="active", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
