from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from storefront.database import Base


class Country(Base):
    """
    Top of the location hierarchy (Country -> State -> City -> Pincode).
    """
    __tablename__ = "countries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(120), unique=True, index=True, nullable=False)
    iso_code = Column(String(10), unique=True, nullable=True)
    phone_code = Column(String(10), nullable=True)
    status = Column(String(20), default="active", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
