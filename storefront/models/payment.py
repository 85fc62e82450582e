from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func

from storefront.database import Base


class PaymentGateway(Base):
    __tablename__ = "payment_gateways"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)  # e.g. Razorpay
    app_id = Column(String(255), nullable=True)  # public key id handed to the checkout widget
    secret_key = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
