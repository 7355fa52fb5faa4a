from sqlalchemy import Column, String, DateTime, Boolean, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class PaymentOrderStatus(str, enum.Enum):
    CREATED = "created"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentOrder(Base):
    """One checkout attempt against a payment gateway"""
    __tablename__ = "payment_orders"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(String, nullable=False, index=True)
    gateway = Column(String, nullable=False, index=True)  # 'razorpay', 'paytm', 'phonepe', 'instamojo', 'payu'
    gateway_order_id = Column(String, unique=True, nullable=False, index=True)
    gateway_payment_id = Column(String, nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="INR")
    status = Column(String, nullable=False, default=PaymentOrderStatus.CREATED.value, index=True)
    enable_auto_pay = Column(Boolean, default=False, nullable=False)
    referral_id = Column(String, nullable=True)
    subscription_id = Column(String, nullable=True)
    failure_reason = Column(String, nullable=True)
    raw_response = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="payment_orders")
