from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime
import enum


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    TRIAL = "trial"
    PAUSED = "paused"


class PaymentType(str, enum.Enum):
    RECURRING = "recurring"
    ONE_TIME = "one-time"


class BillingCycle(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    package_id = Column(String, nullable=True, index=True)
    package_name = Column(String, nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    start_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    end_date = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=SubscriptionStatus.PENDING.value, index=True)
    payment_method = Column(String, nullable=True)  # gateway name, 'admin' for manual assignment
    transaction_id = Column(String, nullable=True, index=True)

    payment_type = Column(String, nullable=False, default=PaymentType.RECURRING.value)
    billing_cycle = Column(String, nullable=True)
    signup_fee = Column(Float, default=0.0)
    recurring_amount = Column(Float, default=0.0)
    advance_payment_months = Column(Integer, default=0)
    next_billing_date = Column(DateTime, nullable=True)
    actual_start_date = Column(DateTime, nullable=True)

    is_paused = Column(Boolean, default=False, nullable=False)
    is_pausable = Column(Boolean, default=True, nullable=False)
    is_user_cancellable = Column(Boolean, default=True, nullable=False)
    paused_at = Column(DateTime, nullable=True)
    paused_by = Column(String, nullable=True)
    resumed_at = Column(DateTime, nullable=True)
    resumed_by = Column(String, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String, nullable=True)
    assigned_by = Column(String, nullable=True)
    assigned_at = Column(DateTime, nullable=True)

    razorpay_subscription_id = Column(String, nullable=True, index=True)
    razorpay_order_id = Column(String, nullable=True)
    invoice_ids = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="subscriptions")
