from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, JSON
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)  # Firebase UID
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default='user', index=True)  # 'user', 'business', 'influencer', 'staff', 'admin'
    is_admin = Column(Boolean, default=False, nullable=False)
    is_influencer = Column(Boolean, default=False, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    phone = Column(String, nullable=True)
    photo_url = Column(String, nullable=True)
    bio = Column(String, nullable=True)
    city = Column(String, nullable=True)
    country = Column(String, nullable=True)
    website = Column(String, nullable=True)

    # Business / influencer registration fields
    business_name = Column(String, nullable=True)
    business_category = Column(String, nullable=True)
    owner_name = Column(String, nullable=True)
    gst_number = Column(String, nullable=True)
    niche = Column(String, nullable=True)
    followers_count = Column(Integer, nullable=True)
    instagram_handle = Column(String, nullable=True)
    facebook_handle = Column(String, nullable=True)
    employee_code = Column(String, nullable=True)

    # Referral program
    referral_id = Column(String, unique=True, index=True, nullable=True)
    referred_by = Column(String, nullable=True, index=True)
    referral_count = Column(Integer, default=0, nullable=False)
    referral_earnings = Column(Float, default=0.0, nullable=False)

    # Denormalized view of the active subscription
    subscription_id = Column(String, nullable=True)
    subscription_status = Column(String, nullable=True)
    subscription_package = Column(String, nullable=True)
    subscription_assigned_at = Column(DateTime, nullable=True)
    subscription_cancelled_at = Column(DateTime, nullable=True)
    custom_dashboard_sections = Column(JSON, nullable=True)

    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    subscriptions = relationship("UserSubscription", back_populates="user", cascade="all, delete-orphan")
    payment_orders = relationship("PaymentOrder", back_populates="user", cascade="all, delete-orphan")
