from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, Text, JSON
from app.core.database import Base
from datetime import datetime


class SubscriptionPackage(Base):
    __tablename__ = "subscription_packages"

    id = Column(String, primary_key=True, index=True)  # 'pkg_<epoch ms>' when generated
    title = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    monthly_price = Column(Float, nullable=True)
    setup_fee = Column(Float, default=0.0, nullable=False)
    duration_months = Column(Integer, default=12, nullable=False)
    short_description = Column(String, nullable=True)
    full_description = Column(Text, nullable=True)
    features = Column(JSON, nullable=False, default=list)
    popular = Column(Boolean, default=False, nullable=False)
    type = Column(String, default='Business', nullable=False, index=True)  # 'Business', 'Influencer'
    terms_and_conditions = Column(Text, nullable=True)
    payment_type = Column(String, default='recurring', nullable=False)  # 'recurring', 'one-time'
    billing_cycle = Column(String, nullable=True)  # 'monthly', 'yearly'; null for one-time
    advance_payment_months = Column(Integer, default=0, nullable=False)
    dashboard_sections = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
