from sqlalchemy import Column, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base
from datetime import datetime


class Referral(Base):
    __tablename__ = "referrals"

    id = Column(String, primary_key=True, index=True)
    referrer_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    referred_user_id = Column(String, nullable=True, index=True)
    subscription_id = Column(String, nullable=True)
    amount = Column(Float, nullable=False, default=0.0)
    earnings = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    referrer = relationship("User")
