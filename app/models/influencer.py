from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, Text, JSON
from app.core.database import Base
from datetime import datetime


class Influencer(Base):
    __tablename__ = "influencers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)
    niche = Column(String, nullable=True, index=True)
    category = Column(String, nullable=True, index=True)
    bio = Column(Text, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    website = Column(String, nullable=True)
    followers_count = Column(Integer, nullable=True)
    engagement_rate = Column(Float, nullable=True)
    instagram_handle = Column(String, nullable=True)
    facebook_handle = Column(String, nullable=True)
    youtube_handle = Column(String, nullable=True)
    twitter_handle = Column(String, nullable=True)
    linkedin_handle = Column(String, nullable=True)
    location = Column(String, nullable=True)
    city = Column(String, nullable=True, index=True)
    state = Column(String, nullable=True)
    country = Column(String, nullable=True)
    tags = Column(JSON, nullable=True)
    previous_brands = Column(JSON, nullable=True)
    featured = Column(Boolean, default=False, nullable=False, index=True)
    priority = Column(Integer, default=0, nullable=False)
    rating = Column(Float, nullable=True)
    reviews_count = Column(Integer, nullable=True)
    profile_image = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
