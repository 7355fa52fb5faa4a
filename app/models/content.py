from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, JSON, ForeignKey
from app.core.database import Base
from datetime import datetime


class BlogPost(Base):
    __tablename__ = "blog_posts"

    id = Column(String, primary_key=True, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=False)
    excerpt = Column(String, nullable=True)
    content = Column(Text, nullable=False, default="")
    author = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    tags = Column(JSON, nullable=True)
    published = Column(Boolean, default=False, nullable=False, index=True)
    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Testimonial(Base):
    __tablename__ = "testimonials"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=True)
    company = Column(String, nullable=True)
    quote = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    avatar = Column(String, nullable=True)
    featured = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class VideoSubmission(Base):
    __tablename__ = "video_submissions"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    contact_number = Column(String, nullable=True)
    business_name = Column(String, nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    video_url = Column(String, nullable=False)
    video_type = Column(String, nullable=False)  # 'reel', 'testimonial', 'promo'
    status = Column(String, nullable=False, default="pending", index=True)  # 'pending', 'approved', 'rejected'
    created_at = Column(DateTime, default=datetime.utcnow)
