import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.cache import get_cached_listing, invalidate_listing, set_cached_listing
from app.models.business import Business
from app.services.analytics_service import AnalyticsService
from app.utils.formatting import parse_tag_list, split_tags

logger = logging.getLogger(__name__)

BUSINESS_FIELDS = (
    'name', 'category', 'description', 'address', 'city', 'phone', 'email', 'website', 'image',
    'rating', 'reviews', 'tags', 'featured', 'hours', 'latitude', 'longitude',
)


def business_to_dict(business: Business) -> dict:
    visible_tags, hidden_tag_count = split_tags(business.tags)
    return {
        'id': business.id,
        'name': business.name,
        'category': business.category,
        'description': business.description,
        'address': business.address,
        'city': business.city,
        'phone': business.phone,
        'email': business.email,
        'website': business.website,
        'image': business.image,
        'rating': business.rating,
        'reviews': business.reviews,
        'tags': business.tags or [],
        'visible_tags': visible_tags,
        'hidden_tag_count': hidden_tag_count,
        'featured': bool(business.featured),
        'hours': business.hours,
        'latitude': business.latitude,
        'longitude': business.longitude,
        'created_at': business.created_at.isoformat() if business.created_at else None,
    }


class BusinessService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    def list_businesses(
        self,
        db: Session,
        category: Optional[str] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> list[dict]:
        """Public directory listing ordered by name"""
        self.logger.info(f"list_businesses: Entry - category: {category}, featured: {featured}, search: {search}")

        cache_params = {'category': category, 'featured': featured, 'search': search, 'limit': limit, 'offset': offset}
        cached = get_cached_listing('businesses', cache_params)
        if cached is not None:
            return cached

        try:
            query = db.query(Business)
            if category:
                query = query.filter(Business.category == category)
            if featured is not None:
                query = query.filter(Business.featured == featured)
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(
                    Business.name.ilike(pattern),
                    Business.description.ilike(pattern),
                    Business.category.ilike(pattern),
                    Business.city.ilike(pattern),
                ))
            businesses = query.order_by(Business.name.asc()).offset(offset).limit(limit).all()
            result = [business_to_dict(b) for b in businesses]

            set_cached_listing('businesses', cache_params, result)
            self.logger.info(f"list_businesses: Success - count: {len(result)}")
            return result
        except Exception as e:
            self.analytics.log_failure(action='list_businesses', error=str(e))
            self.logger.error(f"list_businesses: Failure - {e}")
            raise

    def get_featured_businesses(self, db: Session, limit: int = 100) -> list[dict]:
        return self.list_businesses(db, featured=True, limit=limit)

    def get_businesses_by_category(self, db: Session, category: str) -> list[dict]:
        return self.list_businesses(db, category=category)

    def get_business(self, db: Session, business_id: int) -> dict:
        self.logger.info(f"get_business: Entry - {business_id}")

        business = db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise ValueError(f"Business not found: {business_id}")
        return business_to_dict(business)

    def save_business(self, db: Session, data: dict) -> dict:
        """Update when `id` is given, insert otherwise. Tags may be a comma-separated string"""
        business_id = data.get('id')
        self.logger.info(f"save_business: Entry - id: {business_id}")

        try:
            values = {field: data[field] for field in BUSINESS_FIELDS if field in data}
            if 'tags' in values:
                values['tags'] = parse_tag_list(values['tags'])

            if business_id:
                business = db.query(Business).filter(Business.id == business_id).first()
                if not business:
                    raise ValueError(f"Business not found: {business_id}")
                for key, value in values.items():
                    setattr(business, key, value)
                business.updated_at = datetime.utcnow()
            else:
                if not (values.get('name') or '').strip():
                    raise ValueError("Business name is required")
                business = Business(**values)
                db.add(business)

            db.commit()
            db.refresh(business)
            invalidate_listing('businesses')

            self.logger.info(f"save_business: Success - {business.id}")
            return business_to_dict(business)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='save_business', error=str(e), parameters={'business_id': business_id})
            self.logger.error(f"save_business: Failure - {e}")
            raise

    def delete_business(self, db: Session, business_id: int) -> bool:
        self.logger.info(f"delete_business: Entry - {business_id}")

        try:
            business = db.query(Business).filter(Business.id == business_id).first()
            if not business:
                raise ValueError(f"Business not found: {business_id}")
            db.delete(business)
            db.commit()
            invalidate_listing('businesses')

            self.logger.info(f"delete_business: Success - {business_id}")
            return True
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='delete_business', error=str(e), parameters={'business_id': business_id})
            self.logger.error(f"delete_business: Failure - {e}")
            raise
