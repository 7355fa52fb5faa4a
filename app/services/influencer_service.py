import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.cache import get_cached_listing, invalidate_listing, set_cached_listing
from app.models.influencer import Influencer
from app.services.analytics_service import AnalyticsService
from app.services.referral_service import ReferralService
from app.utils.formatting import format_followers, parse_tag_list, split_tags

logger = logging.getLogger(__name__)

INFLUENCER_FIELDS = (
    'name', 'niche', 'category', 'bio', 'email', 'phone', 'website', 'followers_count', 'engagement_rate',
    'instagram_handle', 'facebook_handle', 'youtube_handle', 'twitter_handle', 'linkedin_handle',
    'location', 'city', 'state', 'country', 'tags', 'previous_brands', 'featured', 'priority',
    'rating', 'reviews_count', 'profile_image', 'cover_image',
)


def influencer_to_dict(influencer: Influencer) -> dict:
    visible_tags, hidden_tag_count = split_tags(influencer.tags)
    return {
        'id': influencer.id,
        'name': influencer.name,
        'niche': influencer.niche,
        'category': influencer.category,
        'bio': influencer.bio,
        'email': influencer.email,
        'phone': influencer.phone,
        'website': influencer.website,
        'followers_count': influencer.followers_count,
        'followers_display': format_followers(influencer.followers_count),
        'engagement_rate': influencer.engagement_rate,
        'instagram_handle': influencer.instagram_handle,
        'facebook_handle': influencer.facebook_handle,
        'youtube_handle': influencer.youtube_handle,
        'twitter_handle': influencer.twitter_handle,
        'linkedin_handle': influencer.linkedin_handle,
        'location': influencer.location,
        'city': influencer.city,
        'state': influencer.state,
        'country': influencer.country,
        'tags': influencer.tags or [],
        'visible_tags': visible_tags,
        'hidden_tag_count': hidden_tag_count,
        'previous_brands': influencer.previous_brands or [],
        'featured': bool(influencer.featured),
        'priority': influencer.priority or 0,
        'rating': influencer.rating,
        'reviews_count': influencer.reviews_count,
        'profile_image': influencer.profile_image,
        'cover_image': influencer.cover_image,
        'created_at': influencer.created_at.isoformat() if influencer.created_at else None,
    }


class InfluencerService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.referral_service = ReferralService()
        self.logger = logging.getLogger(__name__)

    def list_influencers(
        self,
        db: Session,
        category: Optional[str] = None,
        niche: Optional[str] = None,
        location: Optional[str] = None,
        featured: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> list[dict]:
        """Ordered by priority (highest first), then name"""
        self.logger.info(f"list_influencers: Entry - category: {category}, niche: {niche}, location: {location}")

        cache_params = {
            'category': category, 'niche': niche, 'location': location,
            'featured': featured, 'search': search, 'limit': limit, 'offset': offset,
        }
        cached = get_cached_listing('influencers', cache_params)
        if cached is not None:
            return cached

        try:
            query = db.query(Influencer)
            if category:
                query = query.filter(Influencer.category == category)
            if niche:
                query = query.filter(Influencer.niche == niche)
            if location:
                pattern = f"%{location}%"
                query = query.filter(or_(
                    Influencer.location.ilike(pattern),
                    Influencer.city.ilike(pattern),
                    Influencer.state.ilike(pattern),
                ))
            if featured is not None:
                query = query.filter(Influencer.featured == featured)
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(
                    Influencer.name.ilike(pattern),
                    Influencer.bio.ilike(pattern),
                    Influencer.niche.ilike(pattern),
                ))
            influencers = query.order_by(
                Influencer.priority.desc(), Influencer.name.asc()
            ).offset(offset).limit(limit).all()
            result = [influencer_to_dict(i) for i in influencers]

            set_cached_listing('influencers', cache_params, result)
            self.logger.info(f"list_influencers: Success - count: {len(result)}")
            return result
        except Exception as e:
            self.analytics.log_failure(action='list_influencers', error=str(e))
            self.logger.error(f"list_influencers: Failure - {e}")
            raise

    def get_influencer(self, db: Session, influencer_id: int) -> dict:
        influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
        if not influencer:
            raise ValueError(f"Influencer not found: {influencer_id}")
        return influencer_to_dict(influencer)

    def save_influencer(self, db: Session, data: dict) -> dict:
        influencer_id = data.get('id')
        self.logger.info(f"save_influencer: Entry - id: {influencer_id}")

        try:
            values = {field: data[field] for field in INFLUENCER_FIELDS if field in data}
            for list_field in ('tags', 'previous_brands'):
                if list_field in values:
                    values[list_field] = parse_tag_list(values[list_field])

            if influencer_id:
                influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
                if not influencer:
                    raise ValueError(f"Influencer not found: {influencer_id}")
                for key, value in values.items():
                    setattr(influencer, key, value)
                influencer.updated_at = datetime.utcnow()
            else:
                if not (values.get('name') or '').strip():
                    raise ValueError("Influencer name is required")
                influencer = Influencer(**values)
                db.add(influencer)

            db.commit()
            db.refresh(influencer)
            invalidate_listing('influencers')

            self.logger.info(f"save_influencer: Success - {influencer.id}")
            return influencer_to_dict(influencer)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='save_influencer', error=str(e), parameters={'influencer_id': influencer_id})
            self.logger.error(f"save_influencer: Failure - {e}")
            raise

    def delete_influencer(self, db: Session, influencer_id: int) -> bool:
        self.logger.info(f"delete_influencer: Entry - {influencer_id}")

        try:
            influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
            if not influencer:
                raise ValueError(f"Influencer not found: {influencer_id}")
            db.delete(influencer)
            db.commit()
            invalidate_listing('influencers')

            self.logger.info(f"delete_influencer: Success - {influencer_id}")
            return True
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='delete_influencer', error=str(e), parameters={'influencer_id': influencer_id})
            self.logger.error(f"delete_influencer: Failure - {e}")
            raise

    def get_influencer_stats(self, db: Session, user_id: str) -> dict:
        """Dashboard numbers for an influencer account: referrals, earnings, active referred subscriptions"""
        stats = self.referral_service.get_referral_stats(db, user_id)
        return {
            'referral_id': stats['referral_id'],
            'referral_link': stats['referral_link'],
            'referral_count': stats['referral_count'],
            'referral_earnings': stats['referral_earnings'],
            'active_referred_subscriptions': stats['active_referred_subscriptions'],
        }
