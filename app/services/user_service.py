import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.user import User
from app.services.analytics_service import AnalyticsService
from app.utils.formatting import display_role, normalize_role

logger = logging.getLogger(__name__)

# Fields a user may change on their own profile
PROFILE_FIELDS = (
    'name', 'first_name', 'last_name', 'phone', 'photo_url', 'bio', 'city', 'country', 'website',
    'business_name', 'business_category', 'owner_name', 'gst_number', 'niche', 'followers_count',
    'instagram_handle', 'facebook_handle', 'custom_dashboard_sections',
)


def user_to_dict(user: User) -> dict:
    role = normalize_role(user.role)
    return {
        'id': user.id,
        'email': user.email,
        'name': user.name,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'role': role,
        'role_display': display_role(role),
        'is_admin': bool(user.is_admin),
        'is_influencer': bool(user.is_influencer),
        'verified': bool(user.verified),
        'phone': user.phone,
        'photo_url': user.photo_url,
        'bio': user.bio,
        'city': user.city,
        'country': user.country,
        'website': user.website,
        'business_name': user.business_name,
        'business_category': user.business_category,
        'owner_name': user.owner_name,
        'gst_number': user.gst_number,
        'niche': user.niche,
        'followers_count': user.followers_count,
        'instagram_handle': user.instagram_handle,
        'facebook_handle': user.facebook_handle,
        'referral_id': user.referral_id,
        'referred_by': user.referred_by,
        'referral_count': user.referral_count or 0,
        'referral_earnings': float(user.referral_earnings or 0),
        'subscription_id': user.subscription_id,
        'subscription_status': user.subscription_status,
        'subscription_package': user.subscription_package,
        'custom_dashboard_sections': user.custom_dashboard_sections or [],
        'last_login': user.last_login.isoformat() if user.last_login else None,
        'created_at': user.created_at.isoformat() if user.created_at else None,
    }


class UserService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    def _get(self, db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ValueError(f"User not found: {user_id}")
        return user

    def get_or_create_user(self, db: Session, uid: str, email: Optional[str], name: Optional[str] = None) -> User:
        """Users are created on their first authenticated call"""
        self.logger.info(f"get_or_create_user: Entry - {uid}")

        try:
            now = datetime.utcnow()
            user = db.query(User).filter(User.id == uid).first()
            if user:
                user.last_login = now
            else:
                user = User(
                    id=uid,
                    email=email or f"{uid}@users.noreply",
                    name=name,
                    role='user',
                    last_login=now
                )
                db.add(user)
                self.analytics.log_event('user_created', user_id=uid)
            db.commit()
            db.refresh(user)

            self.logger.info(f"get_or_create_user: Success - {uid}")
            return user
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='get_or_create_user', error=str(e), user_id=uid)
            self.logger.error(f"get_or_create_user: Failure - {e}")
            raise

    def get_profile(self, db: Session, user_id: str) -> dict:
        return user_to_dict(self._get(db, user_id))

    def update_profile(self, db: Session, user_id: str, data: dict) -> dict:
        self.logger.info(f"update_profile: Entry - {user_id}")

        try:
            user = self._get(db, user_id)
            for field in PROFILE_FIELDS:
                if field in data:
                    setattr(user, field, data[field])
            user.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(user)

            self.logger.info(f"update_profile: Success - {user_id}")
            return user_to_dict(user)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='update_profile', error=str(e), user_id=user_id)
            self.logger.error(f"update_profile: Failure - {e}")
            raise

    def list_users(
        self,
        db: Session,
        role: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> list[dict]:
        self.logger.info(f"list_users: Entry - role: {role}, search: {search}")

        try:
            query = db.query(User)
            if role:
                query = query.filter(User.role == normalize_role(role))
            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(User.email.ilike(pattern), User.name.ilike(pattern)))
            users = query.order_by(User.created_at.desc()).offset(offset).limit(limit).all()

            self.logger.info(f"list_users: Success - count: {len(users)}")
            return [user_to_dict(u) for u in users]
        except Exception as e:
            self.analytics.log_failure(action='list_users', error=str(e))
            self.logger.error(f"list_users: Failure - {e}")
            raise

    def set_role(self, db: Session, user_id: str, role: str) -> dict:
        """Roles are stored lowercase; the admin role also sets is_admin"""
        self.logger.info(f"set_role: Entry - {user_id}, role: {role}")

        try:
            role = (role or '').strip().lower()
            if role != normalize_role(role):
                raise ValueError(f"Invalid role: {role}")

            user = self._get(db, user_id)
            user.role = role
            user.is_admin = role == 'admin'
            if role == 'influencer':
                user.is_influencer = True
            user.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(user)

            self.analytics.log_success(action='set_role', user_id=user_id, parameters={'role': role})
            self.logger.info(f"set_role: Success - {user_id}")
            return user_to_dict(user)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='set_role', error=str(e), user_id=user_id)
            self.logger.error(f"set_role: Failure - {e}")
            raise

    def set_influencer_status(self, db: Session, user_id: str, is_influencer: bool) -> dict:
        self.logger.info(f"set_influencer_status: Entry - {user_id}, flag: {is_influencer}")

        try:
            user = self._get(db, user_id)
            user.is_influencer = is_influencer
            user.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(user)

            self.logger.info(f"set_influencer_status: Success - {user_id}")
            return user_to_dict(user)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='set_influencer_status', error=str(e), user_id=user_id)
            self.logger.error(f"set_influencer_status: Failure - {e}")
            raise
