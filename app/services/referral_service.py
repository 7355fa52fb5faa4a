import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.referral import Referral
from app.models.subscription import SubscriptionStatus, UserSubscription
from app.models.user import User
from app.services.analytics_service import AnalyticsService
from app.utils.ids import referral_code

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5


def build_referral_link(code: str) -> str:
    return f"{settings.site_url.rstrip('/')}/register?ref={code}"


class ReferralService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    def _unique_code(self, db: Session) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = referral_code()
            if not db.query(User).filter(User.referral_id == code).first():
                return code
        raise ValueError("Could not generate a unique referral id")

    def ensure_referral_id(self, db: Session, user_id: str, force_new: bool = False) -> str:
        """Return the user's referral code, creating one when missing (or when force_new)"""
        self.logger.info(f"ensure_referral_id: Entry - user: {user_id}, force_new: {force_new}")

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise ValueError("User not found")
            if user.referral_id and not force_new:
                return user.referral_id

            user.referral_id = self._unique_code(db)
            db.commit()

            self.logger.info(f"ensure_referral_id: Success - user: {user_id}, code: {user.referral_id}")
            return user.referral_id
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='ensure_referral_id', error=str(e), user_id=user_id)
            self.logger.error(f"ensure_referral_id: Failure - {e}")
            raise

    def get_user_by_referral_id(self, db: Session, code: str) -> Optional[dict]:
        if not code:
            return None
        user = db.query(User).filter(User.referral_id == code.strip().upper()).first()
        if not user:
            return None
        return {'id': user.id, 'name': user.name, 'email': user.email, 'referral_id': user.referral_id}

    def process_referral_signup(self, db: Session, new_user_id: str, code: str) -> bool:
        """Link a new user to their referrer; unknown codes and self-referrals are refused"""
        self.logger.info(f"process_referral_signup: Entry - user: {new_user_id}, code: {code}")

        try:
            referrer = self.get_user_by_referral_id(db, code)
            if not referrer or referrer['id'] == new_user_id:
                self.logger.info(f"process_referral_signup: Rejected - code: {code}")
                return False

            user = db.query(User).filter(User.id == new_user_id).first()
            if not user:
                raise ValueError("User not found")
            if user.referred_by:
                return False

            user.referred_by = referrer['id']
            db.commit()

            self.analytics.log_success(
                action='referral_signup',
                user_id=new_user_id,
                parameters={'referrer_id': referrer['id']}
            )
            self.logger.info(f"process_referral_signup: Success - referrer: {referrer['id']}")
            return True
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='process_referral_signup', error=str(e), user_id=new_user_id)
            self.logger.error(f"process_referral_signup: Failure - {e}")
            raise

    def record_referral(
        self,
        db: Session,
        referrer_id: str,
        amount: float,
        referred_user_id: Optional[str] = None,
        subscription_id: Optional[str] = None,
        commit: bool = True
    ) -> dict:
        """Credit the referrer with the commission on a paid amount"""
        self.logger.info(f"record_referral: Entry - referrer: {referrer_id}, amount: {amount}")

        try:
            referrer = db.query(User).filter(User.id == referrer_id).first()
            if not referrer:
                raise ValueError("Referrer not found")

            earnings = round(float(amount) * settings.referral_commission_rate, 2)
            referral = Referral(
                id=str(uuid.uuid4()),
                referrer_id=referrer_id,
                referred_user_id=referred_user_id,
                subscription_id=subscription_id,
                amount=float(amount),
                earnings=earnings
            )
            db.add(referral)
            referrer.referral_count = (referrer.referral_count or 0) + 1
            referrer.referral_earnings = (referrer.referral_earnings or 0.0) + earnings

            if commit:
                db.commit()

            self.analytics.log_success(
                action='record_referral',
                user_id=referrer_id,
                parameters={'amount': amount, 'earnings': earnings}
            )
            self.logger.info(f"record_referral: Success - referrer: {referrer_id}, earnings: {earnings}")
            return {'id': referral.id, 'referrer_id': referrer_id, 'amount': float(amount), 'earnings': earnings}
        except Exception as e:
            if commit:
                db.rollback()
            self.analytics.log_failure(action='record_referral', error=str(e), user_id=referrer_id)
            self.logger.error(f"record_referral: Failure - {e}")
            raise

    def get_referral_stats(self, db: Session, user_id: str) -> dict:
        """Referral code, link, totals and the referred users' active subscriptions"""
        self.logger.info(f"get_referral_stats: Entry - user: {user_id}")

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise ValueError("User not found")

            referred_ids = [row.id for row in db.query(User.id).filter(User.referred_by == user_id).all()]
            active = 0
            if referred_ids:
                active = db.query(UserSubscription).filter(
                    UserSubscription.user_id.in_(referred_ids),
                    UserSubscription.status == SubscriptionStatus.ACTIVE.value
                ).count()

            referrals = db.query(Referral).filter(
                Referral.referrer_id == user_id
            ).order_by(Referral.created_at.desc()).all()

            stats = {
                'referral_id': user.referral_id,
                'referral_link': build_referral_link(user.referral_id) if user.referral_id else None,
                'referral_count': user.referral_count or 0,
                'referral_earnings': float(user.referral_earnings or 0),
                'referred_users': len(referred_ids),
                'active_referred_subscriptions': active,
                'referrals': [
                    {
                        'id': r.id,
                        'referred_user_id': r.referred_user_id,
                        'subscription_id': r.subscription_id,
                        'amount': float(r.amount),
                        'earnings': float(r.earnings),
                        'created_at': r.created_at.isoformat() if r.created_at else None,
                    }
                    for r in referrals
                ],
            }
            self.logger.info(f"get_referral_stats: Success - user: {user_id}")
            return stats
        except Exception as e:
            self.analytics.log_failure(action='get_referral_stats', error=str(e), user_id=user_id)
            self.logger.error(f"get_referral_stats: Failure - {e}")
            raise
