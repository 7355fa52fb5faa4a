import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.influencer import Influencer
from app.models.payment_order import PaymentOrder, PaymentOrderStatus
from app.models.subscription import SubscriptionStatus, UserSubscription
from app.models.user import User
from app.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    def get_dashboard_stats(self, db: Session) -> dict:
        """Counts for the back-office dashboard"""
        self.logger.info("get_dashboard_stats: Entry")

        try:
            users_by_role = {
                (role or 'user'): count
                for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all()
            }
            revenue = db.query(func.coalesce(func.sum(PaymentOrder.amount), 0.0)).filter(
                PaymentOrder.status == PaymentOrderStatus.COMPLETED.value
            ).scalar()

            stats = {
                'users': sum(users_by_role.values()),
                'users_by_role': users_by_role,
                'businesses': db.query(Business).count(),
                'influencers': db.query(Influencer).count(),
                'active_subscriptions': db.query(UserSubscription).filter(
                    UserSubscription.status == SubscriptionStatus.ACTIVE.value
                ).count(),
                'completed_payments': db.query(PaymentOrder).filter(
                    PaymentOrder.status == PaymentOrderStatus.COMPLETED.value
                ).count(),
                'revenue': float(revenue or 0),
            }
            self.logger.info("get_dashboard_stats: Success")
            return stats
        except Exception as e:
            self.analytics.log_failure(action='get_dashboard_stats', error=str(e))
            self.logger.error(f"get_dashboard_stats: Failure - {e}")
            raise
