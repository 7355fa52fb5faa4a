import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from app.models.subscription import (BillingCycle, PaymentType,
                                     SubscriptionStatus, UserSubscription)
from app.models.subscription_history import SubscriptionHistory
from app.models.user import User
from app.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

ACTIVE = SubscriptionStatus.ACTIVE.value
PAUSED = SubscriptionStatus.PAUSED.value


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def subscription_to_dict(subscription: UserSubscription) -> dict:
    return {
        'id': subscription.id,
        'user_id': subscription.user_id,
        'package_id': subscription.package_id,
        'package_name': subscription.package_name,
        'amount': float(subscription.amount or 0),
        'start_date': _iso(subscription.start_date),
        'end_date': _iso(subscription.end_date),
        'status': subscription.status,
        'payment_method': subscription.payment_method,
        'transaction_id': subscription.transaction_id,
        'payment_type': subscription.payment_type,
        'billing_cycle': subscription.billing_cycle,
        'signup_fee': float(subscription.signup_fee or 0),
        'recurring_amount': float(subscription.recurring_amount or 0),
        'advance_payment_months': subscription.advance_payment_months or 0,
        'next_billing_date': _iso(subscription.next_billing_date),
        'is_paused': bool(subscription.is_paused),
        'is_pausable': bool(subscription.is_pausable),
        'is_user_cancellable': bool(subscription.is_user_cancellable),
        'paused_at': _iso(subscription.paused_at),
        'paused_by': subscription.paused_by,
        'resumed_at': _iso(subscription.resumed_at),
        'resumed_by': subscription.resumed_by,
        'cancelled_at': _iso(subscription.cancelled_at),
        'cancel_reason': subscription.cancel_reason,
        'assigned_by': subscription.assigned_by,
        'assigned_at': _iso(subscription.assigned_at),
        'actual_start_date': _iso(subscription.actual_start_date),
        'razorpay_subscription_id': subscription.razorpay_subscription_id,
        'created_at': _iso(subscription.created_at),
    }


def subscription_end_date(start: datetime, package: dict, total_count: Optional[int] = None) -> datetime:
    """
    One-time packages run for duration_months. Recurring monthly plans run
    total_count months (default 12), recurring yearly plans total_count years
    (default 1).
    """
    if package.get('payment_type') == PaymentType.ONE_TIME.value:
        return start + relativedelta(months=int(package.get('duration_months') or 12))
    if package.get('billing_cycle') == BillingCycle.MONTHLY.value:
        return start + relativedelta(months=total_count or 12)
    return start + relativedelta(years=total_count or 1)


class SubscriptionService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    def _add_history(self, db: Session, subscription: UserSubscription, action: str,
                     from_package: str = None, to_package: str = None, details: dict = None):
        db.add(SubscriptionHistory(
            id=str(uuid.uuid4()),
            user_id=subscription.user_id,
            subscription_id=subscription.id,
            action=action,
            from_package=from_package,
            to_package=to_package,
            details=json.dumps(details) if details else None
        ))

    def _set_user_summary(self, db: Session, subscription: UserSubscription):
        user = db.query(User).filter(User.id == subscription.user_id).first()
        if user:
            user.subscription_id = subscription.id
            user.subscription_status = subscription.status
            user.subscription_package = subscription.package_id
            user.subscription_assigned_at = subscription.assigned_at or subscription.start_date
            user.updated_at = datetime.utcnow()

    def _clear_user_summary(self, db: Session, subscription: UserSubscription, status: str):
        user = db.query(User).filter(User.id == subscription.user_id).first()
        if user and user.subscription_id == subscription.id:
            user.subscription_id = None
            user.subscription_status = status
            user.subscription_package = None
            if status == SubscriptionStatus.CANCELLED.value:
                user.subscription_cancelled_at = datetime.utcnow()
            user.updated_at = datetime.utcnow()

    def _get(self, db: Session, subscription_id: str) -> UserSubscription:
        subscription = db.query(UserSubscription).filter(UserSubscription.id == subscription_id).first()
        if not subscription:
            raise ValueError(f"Subscription not found: {subscription_id}")
        return subscription

    def _supersede_active(self, db: Session, user_id: str, now: datetime) -> Optional[str]:
        """Cancel the user's active subscriptions; returns the package of the newest one"""
        existing = db.query(UserSubscription).filter(
            UserSubscription.user_id == user_id,
            UserSubscription.status == ACTIVE
        ).order_by(UserSubscription.created_at.desc()).all()

        for sub in existing:
            sub.status = SubscriptionStatus.CANCELLED.value
            sub.cancelled_at = now
            sub.cancel_reason = 'replaced'
            sub.updated_at = now
        return existing[0].package_id if existing else None

    def get_active_subscription(self, db: Session, user_id: str) -> Optional[dict]:
        self.logger.info(f"get_active_subscription: Entry - user: {user_id}")

        try:
            subscription = db.query(UserSubscription).filter(
                UserSubscription.user_id == user_id,
                UserSubscription.status == ACTIVE
            ).order_by(UserSubscription.created_at.desc()).first()

            self.logger.info(f"get_active_subscription: Success - user: {user_id}, found: {subscription is not None}")
            return subscription_to_dict(subscription) if subscription else None
        except Exception as e:
            self.analytics.log_failure(action='get_active_subscription', error=str(e), user_id=user_id)
            self.logger.error(f"get_active_subscription: Failure - {e}")
            raise

    def get_user_subscriptions(self, db: Session, user_id: str) -> list[dict]:
        """All subscriptions of a user, newest first"""
        self.logger.info(f"get_user_subscriptions: Entry - user: {user_id}")

        try:
            subscriptions = db.query(UserSubscription).filter(
                UserSubscription.user_id == user_id
            ).order_by(UserSubscription.created_at.desc()).all()

            self.logger.info(f"get_user_subscriptions: Success - user: {user_id}, count: {len(subscriptions)}")
            return [subscription_to_dict(s) for s in subscriptions]
        except Exception as e:
            self.analytics.log_failure(action='get_user_subscriptions', error=str(e), user_id=user_id)
            self.logger.error(f"get_user_subscriptions: Failure - {e}")
            raise

    def get_subscription(self, db: Session, subscription_id: str) -> dict:
        return subscription_to_dict(self._get(db, subscription_id))

    def list_subscriptions(self, db: Session, status: Optional[str] = None, limit: int = 100, offset: int = 0) -> list[dict]:
        self.logger.info(f"list_subscriptions: Entry - status: {status}")

        try:
            query = db.query(UserSubscription)
            if status:
                query = query.filter(UserSubscription.status == status)
            subscriptions = query.order_by(UserSubscription.created_at.desc()).offset(offset).limit(limit).all()

            self.logger.info(f"list_subscriptions: Success - count: {len(subscriptions)}")
            return [subscription_to_dict(s) for s in subscriptions]
        except Exception as e:
            self.analytics.log_failure(action='list_subscriptions', error=str(e))
            self.logger.error(f"list_subscriptions: Failure - {e}")
            raise

    def activate_subscription(
        self,
        db: Session,
        user_id: str,
        package: dict,
        payment_method: str,
        transaction_id: Optional[str] = None,
        razorpay_subscription_id: Optional[str] = None,
        total_count: Optional[int] = None,
        commit: bool = True
    ) -> UserSubscription:
        """Create the active subscription row for a paid package and point the user at it"""
        self.logger.info(f"activate_subscription: Entry - user: {user_id}, package: {package.get('id')}")

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise ValueError("User not found")

            now = datetime.utcnow()
            previous_package = self._supersede_active(db, user_id, now)

            recurring = package.get('payment_type') != PaymentType.ONE_TIME.value
            billing_cycle = package.get('billing_cycle') if recurring else None
            next_billing_date = None
            if recurring:
                period = relativedelta(months=1) if billing_cycle == BillingCycle.MONTHLY.value else relativedelta(years=1)
                next_billing_date = now + period

            subscription = UserSubscription(
                id=str(uuid.uuid4()),
                user_id=user_id,
                package_id=package['id'],
                package_name=package.get('title'),
                amount=float(package.get('price') or 0),
                start_date=now,
                end_date=subscription_end_date(now, package, total_count),
                status=ACTIVE,
                payment_method=payment_method,
                transaction_id=transaction_id,
                payment_type=PaymentType.RECURRING.value if recurring else PaymentType.ONE_TIME.value,
                billing_cycle=billing_cycle,
                signup_fee=float(package.get('setup_fee') or 0),
                recurring_amount=float(package.get('price') or 0) if recurring else 0.0,
                advance_payment_months=int(package.get('advance_payment_months') or 0),
                next_billing_date=next_billing_date,
                actual_start_date=now,
                is_paused=False,
                is_pausable=recurring,
                is_user_cancellable=recurring,
                assigned_by='system',
                assigned_at=now,
                razorpay_subscription_id=razorpay_subscription_id,
            )
            db.add(subscription)
            db.flush()

            self._set_user_summary(db, subscription)
            self._add_history(
                db, subscription,
                action='upgraded' if previous_package else 'created',
                from_package=previous_package,
                to_package=package['id'],
                details={'payment_method': payment_method, 'transaction_id': transaction_id}
            )

            if commit:
                db.commit()
                db.refresh(subscription)

            self.analytics.log_success(
                action='activate_subscription',
                user_id=user_id,
                parameters={'package_id': package['id'], 'payment_method': payment_method}
            )
            self.logger.info(f"activate_subscription: Success - user: {user_id}, subscription: {subscription.id}")
            return subscription
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='activate_subscription', error=str(e), user_id=user_id)
            self.logger.error(f"activate_subscription: Failure - {e}")
            raise

    def admin_assign_subscription(self, db: Session, user_id: str, data: dict, admin_id: str) -> dict:
        """Manually grant a package; defaults to a year-long active recurring subscription"""
        self.logger.info(f"admin_assign_subscription: Entry - user: {user_id}, admin: {admin_id}")

        try:
            user = db.query(User).filter(User.id == user_id).first()
            if not user:
                raise ValueError("User not found")
            if not data.get('package_id'):
                raise ValueError("package_id is required")

            now = datetime.utcnow()
            start_date = data.get('start_date') or now
            previous_package = self._supersede_active(db, user_id, now)

            subscription = UserSubscription(
                id=str(uuid.uuid4()),
                user_id=user_id,
                package_id=data['package_id'],
                package_name=data.get('package_name'),
                amount=float(data.get('amount') or 0),
                start_date=start_date,
                end_date=data.get('end_date') or start_date + timedelta(days=365),
                status=data.get('status') or ACTIVE,
                payment_method='admin',
                transaction_id=data.get('transaction_id'),
                payment_type=data.get('payment_type') or PaymentType.RECURRING.value,
                billing_cycle=data.get('billing_cycle'),
                signup_fee=float(data.get('signup_fee') or 0),
                recurring_amount=float(data.get('recurring_amount') or 0),
                advance_payment_months=int(data.get('advance_payment_months') or 0),
                actual_start_date=start_date,
                is_paused=False,
                is_pausable=data.get('is_pausable', True),
                is_user_cancellable=data.get('is_user_cancellable', True),
                assigned_by=admin_id,
                assigned_at=now,
            )
            db.add(subscription)
            db.flush()

            self._set_user_summary(db, subscription)
            self._add_history(
                db, subscription,
                action='upgraded' if previous_package else 'created',
                from_package=previous_package,
                to_package=subscription.package_id,
                details={'assigned_by': admin_id}
            )
            db.commit()
            db.refresh(subscription)

            self.analytics.log_success(
                action='admin_assign_subscription',
                user_id=user_id,
                parameters={'package_id': subscription.package_id, 'admin_id': admin_id}
            )
            self.logger.info(f"admin_assign_subscription: Success - subscription: {subscription.id}")
            return subscription_to_dict(subscription)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='admin_assign_subscription', error=str(e), user_id=user_id)
            self.logger.error(f"admin_assign_subscription: Failure - {e}")
            raise

    def cancel_subscription(
        self,
        db: Session,
        subscription_id: str,
        actor_id: str,
        is_admin: bool = False,
        reason: Optional[str] = None
    ) -> dict:
        """Users may only cancel their own, user-cancellable subscriptions"""
        self.logger.info(f"cancel_subscription: Entry - subscription: {subscription_id}, actor: {actor_id}")

        try:
            subscription = self._get(db, subscription_id)
            if not is_admin:
                if subscription.user_id != actor_id:
                    raise PermissionError("Not allowed to cancel this subscription")
                if not subscription.is_user_cancellable:
                    raise PermissionError("This subscription cannot be cancelled by the user")
            if subscription.status in (SubscriptionStatus.CANCELLED.value, SubscriptionStatus.EXPIRED.value):
                raise ValueError(f"Subscription is already {subscription.status}")

            now = datetime.utcnow()
            subscription.status = SubscriptionStatus.CANCELLED.value
            subscription.cancelled_at = now
            subscription.cancel_reason = 'admin_cancelled' if is_admin else (reason or 'user_cancelled')
            subscription.updated_at = now

            self._clear_user_summary(db, subscription, SubscriptionStatus.CANCELLED.value)
            self._add_history(
                db, subscription, action='cancelled',
                from_package=subscription.package_id,
                details={'cancelled_by': actor_id, 'reason': subscription.cancel_reason}
            )
            db.commit()
            db.refresh(subscription)

            self.analytics.log_success(
                action='cancel_subscription',
                user_id=subscription.user_id,
                parameters={'subscription_id': subscription_id, 'by_admin': is_admin}
            )
            self.logger.info(f"cancel_subscription: Success - {subscription_id}")
            return subscription_to_dict(subscription)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='cancel_subscription', error=str(e), user_id=actor_id)
            self.logger.error(f"cancel_subscription: Failure - {e}")
            raise

    def pause_subscription(self, db: Session, subscription_id: str, actor_id: str, is_admin: bool = False) -> dict:
        self.logger.info(f"pause_subscription: Entry - subscription: {subscription_id}")

        try:
            subscription = self._get(db, subscription_id)
            if not is_admin and subscription.user_id != actor_id:
                raise PermissionError("Not allowed to pause this subscription")
            if not subscription.is_pausable:
                raise ValueError("Subscription cannot be paused")
            if subscription.status != ACTIVE:
                raise ValueError("Only active subscriptions can be paused")

            now = datetime.utcnow()
            subscription.status = PAUSED
            subscription.is_paused = True
            subscription.paused_at = now
            subscription.paused_by = actor_id
            subscription.updated_at = now

            self._set_user_summary(db, subscription)
            self._add_history(db, subscription, action='paused', details={'paused_by': actor_id})
            db.commit()
            db.refresh(subscription)

            self.logger.info(f"pause_subscription: Success - {subscription_id}")
            return subscription_to_dict(subscription)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='pause_subscription', error=str(e), user_id=actor_id)
            self.logger.error(f"pause_subscription: Failure - {e}")
            raise

    def resume_subscription(self, db: Session, subscription_id: str, actor_id: str, is_admin: bool = False) -> dict:
        self.logger.info(f"resume_subscription: Entry - subscription: {subscription_id}")

        try:
            subscription = self._get(db, subscription_id)
            if not is_admin and subscription.user_id != actor_id:
                raise PermissionError("Not allowed to resume this subscription")
            if subscription.status != PAUSED:
                raise ValueError("Only paused subscriptions can be resumed")

            now = datetime.utcnow()
            subscription.status = ACTIVE
            subscription.is_paused = False
            subscription.resumed_at = now
            subscription.resumed_by = actor_id
            subscription.updated_at = now

            self._set_user_summary(db, subscription)
            self._add_history(db, subscription, action='resumed', details={'resumed_by': actor_id})
            db.commit()
            db.refresh(subscription)

            self.logger.info(f"resume_subscription: Success - {subscription_id}")
            return subscription_to_dict(subscription)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='resume_subscription', error=str(e), user_id=actor_id)
            self.logger.error(f"resume_subscription: Failure - {e}")
            raise

    def extend_subscription(self, db: Session, razorpay_subscription_id: str) -> dict:
        """A recurring charge went through: push end_date by one billing period"""
        self.logger.info(f"extend_subscription: Entry - {razorpay_subscription_id}")

        try:
            subscription = db.query(UserSubscription).filter(
                UserSubscription.razorpay_subscription_id == razorpay_subscription_id
            ).first()
            if not subscription:
                raise ValueError(f"Subscription not found: {razorpay_subscription_id}")

            now = datetime.utcnow()
            if subscription.billing_cycle == BillingCycle.MONTHLY.value:
                subscription.end_date = subscription.end_date + relativedelta(months=1)
                subscription.next_billing_date = now + relativedelta(months=1)
            else:
                subscription.end_date = subscription.end_date + relativedelta(years=1)
                subscription.next_billing_date = now + relativedelta(years=1)
            subscription.updated_at = now

            self._add_history(
                db, subscription, action='renewed',
                to_package=subscription.package_id,
                details={'end_date': subscription.end_date.isoformat()}
            )
            db.commit()
            db.refresh(subscription)

            self.logger.info(f"extend_subscription: Success - {subscription.id}, end: {subscription.end_date}")
            return subscription_to_dict(subscription)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(
                action='extend_subscription',
                error=str(e),
                parameters={'razorpay_subscription_id': razorpay_subscription_id}
            )
            self.logger.error(f"extend_subscription: Failure - {e}")
            raise

    def cancel_by_razorpay_id(self, db: Session, razorpay_subscription_id: str) -> dict:
        """Vendor-side cancellation; bypasses the user-cancellable check"""
        subscription = db.query(UserSubscription).filter(
            UserSubscription.razorpay_subscription_id == razorpay_subscription_id
        ).first()
        if not subscription:
            raise ValueError(f"Subscription not found: {razorpay_subscription_id}")
        return self.cancel_subscription(db, subscription.id, actor_id='razorpay', is_admin=True)

    def check_expired_subscriptions(self, db: Session) -> int:
        """Expire active subscriptions past their end_date; returns how many"""
        self.logger.info("check_expired_subscriptions: Entry")

        try:
            now = datetime.utcnow()
            expired_subs = db.query(UserSubscription).filter(
                UserSubscription.status == ACTIVE,
                UserSubscription.end_date < now
            ).all()

            for subscription in expired_subs:
                subscription.status = SubscriptionStatus.EXPIRED.value
                subscription.updated_at = now
                self._clear_user_summary(db, subscription, SubscriptionStatus.EXPIRED.value)
                self._add_history(
                    db, subscription, action='expired',
                    from_package=subscription.package_id,
                    details={'expired_at': now.isoformat(), 'end_date': subscription.end_date.isoformat()}
                )

            db.commit()

            self.analytics.log_success(action='check_expired_subscriptions', parameters={'expired_count': len(expired_subs)})
            self.logger.info(f"check_expired_subscriptions: Success - expired: {len(expired_subs)}")
            return len(expired_subs)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='check_expired_subscriptions', error=str(e))
            self.logger.error(f"check_expired_subscriptions: Failure - {e}")
            raise

    def get_subscription_history(self, db: Session, user_id: str) -> list[dict]:
        self.logger.info(f"get_subscription_history: Entry - user: {user_id}")

        try:
            history = db.query(SubscriptionHistory).filter(
                SubscriptionHistory.user_id == user_id
            ).order_by(SubscriptionHistory.created_at.desc()).all()

            result = [
                {
                    'id': entry.id,
                    'subscription_id': entry.subscription_id,
                    'action': entry.action,
                    'from_package': entry.from_package,
                    'to_package': entry.to_package,
                    'created_at': _iso(entry.created_at),
                    'details': json.loads(entry.details) if entry.details else None
                }
                for entry in history
            ]

            self.logger.info(f"get_subscription_history: Success - user: {user_id}, count: {len(result)}")
            return result
        except Exception as e:
            self.analytics.log_failure(action='get_subscription_history', error=str(e), user_id=user_id)
            self.logger.error(f"get_subscription_history: Failure - {e}")
            raise
