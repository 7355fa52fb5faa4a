import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.cache import get_cache
from app.models.payment_order import PaymentOrder, PaymentOrderStatus
from app.models.user import User
from app.payments.amounts import checkout_amount, total_count
from app.payments.base import PaymentGatewayError, PaymentResult
from app.payments.registry import get_gateway
from app.payments.validation import build_customer_data, validate_payment_request
from app.services.analytics_service import AnalyticsService
from app.services.package_service import PackageService
from app.services.referral_service import ReferralService
from app.services.subscription_service import SubscriptionService
from app.utils.ids import order_id as new_order_id

logger = logging.getLogger(__name__)

COMPLETED = PaymentOrderStatus.COMPLETED.value
FAILED = PaymentOrderStatus.FAILED.value
AMOUNT_TOLERANCE = 0.01


def order_to_dict(order: PaymentOrder) -> dict:
    return {
        'id': order.id,
        'user_id': order.user_id,
        'package_id': order.package_id,
        'gateway': order.gateway,
        'gateway_order_id': order.gateway_order_id,
        'gateway_payment_id': order.gateway_payment_id,
        'amount': float(order.amount),
        'currency': order.currency,
        'status': order.status,
        'enable_auto_pay': bool(order.enable_auto_pay),
        'subscription_id': order.subscription_id,
        'failure_reason': order.failure_reason,
        'created_at': order.created_at.isoformat() if order.created_at else None,
    }


class PaymentService:
    """
    Checkout orchestration shared by every gateway: validate the request,
    compute the amount, create the vendor order, hand the widget parameters to
    the browser, then verify the callback or webhook and activate the
    subscription exactly once per gateway order.
    """

    def __init__(self):
        self.analytics = AnalyticsService()
        self.package_service = PackageService()
        self.subscription_service = SubscriptionService()
        self.referral_service = ReferralService()
        self.cache = get_cache()
        self.logger = logging.getLogger(__name__)

    async def start_checkout(
        self,
        db: Session,
        user: dict,
        package_id: str,
        gateway_name: str,
        enable_auto_pay: bool = False,
        referral_id: Optional[str] = None
    ) -> dict:
        user_id = (user or {}).get('uid')
        self.logger.info(f"start_checkout: Entry - user: {user_id}, package: {package_id}, gateway: {gateway_name}")

        try:
            package = self.package_service.get_package_by_id(db, package_id) if package_id else None
            error = validate_payment_request(user, package)
            if error:
                raise ValueError(error)

            gateway = get_gateway(gateway_name)
            amount = checkout_amount(package)
            session = await gateway.create_checkout(
                new_order_id(gateway.order_prefix),
                package,
                build_customer_data(user),
                amount,
                enable_auto_pay=enable_auto_pay
            )

            order = PaymentOrder(
                id=str(uuid.uuid4()),
                user_id=user_id,
                package_id=package['id'],
                gateway=gateway.name,
                gateway_order_id=session.order_id,
                amount=session.amount,
                currency=session.currency,
                status=PaymentOrderStatus.PENDING.value,
                enable_auto_pay=enable_auto_pay,
                referral_id=referral_id,
                raw_response=session.params
            )
            db.add(order)
            db.commit()

            self.analytics.log_event(
                'checkout_started',
                user_id=user_id,
                parameters={'gateway': gateway.name, 'package_id': package['id'], 'amount': amount}
            )
            self.logger.info(f"start_checkout: Success - order: {order.id}, gateway order: {session.order_id}")
            return {
                'order_id': order.id,
                'gateway': gateway.name,
                'gateway_order_id': session.order_id,
                'amount': session.amount,
                'currency': session.currency,
                'redirect_url': session.redirect_url,
                'params': session.params,
            }
        except PaymentGatewayError as e:
            db.rollback()
            self.analytics.log_payment_error(gateway=e.gateway, error=e.message, user_id=user_id, details=e.details)
            self.logger.error(f"start_checkout: Gateway failure - {e}")
            raise
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='start_checkout', error=str(e), user_id=user_id)
            self.logger.error(f"start_checkout: Failure - {e}")
            raise

    async def complete_payment(self, db: Session, gateway_name: str, payload: dict) -> dict:
        """Verify a browser callback and apply it"""
        self.logger.info(f"complete_payment: Entry - gateway: {gateway_name}")

        gateway = get_gateway(gateway_name)
        try:
            result = await gateway.verify_callback(payload)
        except PaymentGatewayError as e:
            self.analytics.log_payment_error(gateway=gateway.name, error=e.message, details=e.details)
            self.logger.error(f"complete_payment: Verification failure - {e}")
            raise
        return self.apply_result(db, result)

    def apply_result(self, db: Session, result: PaymentResult) -> dict:
        """
        Record a verified payment outcome.

        A completed order is returned as-is, so a callback and a webhook for the
        same payment activate the subscription only once. The Redis lock covers
        the window where both arrive together; without Redis the status check
        still holds within one database transaction.
        """
        self.logger.info(f"apply_result: Entry - {result.gateway}, order: {result.order_id}, success: {result.success}")

        if not result.order_id:
            raise ValueError("Payment result has no order id")

        lock_key = f"payment:{result.gateway}:{result.order_id}"
        locked = self.cache.acquire_lock(lock_key)
        if locked is False:
            raise ValueError(f"Payment {result.order_id} is already being processed")

        try:
            order = db.query(PaymentOrder).filter(
                PaymentOrder.gateway == result.gateway,
                PaymentOrder.gateway_order_id == result.order_id
            ).first()
            if not order:
                raise ValueError(f"Payment order not found: {result.order_id}")

            if order.status == COMPLETED:
                self.logger.info(f"apply_result: Already completed - {order.id}")
                return order_to_dict(order)

            if not result.success:
                return self._mark_failed(db, order, result.failure_reason or "Payment failed")

            if result.amount is not None and not order.enable_auto_pay and abs(result.amount - order.amount) > AMOUNT_TOLERANCE:
                return self._mark_failed(db, order, f"Amount mismatch: paid {result.amount}, expected {order.amount}")

            package = self.package_service.get_package_by_id(db, order.package_id)
            if not package:
                raise ValueError(f"Package not found: {order.package_id}")

            subscription = self.subscription_service.activate_subscription(
                db,
                order.user_id,
                package,
                payment_method=order.gateway,
                transaction_id=result.payment_id or order.gateway_order_id,
                razorpay_subscription_id=result.vendor_subscription_id,
                total_count=total_count(package) if result.vendor_subscription_id else None,
                commit=False
            )

            order.status = COMPLETED
            order.gateway_payment_id = result.payment_id
            order.subscription_id = subscription.id
            order.updated_at = datetime.utcnow()

            self._credit_referrer(db, order, subscription.id)

            db.commit()
            db.refresh(order)

            self.analytics.log_success(
                action='payment',
                user_id=order.user_id,
                parameters={'gateway': order.gateway, 'order_id': order.id, 'amount': float(order.amount)}
            )
            self.logger.info(f"apply_result: Success - order: {order.id}, subscription: {subscription.id}")
            return order_to_dict(order)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(
                action='apply_payment_result',
                error=str(e),
                parameters={'gateway': result.gateway, 'order_id': result.order_id}
            )
            self.logger.error(f"apply_result: Failure - {e}")
            raise
        finally:
            if locked:
                self.cache.release_lock(lock_key)

    def _referrer_for(self, db: Session, order: PaymentOrder) -> Optional[str]:
        """Referral code given at checkout, else whoever referred the payer at signup"""
        referrer_id = None
        if order.referral_id:
            referrer = self.referral_service.get_user_by_referral_id(db, order.referral_id)
            referrer_id = referrer['id'] if referrer else None
        if referrer_id is None:
            payer = db.query(User).filter(User.id == order.user_id).first()
            if payer and payer.referred_by:
                referrer = db.query(User).filter(User.id == payer.referred_by).first()
                referrer_id = referrer.id if referrer else None
        if referrer_id == order.user_id:
            return None
        return referrer_id

    def _credit_referrer(self, db: Session, order: PaymentOrder, subscription_id: str):
        """
        Record the referral commission inside a savepoint. A failed credit is
        logged and dropped; it never undoes the paid activation.
        """
        referrer_id = self._referrer_for(db, order)
        if not referrer_id:
            return

        savepoint = db.begin_nested()
        try:
            self.referral_service.record_referral(
                db,
                referrer_id,
                order.amount,
                referred_user_id=order.user_id,
                subscription_id=subscription_id,
                commit=False
            )
            savepoint.commit()
        except Exception as e:
            savepoint.rollback()
            self.analytics.log_payment_error(
                gateway=order.gateway,
                error=f"Referral credit failed: {e}",
                user_id=order.user_id,
                order_id=order.id
            )
            self.logger.warning(f"_credit_referrer: Failure - order: {order.id}, referrer: {referrer_id}: {e}")

    def _mark_failed(self, db: Session, order: PaymentOrder, reason: str) -> dict:
        order.status = FAILED
        order.failure_reason = reason
        order.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(order)

        self.analytics.log_payment_error(gateway=order.gateway, error=reason, user_id=order.user_id, order_id=order.id)
        self.logger.warning(f"payment failed - order: {order.id}, reason: {reason}")
        return order_to_dict(order)

    def fail_payment(self, db: Session, order_id: str, user_id: str, reason: str) -> dict:
        """The browser reports a dismissed or failed checkout"""
        self.logger.info(f"fail_payment: Entry - order: {order_id}")

        try:
            order = db.query(PaymentOrder).filter(PaymentOrder.id == order_id).first()
            if not order:
                raise ValueError(f"Payment order not found: {order_id}")
            if order.user_id != user_id:
                raise PermissionError("Not allowed to update this payment")
            if order.status == COMPLETED:
                raise ValueError("Payment is already completed")
            return self._mark_failed(db, order, reason or "Payment cancelled")
        except Exception as e:
            db.rollback()
            self.logger.error(f"fail_payment: Failure - {e}")
            raise

    def get_order(self, db: Session, order_id: str, user_id: str, is_admin: bool = False) -> dict:
        order = db.query(PaymentOrder).filter(PaymentOrder.id == order_id).first()
        if not order:
            raise ValueError(f"Payment order not found: {order_id}")
        if not is_admin and order.user_id != user_id:
            raise PermissionError("Not allowed to view this payment")
        return order_to_dict(order)

    def list_orders(self, db: Session, user_id: Optional[str] = None, status: Optional[str] = None) -> list[dict]:
        query = db.query(PaymentOrder)
        if user_id:
            query = query.filter(PaymentOrder.user_id == user_id)
        if status:
            query = query.filter(PaymentOrder.status == status)
        return [order_to_dict(o) for o in query.order_by(PaymentOrder.created_at.desc()).all()]
