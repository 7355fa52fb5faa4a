import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.payment_order import PaymentOrder, PaymentOrderStatus
from app.payments.base import InvalidSignatureError, PaymentGatewayError, PaymentResult
from app.payments.registry import get_gateway
from app.services.analytics_service import AnalyticsService
from app.services.payment_service import PaymentService
from app.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter()

WEBHOOK_GATEWAYS = ('razorpay', 'phonepe', 'instamojo', 'paytm')


def get_payment_service() -> PaymentService:
    return PaymentService()


def get_subscription_service() -> SubscriptionService:
    return SubscriptionService()


def _is_invoice_payment(result: PaymentResult) -> bool:
    if result.gateway != 'razorpay' or not (result.event or '').startswith('payment.'):
        return False
    payment = result.raw.get('payload', {}).get('payment', {}).get('entity', {})
    return bool(payment.get('invoice_id'))


def process_webhook_result(
    db: Session,
    result: PaymentResult,
    payment_service: PaymentService,
    subscription_service: SubscriptionService
) -> dict:
    """Route a verified webhook to the matching payment or subscription update"""
    if _is_invoice_payment(result):
        # Auto-pay invoice charges are handled through subscription.charged
        return {'action': 'ignored'}

    if result.event == 'subscription.cancelled':
        subscription_service.cancel_by_razorpay_id(db, result.vendor_subscription_id)
        return {'action': 'cancelled'}

    if result.event == 'subscription.charged':
        # The first charge activates the checkout; later ones extend the term
        order = db.query(PaymentOrder).filter(
            PaymentOrder.gateway == result.gateway,
            PaymentOrder.gateway_order_id == result.vendor_subscription_id
        ).first()
        if order is None or order.status == PaymentOrderStatus.COMPLETED.value:
            subscription_service.extend_subscription(db, result.vendor_subscription_id)
            return {'action': 'extended'}

    if result.event and result.event not in (
        'payment.captured', 'payment.failed', 'order.paid', 'subscription.activated', 'subscription.charged'
    ):
        return {'action': 'ignored'}

    order = payment_service.apply_result(db, result)
    return {'action': order['status']}


@router.post("/{gateway_name}")
async def handle_payment_webhook(
    gateway_name: str,
    request: Request,
    db: Session = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    """Server-to-server payment notifications.

    The signature is checked against the raw body before anything else: an
    invalid signature is answered with 400. Once it is valid the vendor always
    gets 200, even when processing fails, so it does not keep retrying.
    """
    logger.info(f"handle_payment_webhook: Entry - {gateway_name}")

    if gateway_name not in WEBHOOK_GATEWAYS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown webhook: {gateway_name}")

    raw_body = await request.body()
    gateway = get_gateway(gateway_name)
    try:
        result = gateway.parse_webhook(request.headers, raw_body)
    except InvalidSignatureError as e:
        logger.warning(f"handle_payment_webhook: Invalid signature - {gateway_name}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    except (ValueError, PaymentGatewayError) as e:
        logger.warning(f"handle_payment_webhook: Malformed payload - {gateway_name}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed webhook payload")

    try:
        outcome = process_webhook_result(db, result, payment_service, subscription_service)
        logger.info(f"handle_payment_webhook: Success - {gateway_name}, order: {result.order_id}, {outcome['action']}")
        return {'status': 'ok', 'processed': True, **outcome}
    except Exception as e:
        AnalyticsService().log_payment_error(
            gateway=gateway_name,
            error=str(e),
            order_id=result.order_id,
            details={'event': result.event}
        )
        logger.error(f"handle_payment_webhook: Failure - {gateway_name}: {e}")
        return {'status': 'ok', 'processed': False, 'error': str(e)}
