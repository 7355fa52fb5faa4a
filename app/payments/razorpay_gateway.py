import hashlib
import hmac
import json
import logging
from typing import Mapping

from app.core.config import settings
from app.payments.amounts import (is_one_time, plan_amount, remaining_count,
                                  to_paise, total_count)
from app.payments.base import (CheckoutSession, InvalidSignatureError,
                               PaymentGateway, PaymentResult, lower_headers)

logger = logging.getLogger(__name__)

CHECKOUT_NAME = "Grow Bharat Vyapaar"


def sign(message: str | bytes, secret: str) -> str:
    if isinstance(message, str):
        message = message.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    return hmac.compare_digest(sign(f"{order_id}|{payment_id}", secret), signature or '')


def verify_subscription_signature(payment_id: str, subscription_id: str, signature: str, secret: str) -> bool:
    return hmac.compare_digest(sign(f"{payment_id}|{subscription_id}", secret), signature or '')


def verify_webhook_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    return hmac.compare_digest(sign(raw_body, secret), signature or '')


class RazorpayGateway(PaymentGateway):
    name = "razorpay"
    order_prefix = "RZP"

    def credentials(self):
        return {
            'RAZORPAY_KEY_ID': settings.razorpay_key_id,
            'RAZORPAY_KEY_SECRET': settings.razorpay_key_secret,
        }

    @property
    def _auth(self):
        return (settings.razorpay_key_id, settings.razorpay_key_secret)

    async def create_order(self, amount: float, receipt: str, notes: dict) -> dict:
        return await self._request(
            'POST',
            f"{settings.razorpay_api_url}/orders",
            auth=self._auth,
            json={
                'amount': to_paise(amount),
                'currency': 'INR',
                'receipt': receipt,
                'notes': notes,
            }
        )

    async def create_customer(self, customer: dict) -> dict:
        return await self._request(
            'POST',
            f"{settings.razorpay_api_url}/customers",
            auth=self._auth,
            json={
                'name': customer.get('name', 'Customer'),
                'email': customer.get('email', ''),
                'contact': customer.get('phone', ''),
                'fail_existing': 0,
            }
        )

    async def create_plan(self, package: dict) -> dict:
        period = 'monthly' if package.get('billing_cycle') == 'monthly' else 'yearly'
        return await self._request(
            'POST',
            f"{settings.razorpay_api_url}/plans",
            auth=self._auth,
            json={
                'period': period,
                'interval': 1,
                'item': {
                    'name': package['title'],
                    'amount': to_paise(plan_amount(package)),
                    'currency': 'INR',
                    'description': package.get('short_description') or f"{package['title']} - {period} plan",
                }
            }
        )

    async def create_subscription(self, plan_id: str, customer_id: str, package: dict, reference: str) -> dict:
        payload = {
            'plan_id': plan_id,
            'customer_id': customer_id,
            'total_count': total_count(package),
            'quantity': 1,
            'addons': [],
            'notes': {
                'package_id': package['id'],
                'package_name': package['title'],
                'reference': reference,
            }
        }
        setup_fee = float(package.get('setup_fee') or 0)
        if setup_fee > 0:
            payload['addons'].append({
                'item': {'name': 'Setup Fee', 'amount': to_paise(setup_fee), 'currency': 'INR'}
            })
        remaining = remaining_count(package)
        if remaining is not None:
            payload['remaining_count'] = remaining
        return await self._request(
            'POST', f"{settings.razorpay_api_url}/subscriptions", auth=self._auth, json=payload
        )

    async def create_checkout(self, reference, package, customer, amount, enable_auto_pay=False):
        self.ensure_configured()
        prefill = {
            'name': customer.get('name', ''),
            'email': customer.get('email', ''),
            'contact': customer.get('phone', ''),
        }
        notes = {'package_id': package['id'], 'package_name': package['title'], 'reference': reference}
        options = {
            'key': settings.razorpay_key_id,
            'currency': 'INR',
            'name': CHECKOUT_NAME,
            'description': package.get('short_description') or package['title'],
            'prefill': prefill,
            'notes': notes,
        }

        if enable_auto_pay and not is_one_time(package):
            razorpay_customer = await self.create_customer(customer)
            plan = await self.create_plan(package)
            subscription = await self.create_subscription(plan['id'], razorpay_customer['id'], package, reference)
            logger.info(f"razorpay: subscription created - {subscription['id']}")
            options['subscription_id'] = subscription['id']
            return CheckoutSession(
                gateway=self.name,
                order_id=subscription['id'],
                amount=amount,
                params=options,
                vendor_subscription_id=subscription['id']
            )

        order = await self.create_order(amount, reference, notes)
        logger.info(f"razorpay: order created - {order['id']}")
        options['amount'] = order.get('amount', to_paise(amount))
        options['order_id'] = order['id']
        return CheckoutSession(gateway=self.name, order_id=order['id'], amount=amount, params=options)

    async def verify_callback(self, payload):
        payment_id = payload.get('razorpay_payment_id')
        signature = payload.get('razorpay_signature')
        subscription_id = payload.get('razorpay_subscription_id')
        if subscription_id:
            valid = verify_subscription_signature(payment_id or '', subscription_id, signature, settings.razorpay_key_secret)
            order_id = subscription_id
        else:
            order_id = payload.get('razorpay_order_id')
            valid = verify_payment_signature(order_id or '', payment_id or '', signature, settings.razorpay_key_secret)

        if not payment_id or not valid:
            raise InvalidSignatureError(self.name, "Invalid Razorpay payment signature")
        return PaymentResult(
            gateway=self.name,
            order_id=order_id,
            success=True,
            payment_id=payment_id,
            vendor_subscription_id=subscription_id,
            raw=payload
        )

    def parse_webhook(self, headers: Mapping[str, str], raw_body: bytes) -> PaymentResult:
        signature = lower_headers(headers).get('x-razorpay-signature', '')
        secret = settings.razorpay_webhook_secret or settings.razorpay_key_secret
        if not secret or not verify_webhook_signature(raw_body, signature, secret):
            raise InvalidSignatureError(self.name, "Invalid Razorpay webhook signature")

        payload = json.loads(raw_body)
        event = payload.get('event', '')
        body = payload.get('payload', {})

        if event.startswith('subscription.'):
            entity = body.get('subscription', {}).get('entity', {})
            payment = body.get('payment', {}).get('entity', {})
            return PaymentResult(
                gateway=self.name,
                order_id=entity.get('id'),
                success=event in ('subscription.activated', 'subscription.charged'),
                payment_id=payment.get('id'),
                event=event,
                vendor_subscription_id=entity.get('id'),
                raw=payload
            )

        payment = body.get('payment', {}).get('entity', {})
        order = body.get('order', {}).get('entity', {})
        amount = payment.get('amount', order.get('amount_paid'))
        return PaymentResult(
            gateway=self.name,
            order_id=payment.get('order_id') or order.get('id'),
            success=event in ('payment.captured', 'order.paid'),
            payment_id=payment.get('id'),
            amount=amount / 100 if amount is not None else None,
            failure_reason=payment.get('error_description') if event == 'payment.failed' else None,
            event=event,
            raw=payload
        )
