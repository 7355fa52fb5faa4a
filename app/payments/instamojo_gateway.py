import hashlib
import hmac
import logging
from typing import Mapping
from urllib.parse import parse_qsl

from app.core.config import settings
from app.payments.base import (CheckoutSession, InvalidSignatureError,
                               PaymentGateway, PaymentGatewayError,
                               PaymentResult)

logger = logging.getLogger(__name__)


def webhook_mac(data: dict, salt: str) -> str:
    """HMAC-SHA1 over the values sorted case-insensitively by key, joined with '|'"""
    items = sorted(((k, v) for k, v in data.items() if k != 'mac'), key=lambda item: item[0].lower())
    message = '|'.join(str(value) for _, value in items)
    return hmac.new(salt.encode('utf-8'), message.encode('utf-8'), hashlib.sha1).hexdigest()


class InstamojoGateway(PaymentGateway):
    name = "instamojo"
    order_prefix = "IMJ"

    def credentials(self):
        return {
            'INSTAMOJO_API_KEY': settings.instamojo_api_key,
            'INSTAMOJO_AUTH_TOKEN': settings.instamojo_auth_token,
        }

    @property
    def _headers(self):
        return {
            'X-Api-Key': settings.instamojo_api_key,
            'X-Auth-Token': settings.instamojo_auth_token,
        }

    async def create_checkout(self, reference, package, customer, amount, enable_auto_pay=False):
        self.ensure_configured()
        payload = {
            'purpose': package.get('title') or "Subscription Payment",
            'amount': f"{amount:.2f}",
            'buyer_name': customer.get('name', ''),
            'email': customer.get('email', ''),
            'phone': customer.get('phone', ''),
            'redirect_url': f"{settings.site_url}/payment-success?gateway={self.name}",
            'send_email': True,
            'send_sms': True,
            'allow_repeated_payments': False,
        }
        if settings.instamojo_salt:
            payload['webhook'] = self.webhook_url()

        data = await self._request(
            'POST', f"{settings.instamojo_api_url}/payment_requests/", json=payload, headers=self._headers
        )
        payment_request = data.get('payment_request')
        if not payment_request:
            raise PaymentGatewayError(self.name, "Failed to create Instamojo payment request", details=data)

        logger.info(f"instamojo: payment request created - {payment_request['id']}")
        return CheckoutSession(
            gateway=self.name,
            order_id=payment_request['id'],
            amount=amount,
            redirect_url=payment_request.get('longurl'),
            params={
                'paymentUrl': payment_request.get('longurl'),
                'paymentRequestId': payment_request['id'],
                'amount': amount,
            }
        )

    async def verify_callback(self, payload):
        """Confirm the redirect parameters against the payment record"""
        self.ensure_configured()
        payment_id = payload.get('payment_id')
        request_id = payload.get('payment_request_id')
        if not payment_id or not request_id:
            raise ValueError("payment_id and payment_request_id are required")

        data = await self._request(
            'GET', f"{settings.instamojo_api_url}/payments/{payment_id}/", headers=self._headers
        )
        payment = data.get('payment', data)
        status = payment.get('status')
        success = status is True or status == 'Credit'
        amount = payment.get('amount')
        return PaymentResult(
            gateway=self.name,
            order_id=request_id,
            success=success,
            payment_id=payment_id,
            amount=float(amount) if amount else None,
            failure_reason=None if success else f"Payment status: {status}",
            raw=payment
        )

    def parse_webhook(self, headers: Mapping[str, str], raw_body: bytes) -> PaymentResult:
        form = dict(parse_qsl(raw_body.decode('utf-8'), keep_blank_values=True))
        mac = form.get('mac', '')
        if not settings.instamojo_salt or not hmac.compare_digest(webhook_mac(form, settings.instamojo_salt), mac):
            raise InvalidSignatureError(self.name, "Invalid Instamojo webhook MAC")

        success = form.get('status') == 'Credit'
        amount = form.get('amount')
        return PaymentResult(
            gateway=self.name,
            order_id=form.get('payment_request_id'),
            success=success,
            payment_id=form.get('payment_id'),
            amount=float(amount) if amount else None,
            failure_reason=None if success else f"Payment status: {form.get('status')}",
            raw={k: v for k, v in form.items() if k != 'mac'}
        )
