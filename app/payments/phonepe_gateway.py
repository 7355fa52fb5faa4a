import base64
import hashlib
import hmac
import json
import logging
from typing import Mapping

from app.core.config import settings
from app.payments.amounts import to_paise
from app.payments.base import (CheckoutSession, InvalidSignatureError,
                               PaymentGateway, PaymentGatewayError,
                               PaymentResult, lower_headers)

logger = logging.getLogger(__name__)

PAY_ENDPOINT = "/pg/v1/pay"


def _checksum(message: str, salt_key: str, salt_index: str) -> str:
    return hashlib.sha256(f"{message}{salt_key}".encode('utf-8')).hexdigest() + "###" + salt_index


def pay_checksum(payload_b64: str, salt_key: str, salt_index: str) -> str:
    return _checksum(payload_b64 + PAY_ENDPOINT, salt_key, salt_index)


def status_checksum(merchant_id: str, transaction_id: str, salt_key: str, salt_index: str) -> str:
    return _checksum(f"/pg/v1/status/{merchant_id}/{transaction_id}", salt_key, salt_index)


def response_checksum(response_b64: str, salt_key: str, salt_index: str) -> str:
    return _checksum(response_b64, salt_key, salt_index)


class PhonePeGateway(PaymentGateway):
    name = "phonepe"
    order_prefix = "PP"

    def credentials(self):
        return {
            'PHONEPE_MERCHANT_ID': settings.phonepe_merchant_id,
            'PHONEPE_SALT_KEY': settings.phonepe_salt_key,
        }

    def build_pay_request(self, reference: str, customer: dict, amount: float) -> dict:
        payload = {
            'merchantId': settings.phonepe_merchant_id,
            'merchantTransactionId': reference,
            'merchantUserId': str(customer.get('id', reference))[:36],
            'amount': to_paise(amount),
            'redirectUrl': f"{settings.site_url}/payment-success?gateway={self.name}&txn={reference}",
            'redirectMode': 'REDIRECT',
            'callbackUrl': self.webhook_url(),
            'paymentInstrument': {'type': 'PAY_PAGE'},
        }
        if customer.get('phone'):
            payload['mobileNumber'] = customer['phone']
        return payload

    async def create_checkout(self, reference, package, customer, amount, enable_auto_pay=False):
        self.ensure_configured()
        payload = self.build_pay_request(reference, customer, amount)
        payload_b64 = base64.b64encode(json.dumps(payload).encode('utf-8')).decode('utf-8')

        data = await self._request(
            'POST',
            f"{settings.phonepe_api_url}{PAY_ENDPOINT}",
            json={'request': payload_b64},
            headers={
                'Content-Type': 'application/json',
                'X-VERIFY': pay_checksum(payload_b64, settings.phonepe_salt_key, settings.phonepe_salt_index),
            }
        )
        if not data.get('success'):
            raise PaymentGatewayError(self.name, data.get('message') or "PhonePe payment initiation failed", details=data)

        redirect_url = data.get('data', {}).get('instrumentResponse', {}).get('redirectInfo', {}).get('url')
        logger.info(f"phonepe: pay request created - {reference}")
        return CheckoutSession(
            gateway=self.name,
            order_id=reference,
            amount=amount,
            redirect_url=redirect_url,
            params={'merchantTransactionId': reference, 'redirectUrl': redirect_url}
        )

    def _result(self, decoded: dict) -> PaymentResult:
        data = decoded.get('data') or {}
        success = bool(decoded.get('success')) and data.get('state') == 'COMPLETED'
        amount = data.get('amount')
        return PaymentResult(
            gateway=self.name,
            order_id=data.get('merchantTransactionId'),
            success=success,
            payment_id=data.get('transactionId'),
            amount=amount / 100 if amount is not None else None,
            failure_reason=None if success else (decoded.get('message') or decoded.get('code')),
            raw=decoded
        )

    async def check_status(self, transaction_id: str) -> PaymentResult:
        self.ensure_configured()
        merchant_id = settings.phonepe_merchant_id
        data = await self._request(
            'GET',
            f"{settings.phonepe_api_url}/pg/v1/status/{merchant_id}/{transaction_id}",
            headers={
                'Content-Type': 'application/json',
                'X-VERIFY': status_checksum(merchant_id, transaction_id, settings.phonepe_salt_key, settings.phonepe_salt_index),
                'X-MERCHANT-ID': merchant_id,
            }
        )
        result = self._result(data)
        if result.order_id is None:
            result.order_id = transaction_id
        return result

    async def verify_callback(self, payload):
        """The browser redirect is unsigned, so the outcome comes from the status API"""
        transaction_id = payload.get('merchantTransactionId') or payload.get('transactionId')
        if not transaction_id:
            raise ValueError("merchantTransactionId is required")
        return await self.check_status(transaction_id)

    def parse_webhook(self, headers: Mapping[str, str], raw_body: bytes) -> PaymentResult:
        x_verify = lower_headers(headers).get('x-verify', '')
        body = json.loads(raw_body)
        response = body.get('response') if isinstance(body, dict) else None
        if not response or not settings.phonepe_salt_key:
            raise InvalidSignatureError(self.name, "Invalid PhonePe webhook")

        expected = response_checksum(response, settings.phonepe_salt_key, settings.phonepe_salt_index)
        if not hmac.compare_digest(expected, x_verify):
            raise InvalidSignatureError(self.name, "Invalid PhonePe webhook checksum")

        decoded = json.loads(base64.b64decode(response).decode('utf-8'))
        return self._result(decoded)
