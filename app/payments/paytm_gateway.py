import json
import logging
from typing import Mapping
from urllib.parse import parse_qsl

from app.core.config import settings
from app.payments.amounts import is_one_time
from app.payments.base import (CheckoutSession, InvalidSignatureError,
                               PaymentGateway, PaymentGatewayError,
                               PaymentResult)
from app.payments.paytm_checksum import generate_signature, verify_signature

logger = logging.getLogger(__name__)


class PaytmGateway(PaymentGateway):
    name = "paytm"
    order_prefix = "PAYTM"

    def credentials(self):
        return {
            'PAYTM_MID': settings.paytm_mid,
            'PAYTM_MERCHANT_KEY': settings.paytm_merchant_key,
        }

    async def initiate_transaction(self, body: dict) -> str:
        """Call initiateTransaction and return the txnToken"""
        body_json = json.dumps(body, separators=(',', ':'))
        signature = generate_signature(body_json, settings.paytm_merchant_key)
        content = f'{{"body":{body_json},"head":{{"signature":"{signature}"}}}}'

        data = await self._request(
            'POST',
            f"{settings.paytm_api_url}/theia/api/v1/initiateTransaction",
            params={'mid': settings.paytm_mid, 'orderId': body['orderId']},
            content=content,
            headers={'Content-Type': 'application/json'}
        )
        result = data.get('body', {})
        result_info = result.get('resultInfo', {})
        if result_info.get('resultStatus') != 'S' or not result.get('txnToken'):
            raise PaymentGatewayError(
                self.name,
                result_info.get('resultMsg') or "Failed to initiate Paytm transaction",
                details=data
            )
        return result['txnToken']

    async def create_checkout(self, reference, package, customer, amount, enable_auto_pay=False):
        self.ensure_configured()
        one_time = is_one_time(package)
        callback_url = self.callback_url()
        body = {
            'requestType': 'Payment',
            'mid': settings.paytm_mid,
            'websiteName': settings.paytm_website,
            'orderId': reference,
            'callbackUrl': callback_url,
            'txnAmount': {'value': f"{amount:.2f}", 'currency': 'INR'},
            'userInfo': {
                'custId': customer.get('id', reference),
                'email': customer.get('email', ''),
                'mobile': customer.get('phone', ''),
                'firstName': customer.get('name', ''),
            },
        }
        txn_token = await self.initiate_transaction(body)
        logger.info(f"paytm: transaction initiated - {reference}")

        params = {
            'mid': settings.paytm_mid,
            'orderId': reference,
            'txnToken': txn_token,
            'amount': f"{amount:.2f}",
            'currency': 'INR',
            'website': settings.paytm_website,
            'industryType': settings.paytm_industry_type,
            'channelId': settings.paytm_channel_id,
            'callbackUrl': callback_url,
            'isOneTime': one_time,
            'isSubscription': not one_time,
            'enableAutoPay': bool(enable_auto_pay and not one_time),
            'setupFee': float(package.get('setup_fee') or 0),
            'totalAmount': amount,
            'autoRefund': False,
            'isRefundable': False,
            'isNonRefundable': True,
            'refundPolicy': 'no_refunds',
            'transaction_id': reference,
        }
        return CheckoutSession(gateway=self.name, order_id=reference, amount=amount, params=params)

    def _result_from_form(self, form: dict) -> PaymentResult:
        checksum = form.get('CHECKSUMHASH')
        if not checksum or not verify_signature(form, settings.paytm_merchant_key, checksum):
            raise InvalidSignatureError(self.name, "Invalid Paytm checksum")

        success = form.get('STATUS') == 'TXN_SUCCESS'
        amount = form.get('TXNAMOUNT')
        return PaymentResult(
            gateway=self.name,
            order_id=form.get('ORDERID'),
            success=success,
            payment_id=form.get('TXNID'),
            amount=float(amount) if amount else None,
            failure_reason=None if success else form.get('RESPMSG'),
            raw={k: v for k, v in form.items() if k != 'CHECKSUMHASH'}
        )

    async def verify_callback(self, payload):
        return self._result_from_form(payload)

    def parse_webhook(self, headers: Mapping[str, str], raw_body: bytes) -> PaymentResult:
        form = dict(parse_qsl(raw_body.decode('utf-8'), keep_blank_values=True))
        return self._result_from_form(form)
