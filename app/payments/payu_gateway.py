import hashlib
import hmac
import logging

from app.core.config import settings
from app.payments.base import (CheckoutSession, InvalidSignatureError,
                               PaymentGateway, PaymentResult)

logger = logging.getLogger(__name__)

UDF_FIELDS = [f"udf{i}" for i in range(1, 11)]


def request_hash(params: dict, key: str, salt: str) -> str:
    """sha512(key|txnid|amount|productinfo|firstname|email|udf1..udf10|salt)"""
    fields = [key] + [str(params.get(name, '')) for name in ('txnid', 'amount', 'productinfo', 'firstname', 'email')]
    fields += [str(params.get(name, '')) for name in UDF_FIELDS]
    fields.append(salt)
    return hashlib.sha512('|'.join(fields).encode('utf-8')).hexdigest()


def response_hash(params: dict, key: str, salt: str) -> str:
    """sha512(salt|status||||||udf5|udf4|udf3|udf2|udf1|email|firstname|productinfo|amount|txnid|key)"""
    fields = [salt, str(params.get('status', ''))]
    fields += [str(params.get(name, '')) for name in reversed(UDF_FIELDS)]
    fields += [str(params.get(name, '')) for name in ('email', 'firstname', 'productinfo', 'amount', 'txnid')]
    fields.append(key)
    return hashlib.sha512('|'.join(fields).encode('utf-8')).hexdigest()


class PayUGateway(PaymentGateway):
    """PayU hosted checkout: the browser posts a signed form, no server-side order call"""
    name = "payu"
    order_prefix = "PAYU"

    def credentials(self):
        return {
            'PAYU_MERCHANT_KEY': settings.payu_merchant_key,
            'PAYU_MERCHANT_SALT': settings.payu_merchant_salt,
        }

    async def create_checkout(self, reference, package, customer, amount, enable_auto_pay=False):
        self.ensure_configured()
        params = {
            'key': settings.payu_merchant_key,
            'txnid': reference,
            'amount': f"{amount:.2f}",
            'productinfo': package['title'],
            'firstname': customer.get('name', ''),
            'email': customer.get('email', ''),
            'phone': customer.get('phone', ''),
            'surl': self.callback_url(),
            'furl': self.callback_url(),
            'udf1': package['id'],
            'udf2': customer.get('id', ''),
        }
        params['hash'] = request_hash(params, settings.payu_merchant_key, settings.payu_merchant_salt)
        logger.info(f"payu: checkout form signed - {reference}")
        return CheckoutSession(
            gateway=self.name,
            order_id=reference,
            amount=amount,
            redirect_url=settings.payu_checkout_url,
            params=params
        )

    async def verify_callback(self, payload):
        expected = response_hash(payload, settings.payu_merchant_key, settings.payu_merchant_salt)
        if not hmac.compare_digest(expected, str(payload.get('hash', ''))):
            raise InvalidSignatureError(self.name, "Invalid PayU response hash")

        success = payload.get('status') == 'success'
        amount = payload.get('amount')
        return PaymentResult(
            gateway=self.name,
            order_id=payload.get('txnid'),
            success=success,
            payment_id=payload.get('mihpayid'),
            amount=float(amount) if amount else None,
            failure_reason=None if success else (payload.get('error_Message') or payload.get('status')),
            raw={k: v for k, v in payload.items() if k != 'hash'}
        )
