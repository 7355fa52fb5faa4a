"""
Tests for payment webhook handling
"""

import json

import pytest
from unittest.mock import MagicMock, patch
from sqlalchemy.orm import Session

from app.core.config import settings
from app.payments.base import PaymentResult
from app.payments.razorpay_gateway import sign
from app.webhooks.payment_webhooks import (
    get_payment_service,
    get_subscription_service,
    process_webhook_result,
)


@pytest.fixture
def mock_db():
    """Create a mock database session"""
    return MagicMock(spec=Session)


@pytest.fixture
def payment_service():
    service = MagicMock()
    service.apply_result.return_value = {'id': 'ord_1', 'status': 'completed'}
    return service


@pytest.fixture
def subscription_service():
    return MagicMock()


@pytest.fixture
def webhook_client(client, payment_service, subscription_service):
    """API client with the webhook's services replaced by mocks"""
    from app.main import app

    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_subscription_service] = lambda: subscription_service
    return client


def _signed(payload: dict):
    raw = json.dumps(payload).encode()
    signature = sign(raw, settings.razorpay_webhook_secret)
    return raw, {'X-Razorpay-Signature': signature, 'Content-Type': 'application/json'}


def _captured_payload():
    return {
        'event': 'payment.captured',
        'payload': {'payment': {'entity': {'id': 'pay_1', 'order_id': 'order_abc', 'amount': 100000}}},
    }


class TestProcessWebhookResult:
    """Routing a verified result"""

    def test_payment_is_applied(self, mock_db, payment_service, subscription_service):
        result = PaymentResult(gateway='razorpay', order_id='order_abc', success=True, event='payment.captured')

        outcome = process_webhook_result(mock_db, result, payment_service, subscription_service)

        assert outcome == {'action': 'completed'}
        payment_service.apply_result.assert_called_once_with(mock_db, result)

    def test_gateway_without_event(self, mock_db, payment_service, subscription_service):
        result = PaymentResult(gateway='paytm', order_id='PAYTM_1', success=True)

        assert process_webhook_result(mock_db, result, payment_service, subscription_service) == {'action': 'completed'}

    def test_unhandled_event_ignored(self, mock_db, payment_service, subscription_service):
        result = PaymentResult(gateway='razorpay', order_id='order_abc', success=False, event='refund.created')

        assert process_webhook_result(mock_db, result, payment_service, subscription_service) == {'action': 'ignored'}
        payment_service.apply_result.assert_not_called()

    def test_invoice_payment_ignored(self, mock_db, payment_service, subscription_service):
        raw = _captured_payload()
        raw['payload']['payment']['entity']['invoice_id'] = 'inv_1'
        result = PaymentResult(
            gateway='razorpay', order_id='order_inv', success=True, event='payment.captured', raw=raw
        )

        assert process_webhook_result(mock_db, result, payment_service, subscription_service) == {'action': 'ignored'}
        payment_service.apply_result.assert_not_called()

    def test_subscription_cancelled(self, mock_db, payment_service, subscription_service):
        result = PaymentResult(
            gateway='razorpay', order_id='sub_1', success=False,
            event='subscription.cancelled', vendor_subscription_id='sub_1'
        )

        outcome = process_webhook_result(mock_db, result, payment_service, subscription_service)

        assert outcome == {'action': 'cancelled'}
        subscription_service.cancel_by_razorpay_id.assert_called_once_with(mock_db, 'sub_1')

    def test_renewal_charge_extends(self, mock_db, payment_service, subscription_service):
        completed = MagicMock()
        completed.status = 'completed'
        mock_db.query.return_value.filter.return_value.first.return_value = completed
        result = PaymentResult(
            gateway='razorpay', order_id='sub_1', success=True,
            event='subscription.charged', vendor_subscription_id='sub_1'
        )

        outcome = process_webhook_result(mock_db, result, payment_service, subscription_service)

        assert outcome == {'action': 'extended'}
        subscription_service.extend_subscription.assert_called_once_with(mock_db, 'sub_1')
        payment_service.apply_result.assert_not_called()

    def test_first_charge_activates(self, mock_db, payment_service, subscription_service):
        pending = MagicMock()
        pending.status = 'pending'
        mock_db.query.return_value.filter.return_value.first.return_value = pending
        result = PaymentResult(
            gateway='razorpay', order_id='sub_1', success=True,
            event='subscription.charged', vendor_subscription_id='sub_1'
        )

        outcome = process_webhook_result(mock_db, result, payment_service, subscription_service)

        assert outcome == {'action': 'completed'}
        subscription_service.extend_subscription.assert_not_called()


class TestWebhookEndpoint:
    """HTTP behaviour of /webhooks/{gateway}"""

    def test_valid_signature(self, webhook_client, payment_service):
        raw, headers = _signed(_captured_payload())

        response = webhook_client.post("/api/v1/webhooks/razorpay", content=raw, headers=headers)

        assert response.status_code == 200
        assert response.json() == {'status': 'ok', 'processed': True, 'action': 'completed'}
        result = payment_service.apply_result.call_args[0][1]
        assert result.order_id == 'order_abc'
        assert result.amount == 1000.0

    def test_invalid_signature(self, webhook_client, payment_service):
        raw, headers = _signed(_captured_payload())
        headers['X-Razorpay-Signature'] = 'forged'

        response = webhook_client.post("/api/v1/webhooks/razorpay", content=raw, headers=headers)

        assert response.status_code == 400
        payment_service.apply_result.assert_not_called()

    def test_malformed_body(self, webhook_client):
        raw = b"not json"
        signature = sign(raw, settings.razorpay_webhook_secret)

        response = webhook_client.post(
            "/api/v1/webhooks/razorpay", content=raw, headers={'X-Razorpay-Signature': signature}
        )

        assert response.status_code == 400

    def test_processing_failure_still_acknowledged(self, webhook_client, payment_service, no_analytics):
        payment_service.apply_result.side_effect = ValueError("Payment order not found: order_abc")
        raw, headers = _signed(_captured_payload())

        with patch("app.webhooks.payment_webhooks.AnalyticsService") as mock_analytics:
            response = webhook_client.post("/api/v1/webhooks/razorpay", content=raw, headers=headers)

        assert response.status_code == 200
        assert response.json()['processed'] is False
        mock_analytics.return_value.log_payment_error.assert_called_once()

    def test_invoice_payment_acknowledged_without_error(self, webhook_client, payment_service):
        payload = _captured_payload()
        payload['payload']['payment']['entity']['invoice_id'] = 'inv_1'
        raw, headers = _signed(payload)

        with patch("app.webhooks.payment_webhooks.AnalyticsService") as mock_analytics:
            response = webhook_client.post("/api/v1/webhooks/razorpay", content=raw, headers=headers)

        assert response.json() == {'status': 'ok', 'processed': True, 'action': 'ignored'}
        payment_service.apply_result.assert_not_called()
        mock_analytics.return_value.log_payment_error.assert_not_called()

    def test_unknown_gateway(self, webhook_client):
        response = webhook_client.post("/api/v1/webhooks/payu", content=b"{}")
        assert response.status_code == 404
