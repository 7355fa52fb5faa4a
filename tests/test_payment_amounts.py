"""
Tests for checkout amount calculation and request validation
"""

import pytest

from app.payments.amounts import (calculate_initial_payment, checkout_amount, plan_amount,
                                  remaining_count, to_paise, total_count)
from app.payments.validation import build_customer_data, validate_payment_request


def make_package(**overrides):
    package = {
        'id': 'pkg_1',
        'title': 'Business Pro',
        'price': 12000,
        'monthly_price': None,
        'setup_fee': 1000,
        'duration_months': 12,
        'payment_type': 'recurring',
        'billing_cycle': 'yearly',
        'advance_payment_months': 0,
    }
    package.update(overrides)
    return package


class TestInitialPayment:
    """Amount charged when the checkout opens"""

    def test_one_time_pays_price_plus_setup_fee(self):
        package = make_package(payment_type='one-time', price=5000, setup_fee=500)
        assert calculate_initial_payment(package) == 5500

    def test_recurring_without_advance_pays_setup_fee(self):
        assert calculate_initial_payment(make_package()) == 1000

    def test_recurring_monthly_advance(self):
        package = make_package(billing_cycle='monthly', monthly_price=999, advance_payment_months=3)
        assert calculate_initial_payment(package) == pytest.approx(1000 + 999 * 3)

    def test_recurring_yearly_advance_pays_price(self):
        package = make_package(advance_payment_months=12)
        assert calculate_initial_payment(package) == 13000

    def test_checkout_amount_falls_back_when_zero(self):
        package = make_package(setup_fee=0)
        assert calculate_initial_payment(package) == 0
        assert checkout_amount(package) == 12000


class TestVendorAmounts:
    """Conversions and counts sent to the gateways"""

    def test_to_paise_rounds_half_up(self):
        assert to_paise(999.995) == 100000
        assert to_paise(10.005) == 1001
        assert to_paise(1) == 100

    def test_plan_amount_monthly_uses_monthly_price(self):
        assert plan_amount(make_package(billing_cycle='monthly', monthly_price=1100)) == 1100

    def test_plan_amount_monthly_without_monthly_price(self):
        assert plan_amount(make_package(billing_cycle='monthly')) == 1000

    def test_plan_amount_yearly(self):
        assert plan_amount(make_package()) == 12000

    def test_total_count(self):
        assert total_count(make_package(billing_cycle='monthly', duration_months=6)) == 6
        assert total_count(make_package(duration_months=24)) == 2
        assert total_count(make_package(duration_months=18)) == 2

    def test_remaining_count(self):
        assert remaining_count(make_package()) is None
        assert remaining_count(make_package(billing_cycle='monthly', advance_payment_months=3)) == 9
        assert remaining_count(make_package(duration_months=36, advance_payment_months=12)) == 2


class TestValidatePaymentRequest:
    """Checkout preconditions, checked in order"""

    def test_requires_user(self):
        assert validate_payment_request(None, make_package()) == "User authentication required for payment"
        assert validate_payment_request({'email': 'a@b.c'}, make_package()) == "User authentication required for payment"

    def test_requires_package(self):
        assert validate_payment_request({'uid': 'u1'}, None) == "Package details are required"

    def test_requires_package_id(self):
        assert validate_payment_request({'uid': 'u1'}, make_package(id='')) == "Invalid package: missing ID"

    def test_requires_price(self):
        assert validate_payment_request({'uid': 'u1'}, make_package(price=None)) == "Invalid package: missing price"

    def test_requires_title(self):
        assert validate_payment_request({'uid': 'u1'}, make_package(title='')) == "Invalid package: missing title"

    def test_valid_request(self):
        assert validate_payment_request({'uid': 'u1'}, make_package()) is None


class TestBuildCustomerData:
    def test_name_defaults_to_email_local_part(self):
        customer = build_customer_data({'uid': 'u1', 'email': 'asha@example.test'})
        assert customer == {'id': 'u1', 'name': 'asha', 'email': 'asha@example.test'}

    def test_empty_fields_dropped(self):
        customer = build_customer_data({'uid': 'u1'})
        assert customer == {'id': 'u1', 'name': 'Customer'}
