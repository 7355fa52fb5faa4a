from decimal import Decimal, ROUND_HALF_UP
import math


def _num(value) -> float:
    return float(value or 0)


def is_one_time(package: dict) -> bool:
    return package.get('payment_type') == 'one-time'


def calculate_initial_payment(package: dict) -> float:
    """
    Amount charged at checkout.

    One-time packages pay price + setup fee. Recurring packages pay the setup
    fee plus, when advance months are configured, the advance: monthly price
    times months for monthly billing, otherwise the package price.
    """
    price = _num(package.get('price'))
    setup_fee = _num(package.get('setup_fee'))

    if is_one_time(package):
        return price + setup_fee

    total = setup_fee
    advance_months = int(package.get('advance_payment_months') or 0)
    if advance_months > 0:
        if package.get('billing_cycle') == 'monthly' and package.get('monthly_price'):
            total += _num(package['monthly_price']) * advance_months
        else:
            total += price
    return total


def checkout_amount(package: dict) -> float:
    amount = calculate_initial_payment(package)
    if amount > 0:
        return amount
    return _num(package.get('price')) + _num(package.get('setup_fee'))


def to_paise(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def plan_amount(package: dict) -> float:
    """Per-period charge of a recurring plan"""
    if package.get('billing_cycle') == 'monthly':
        return _num(package.get('monthly_price')) or _num(package.get('price')) / 12
    return _num(package.get('price'))


def total_count(package: dict) -> int | None:
    months = int(package.get('duration_months') or 0)
    if not months:
        return None
    if package.get('billing_cycle') == 'monthly':
        return months
    return math.ceil(months / 12)


def remaining_count(package: dict) -> int | None:
    """Charges left after the advance paid at checkout"""
    count = total_count(package)
    advance_months = int(package.get('advance_payment_months') or 0)
    if count is None or advance_months <= 0:
        return None
    if package.get('billing_cycle') == 'monthly':
        return count - advance_months
    return count - math.ceil(advance_months / 12)
