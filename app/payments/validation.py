from typing import Optional


def validate_payment_request(user: Optional[dict], package: Optional[dict]) -> Optional[str]:
    """Return the first problem with a checkout request, or None when it can proceed"""
    if not user or not user.get('uid'):
        return "User authentication required for payment"
    if not package:
        return "Package details are required"
    if not package.get('id'):
        return "Invalid package: missing ID"
    if package.get('price') is None:
        return "Invalid package: missing price"
    if not package.get('title'):
        return "Invalid package: missing title"
    return None


def build_customer_data(user: dict) -> dict:
    email = user.get('email') or ''
    name = user.get('name') or (email.split('@')[0] if email else '') or 'Customer'
    customer = {
        'id': user.get('uid'),
        'name': name,
        'email': email,
        'phone': user.get('phone') or '',
    }
    return {key: value for key, value in customer.items() if value}
