from app.payments.base import PaymentGateway
from app.payments.instamojo_gateway import InstamojoGateway
from app.payments.paytm_gateway import PaytmGateway
from app.payments.payu_gateway import PayUGateway
from app.payments.phonepe_gateway import PhonePeGateway
from app.payments.razorpay_gateway import RazorpayGateway

GATEWAYS = {
    gateway.name: gateway
    for gateway in (RazorpayGateway, PaytmGateway, PhonePeGateway, InstamojoGateway, PayUGateway)
}


def get_gateway(name: str) -> PaymentGateway:
    gateway_class = GATEWAYS.get((name or '').lower())
    if gateway_class is None:
        raise ValueError(f"Unsupported payment gateway: {name}")
    return gateway_class()
