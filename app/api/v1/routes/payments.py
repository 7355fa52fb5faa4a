import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_current_user, is_admin
from app.services.payment_service import PaymentService
from app.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)

# Gateways whose checkout posts a signed form straight back to us
FORM_CALLBACK_GATEWAYS = ('paytm', 'payu')


def get_payment_service() -> PaymentService:
    return PaymentService()


def get_user_service() -> UserService:
    return UserService()


class CheckoutRequest(BaseModel):
    package_id: str
    gateway: str
    enable_auto_pay: bool = False
    referral_id: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    gateway: str
    payload: Dict[str, Any]


class FailPaymentRequest(BaseModel):
    reason: Optional[str] = None


@router.post("/checkout")
async def start_checkout(
    request: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service),
    user_service: UserService = Depends(get_user_service)
):
    """
    Create the vendor order for a package and return what the checkout
    widget needs (options, token or redirect URL).
    """
    logger.info(f"start_checkout: Entry - user: {current_user['uid']}, gateway: {request.gateway}")

    try:
        user = user_service.get_or_create_user(db, current_user['uid'], current_user.get('email'), current_user.get('name'))
        payer = {
            'uid': user.id,
            'email': user.email,
            'name': user.name or current_user.get('name'),
            'phone': user.phone,
        }
        return await payment_service.start_checkout(
            db,
            payer,
            request.package_id,
            request.gateway,
            enable_auto_pay=request.enable_auto_pay,
            referral_id=request.referral_id
        )
    except Exception as e:
        logger.error(f"start_checkout: Failure - {e}")
        raise http_error(e)


@router.post("/verify")
async def verify_payment(
    request: VerifyPaymentRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """The checkout widget's success handler posts the vendor response here"""
    logger.info(f"verify_payment: Entry - user: {current_user['uid']}, gateway: {request.gateway}")

    try:
        return await payment_service.complete_payment(db, request.gateway, request.payload)
    except Exception as e:
        logger.error(f"verify_payment: Failure - {e}")
        raise http_error(e)


@router.post("/{gateway_name}/callback")
async def payment_callback(
    gateway_name: str,
    request: Request,
    db: Session = Depends(get_db),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """
    Browser form post from hosted checkouts (Paytm, PayU). The payload is
    signed by the vendor; the user is sent on to the site's result page.
    """
    logger.info(f"payment_callback: Entry - {gateway_name}")

    if gateway_name not in FORM_CALLBACK_GATEWAYS:
        raise ValueError(f"Unsupported callback gateway: {gateway_name}")

    form = await request.form()
    payload = {key: str(value) for key, value in form.items()}
    try:
        order = await payment_service.complete_payment(db, gateway_name, payload)
        page = 'payment-success' if order['status'] == 'completed' else 'payment-failed'
        return RedirectResponse(f"{settings.site_url}/{page}?order={order['id']}", status_code=303)
    except Exception as e:
        logger.error(f"payment_callback: Failure - {e}")
        return RedirectResponse(f"{settings.site_url}/payment-failed?gateway={gateway_name}", status_code=303)


@router.get("/orders")
async def list_my_orders(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    try:
        return {"orders": payment_service.list_orders(db, user_id=current_user['uid'])}
    except Exception as e:
        logger.error(f"list_my_orders: Failure - {e}")
        raise http_error(e)


@router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """Checkout status polling"""
    try:
        return payment_service.get_order(db, order_id, current_user['uid'], is_admin=is_admin(current_user, None))
    except Exception as e:
        logger.error(f"get_order: Failure - {e}")
        raise http_error(e)


@router.post("/orders/{order_id}/fail")
async def fail_order(
    order_id: str,
    request: Optional[FailPaymentRequest] = None,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    payment_service: PaymentService = Depends(get_payment_service)
):
    """The checkout was dismissed or the widget reported an error"""
    try:
        return payment_service.fail_payment(db, order_id, current_user['uid'], request.reason if request else None)
    except Exception as e:
        logger.error(f"fail_order: Failure - {e}")
        raise http_error(e)
