import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_current_user
from app.services.subscription_service import SubscriptionService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_subscription_service() -> SubscriptionService:
    """Dependency to get subscription service instance"""
    return SubscriptionService()


class CancelRequest(BaseModel):
    reason: Optional[str] = None


@router.get("/current")
async def get_current_subscription(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    """Active subscription of the signed-in user, or null"""
    try:
        return {"subscription": subscription_service.get_active_subscription(db, current_user['uid'])}
    except Exception as e:
        logger.error(f"get_current_subscription: Failure - {e}")
        raise http_error(e)


@router.get("")
async def get_my_subscriptions(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        return {"subscriptions": subscription_service.get_user_subscriptions(db, current_user['uid'])}
    except Exception as e:
        logger.error(f"get_my_subscriptions: Failure - {e}")
        raise http_error(e)


@router.get("/history")
async def get_subscription_history(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        return {"history": subscription_service.get_subscription_history(db, current_user['uid'])}
    except Exception as e:
        logger.error(f"get_subscription_history: Failure - {e}")
        raise http_error(e)


@router.post("/{subscription_id}/cancel")
async def cancel_subscription(
    subscription_id: str,
    request: Optional[CancelRequest] = None,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    """Cancel one of the user's own subscriptions (recurring packages only)"""
    logger.info(f"cancel_subscription: Entry - {subscription_id}, user: {current_user['uid']}")

    try:
        return subscription_service.cancel_subscription(
            db, subscription_id, actor_id=current_user['uid'], reason=request.reason if request else None
        )
    except Exception as e:
        logger.error(f"cancel_subscription: Failure - {e}")
        raise http_error(e)


@router.post("/{subscription_id}/pause")
async def pause_subscription(
    subscription_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        return subscription_service.pause_subscription(db, subscription_id, actor_id=current_user['uid'])
    except Exception as e:
        logger.error(f"pause_subscription: Failure - {e}")
        raise http_error(e)


@router.post("/{subscription_id}/resume")
async def resume_subscription(
    subscription_id: str,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    subscription_service: SubscriptionService = Depends(get_subscription_service)
):
    try:
        return subscription_service.resume_subscription(db, subscription_id, actor_id=current_user['uid'])
    except Exception as e:
        logger.error(f"resume_subscription: Failure - {e}")
        raise http_error(e)
