import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_current_user
from app.services.referral_service import ReferralService, build_referral_link
from app.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_referral_service() -> ReferralService:
    return ReferralService()


def get_user_service() -> UserService:
    return UserService()


class ApplyReferralRequest(BaseModel):
    code: str


@router.get("/me")
async def get_my_referrals(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    referral_service: ReferralService = Depends(get_referral_service),
    user_service: UserService = Depends(get_user_service)
):
    """Referral code (created on first use), link, earnings and referred users"""
    try:
        user_service.get_or_create_user(db, current_user['uid'], current_user.get('email'), current_user.get('name'))
        referral_service.ensure_referral_id(db, current_user['uid'])
        return referral_service.get_referral_stats(db, current_user['uid'])
    except Exception as e:
        logger.error(f"get_my_referrals: Failure - {e}")
        raise http_error(e)


@router.post("/me/regenerate")
async def regenerate_referral_id(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    referral_service: ReferralService = Depends(get_referral_service)
):
    try:
        code = referral_service.ensure_referral_id(db, current_user['uid'], force_new=True)
        return {"referral_id": code, "referral_link": build_referral_link(code)}
    except Exception as e:
        logger.error(f"regenerate_referral_id: Failure - {e}")
        raise http_error(e)


@router.post("/apply")
async def apply_referral(
    request: ApplyReferralRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    referral_service: ReferralService = Depends(get_referral_service),
    user_service: UserService = Depends(get_user_service)
):
    """Called after registration with the ?ref= code from the signup link"""
    try:
        user_service.get_or_create_user(db, current_user['uid'], current_user.get('email'), current_user.get('name'))
        applied = referral_service.process_referral_signup(db, current_user['uid'], request.code)
        return {"applied": applied}
    except Exception as e:
        logger.error(f"apply_referral: Failure - {e}")
        raise http_error(e)


@router.get("/lookup/{code}")
async def lookup_referral(
    code: str,
    db: Session = Depends(get_db),
    referral_service: ReferralService = Depends(get_referral_service)
):
    """Public check of a referral code; only the referrer's name is exposed"""
    referrer = referral_service.get_user_by_referral_id(db, code)
    return {"valid": referrer is not None, "referrer_name": referrer['name'] if referrer else None}
