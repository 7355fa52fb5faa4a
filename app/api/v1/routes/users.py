import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_current_user
from app.services.user_service import UserService, user_to_dict

router = APIRouter()
logger = logging.getLogger(__name__)


def get_user_service() -> UserService:
    return UserService()


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    business_name: Optional[str] = None
    business_category: Optional[str] = None
    owner_name: Optional[str] = None
    gst_number: Optional[str] = None
    niche: Optional[str] = None
    followers_count: Optional[int] = None
    instagram_handle: Optional[str] = None
    facebook_handle: Optional[str] = None
    custom_dashboard_sections: Optional[List[str]] = None


@router.get("/me")
async def get_me(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """Profile of the signed-in user; the row is created on first call"""
    try:
        user = user_service.get_or_create_user(db, current_user['uid'], current_user.get('email'), current_user.get('name'))
        return user_to_dict(user)
    except Exception as e:
        logger.error(f"get_me: Failure - {e}")
        raise http_error(e)


@router.put("/me")
async def update_me(
    request: UpdateProfileRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    try:
        user_service.get_or_create_user(db, current_user['uid'], current_user.get('email'), current_user.get('name'))
        return user_service.update_profile(db, current_user['uid'], request.model_dump(exclude_unset=True))
    except Exception as e:
        logger.error(f"update_me: Failure - {e}")
        raise http_error(e)
