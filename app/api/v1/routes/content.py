import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_optional_user
from app.services.content_service import ContentService
from app.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_content_service() -> ContentService:
    return ContentService()


class VideoSubmissionRequest(BaseModel):
    name: str
    email: str
    contact_number: Optional[str] = None
    business_name: Optional[str] = None
    title: str
    description: str
    video_url: str
    video_type: str = 'reel'


@router.get("/posts")
async def list_posts(
    db: Session = Depends(get_db),
    content_service: ContentService = Depends(get_content_service)
):
    try:
        return {"posts": content_service.list_posts(db)}
    except Exception as e:
        logger.error(f"list_posts: Failure - {e}")
        raise http_error(e)


@router.get("/posts/{slug}")
async def get_post(
    slug: str,
    db: Session = Depends(get_db),
    content_service: ContentService = Depends(get_content_service)
):
    try:
        return content_service.get_post_by_slug(db, slug)
    except Exception as e:
        logger.error(f"get_post: Failure - {e}")
        raise http_error(e)


@router.get("/testimonials")
async def list_testimonials(
    featured: Optional[bool] = None,
    db: Session = Depends(get_db),
    content_service: ContentService = Depends(get_content_service)
):
    try:
        return {"testimonials": content_service.list_testimonials(db, featured=featured)}
    except Exception as e:
        logger.error(f"list_testimonials: Failure - {e}")
        raise http_error(e)


@router.post("/videos")
async def submit_video(
    request: VideoSubmissionRequest,
    db: Session = Depends(get_db),
    current_user: Optional[dict] = Depends(get_optional_user),
    content_service: ContentService = Depends(get_content_service)
):
    """Reel/testimonial submission; anonymous visitors may submit too"""
    try:
        user_id = None
        if current_user:
            user_id = UserService().get_or_create_user(
                db, current_user['uid'], current_user.get('email'), current_user.get('name')
            ).id
        return content_service.submit_video(db, request.model_dump(), user_id=user_id)
    except Exception as e:
        logger.error(f"submit_video: Failure - {e}")
        raise http_error(e)
