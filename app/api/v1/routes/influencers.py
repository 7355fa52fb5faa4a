import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_current_user
from app.services.influencer_service import InfluencerService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_influencer_service() -> InfluencerService:
    return InfluencerService()


@router.get("")
async def list_influencers(
    category: Optional[str] = None,
    niche: Optional[str] = None,
    location: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    influencer_service: InfluencerService = Depends(get_influencer_service)
):
    """Public influencer directory, highest priority first"""
    try:
        influencers = influencer_service.list_influencers(
            db, category=category, niche=niche, location=location,
            featured=featured, search=search, limit=limit, offset=offset
        )
        return {"influencers": influencers, "count": len(influencers)}
    except Exception as e:
        logger.error(f"list_influencers: Failure - {e}")
        raise http_error(e)


@router.get("/me/stats")
async def get_my_stats(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
    influencer_service: InfluencerService = Depends(get_influencer_service)
):
    """Referral numbers for the signed-in influencer"""
    try:
        return influencer_service.get_influencer_stats(db, current_user['uid'])
    except Exception as e:
        logger.error(f"get_my_stats: Failure - {e}")
        raise http_error(e)


@router.get("/{influencer_id}")
async def get_influencer(
    influencer_id: int,
    db: Session = Depends(get_db),
    influencer_service: InfluencerService = Depends(get_influencer_service)
):
    try:
        return influencer_service.get_influencer(db, influencer_id)
    except Exception as e:
        logger.error(f"get_influencer: Failure - {e}")
        raise http_error(e)
