import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.services.business_service import BusinessService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_business_service() -> BusinessService:
    return BusinessService()


@router.get("")
async def list_businesses(
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    business_service: BusinessService = Depends(get_business_service)
):
    """Public business directory"""
    try:
        businesses = business_service.list_businesses(
            db, category=category, featured=featured, search=search, limit=limit, offset=offset
        )
        return {"businesses": businesses, "count": len(businesses)}
    except Exception as e:
        logger.error(f"list_businesses: Failure - {e}")
        raise http_error(e)


@router.get("/featured")
async def get_featured_businesses(
    db: Session = Depends(get_db),
    business_service: BusinessService = Depends(get_business_service)
):
    try:
        return {"businesses": business_service.get_featured_businesses(db)}
    except Exception as e:
        logger.error(f"get_featured_businesses: Failure - {e}")
        raise http_error(e)


@router.get("/category/{category}")
async def get_businesses_by_category(
    category: str,
    db: Session = Depends(get_db),
    business_service: BusinessService = Depends(get_business_service)
):
    try:
        return {"businesses": business_service.get_businesses_by_category(db, category)}
    except Exception as e:
        logger.error(f"get_businesses_by_category: Failure - {e}")
        raise http_error(e)


@router.get("/{business_id}")
async def get_business(
    business_id: int,
    db: Session = Depends(get_db),
    business_service: BusinessService = Depends(get_business_service)
):
    try:
        return business_service.get_business(db, business_id)
    except Exception as e:
        logger.error(f"get_business: Failure - {e}")
        raise http_error(e)
