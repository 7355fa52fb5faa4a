import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.core.middleware import get_current_admin
from app.services.admin_service import AdminService
from app.services.business_service import BusinessService
from app.services.content_service import ContentService
from app.services.csv_import_service import CsvImportService
from app.services.influencer_service import InfluencerService
from app.services.package_service import PackageService
from app.services.payment_service import PaymentService
from app.services.subscription_service import SubscriptionService
from app.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


class SetRoleRequest(BaseModel):
    role: str


class SetInfluencerRequest(BaseModel):
    is_influencer: bool


class AssignSubscriptionRequest(BaseModel):
    package_id: str
    package_name: Optional[str] = None
    amount: float = 0.0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[str] = None
    payment_type: Optional[str] = None
    billing_cycle: Optional[str] = None
    signup_fee: float = 0.0
    recurring_amount: float = 0.0
    advance_payment_months: int = 0
    is_pausable: bool = True
    is_user_cancellable: bool = True
    transaction_id: Optional[str] = None


class PackageRequest(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    price: Optional[float] = None
    monthly_price: Optional[float] = None
    setup_fee: Optional[float] = None
    duration_months: Optional[int] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    features: Union[List[str], str, None] = None
    popular: bool = False
    type: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    payment_type: Optional[str] = None
    billing_cycle: Optional[str] = None
    advance_payment_months: Optional[int] = None
    dashboard_sections: Optional[List[str]] = None
    is_active: bool = True


class ReviewRequest(BaseModel):
    approved: bool


# Dashboard

@router.get("/stats")
async def get_dashboard_stats(
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return AdminService().get_dashboard_stats(db)
    except Exception as e:
        logger.error(f"get_dashboard_stats: Failure - {e}")
        raise http_error(e)


# Users

@router.get("/users")
async def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        users = UserService().list_users(db, role=role, search=search, limit=limit, offset=offset)
        return {"users": users, "count": len(users)}
    except Exception as e:
        logger.error(f"list_users: Failure - {e}")
        raise http_error(e)


@router.put("/users/{user_id}/role")
async def set_user_role(
    user_id: str,
    request: SetRoleRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    logger.info(f"set_user_role: Entry - target: {user_id}, role: {request.role}, admin: {admin['uid']}")
    try:
        return UserService().set_role(db, user_id, request.role)
    except Exception as e:
        logger.error(f"set_user_role: Failure - {e}")
        raise http_error(e)


@router.put("/users/{user_id}/influencer")
async def set_influencer_status(
    user_id: str,
    request: SetInfluencerRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return UserService().set_influencer_status(db, user_id, request.is_influencer)
    except Exception as e:
        logger.error(f"set_influencer_status: Failure - {e}")
        raise http_error(e)


# Subscriptions

@router.get("/subscriptions")
async def list_subscriptions(
    status: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"subscriptions": SubscriptionService().list_subscriptions(db, status=status, limit=limit, offset=offset)}
    except Exception as e:
        logger.error(f"list_subscriptions: Failure - {e}")
        raise http_error(e)


@router.get("/users/{user_id}/subscriptions")
async def get_user_subscriptions(
    user_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"subscriptions": SubscriptionService().get_user_subscriptions(db, user_id)}
    except Exception as e:
        logger.error(f"get_user_subscriptions: Failure - {e}")
        raise http_error(e)


@router.post("/users/{user_id}/subscriptions")
async def assign_subscription(
    user_id: str,
    request: AssignSubscriptionRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Grant a package without payment"""
    logger.info(f"assign_subscription: Entry - user: {user_id}, package: {request.package_id}, admin: {admin['uid']}")
    try:
        data = request.model_dump(exclude_none=True)
        return SubscriptionService().admin_assign_subscription(db, user_id, data, admin_id=admin['uid'])
    except Exception as e:
        logger.error(f"assign_subscription: Failure - {e}")
        raise http_error(e)


@router.post("/subscriptions/{subscription_id}/cancel")
async def cancel_subscription(
    subscription_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return SubscriptionService().cancel_subscription(db, subscription_id, actor_id=admin['uid'], is_admin=True)
    except Exception as e:
        logger.error(f"cancel_subscription: Failure - {e}")
        raise http_error(e)


@router.post("/subscriptions/{subscription_id}/pause")
async def pause_subscription(
    subscription_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return SubscriptionService().pause_subscription(db, subscription_id, actor_id=admin['uid'], is_admin=True)
    except Exception as e:
        logger.error(f"pause_subscription: Failure - {e}")
        raise http_error(e)


@router.post("/subscriptions/{subscription_id}/resume")
async def resume_subscription(
    subscription_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return SubscriptionService().resume_subscription(db, subscription_id, actor_id=admin['uid'], is_admin=True)
    except Exception as e:
        logger.error(f"resume_subscription: Failure - {e}")
        raise http_error(e)


@router.post("/subscriptions/expire")
async def expire_subscriptions(
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"expired": SubscriptionService().check_expired_subscriptions(db)}
    except Exception as e:
        logger.error(f"expire_subscriptions: Failure - {e}")
        raise http_error(e)


@router.get("/payments")
async def list_payments(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"orders": PaymentService().list_orders(db, status=status)}
    except Exception as e:
        logger.error(f"list_payments: Failure - {e}")
        raise http_error(e)


# Packages

@router.get("/packages")
async def list_all_packages(
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"packages": PackageService().get_all_packages(db, include_inactive=True)}
    except Exception as e:
        logger.error(f"list_all_packages: Failure - {e}")
        raise http_error(e)


@router.post("/packages")
async def save_package(
    request: PackageRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Create a package, or update it when `id` is given"""
    try:
        return PackageService().save_package(db, request.model_dump())
    except Exception as e:
        logger.error(f"save_package: Failure - {e}")
        raise http_error(e)


@router.delete("/packages/{package_id}")
async def delete_package(
    package_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"deleted": PackageService().delete_package(db, package_id)}
    except Exception as e:
        logger.error(f"delete_package: Failure - {e}")
        raise http_error(e)


# Directory

@router.post("/businesses")
async def save_business(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return BusinessService().save_business(db, data)
    except Exception as e:
        logger.error(f"save_business: Failure - {e}")
        raise http_error(e)


@router.delete("/businesses/{business_id}")
async def delete_business(
    business_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"deleted": BusinessService().delete_business(db, business_id)}
    except Exception as e:
        logger.error(f"delete_business: Failure - {e}")
        raise http_error(e)


@router.post("/businesses/import")
async def import_businesses(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """CSV upload, one business per row; bad rows are reported, not fatal"""
    try:
        content = (await file.read()).decode('utf-8')
        return CsvImportService().import_businesses(db, content)
    except UnicodeDecodeError:
        raise http_error(ValueError("CSV file must be UTF-8 encoded"))
    except Exception as e:
        logger.error(f"import_businesses: Failure - {e}")
        raise http_error(e)


@router.post("/influencers")
async def save_influencer(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return InfluencerService().save_influencer(db, data)
    except Exception as e:
        logger.error(f"save_influencer: Failure - {e}")
        raise http_error(e)


@router.delete("/influencers/{influencer_id}")
async def delete_influencer(
    influencer_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"deleted": InfluencerService().delete_influencer(db, influencer_id)}
    except Exception as e:
        logger.error(f"delete_influencer: Failure - {e}")
        raise http_error(e)


@router.post("/influencers/import")
async def import_influencers(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        content = (await file.read()).decode('utf-8')
        return CsvImportService().import_influencers(db, content)
    except UnicodeDecodeError:
        raise http_error(ValueError("CSV file must be UTF-8 encoded"))
    except Exception as e:
        logger.error(f"import_influencers: Failure - {e}")
        raise http_error(e)


# Content

@router.get("/posts")
async def list_all_posts(
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"posts": ContentService().list_posts(db, published_only=False)}
    except Exception as e:
        logger.error(f"list_all_posts: Failure - {e}")
        raise http_error(e)


@router.post("/posts")
async def save_post(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return ContentService().save_post(db, data)
    except Exception as e:
        logger.error(f"save_post: Failure - {e}")
        raise http_error(e)


@router.delete("/posts/{post_id}")
async def delete_post(
    post_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"deleted": ContentService().delete_post(db, post_id)}
    except Exception as e:
        logger.error(f"delete_post: Failure - {e}")
        raise http_error(e)


@router.post("/testimonials")
async def save_testimonial(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return ContentService().save_testimonial(db, data)
    except Exception as e:
        logger.error(f"save_testimonial: Failure - {e}")
        raise http_error(e)


@router.delete("/testimonials/{testimonial_id}")
async def delete_testimonial(
    testimonial_id: str,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"deleted": ContentService().delete_testimonial(db, testimonial_id)}
    except Exception as e:
        logger.error(f"delete_testimonial: Failure - {e}")
        raise http_error(e)


@router.get("/videos")
async def list_video_submissions(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return {"submissions": ContentService().list_submissions(db, status=status)}
    except Exception as e:
        logger.error(f"list_video_submissions: Failure - {e}")
        raise http_error(e)


@router.post("/videos/{submission_id}/review")
async def review_video_submission(
    submission_id: str,
    request: ReviewRequest,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    try:
        return ContentService().review_submission(db, submission_id, request.approved)
    except Exception as e:
        logger.error(f"review_video_submission: Failure - {e}")
        raise http_error(e)
