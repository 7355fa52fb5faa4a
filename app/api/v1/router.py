from fastapi import APIRouter
from app.api.v1.routes import (admin, businesses, content, influencers, packages, payments,
                               referrals, subscriptions, users, webhooks)

api_router = APIRouter()

api_router.include_router(businesses.router, prefix="/businesses", tags=["businesses"])
api_router.include_router(influencers.router, prefix="/influencers", tags=["influencers"])
api_router.include_router(packages.router, prefix="/packages", tags=["packages"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(referrals.router, prefix="/referrals", tags=["referrals"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(content.router, prefix="/content", tags=["content"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
