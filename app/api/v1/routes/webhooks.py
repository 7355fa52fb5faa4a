from fastapi import APIRouter
from app.webhooks.payment_webhooks import router as payment_webhook_router

router = APIRouter()
router.include_router(payment_webhook_router, prefix="", tags=["webhooks"])
