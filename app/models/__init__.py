from app.models.user import User
from app.models.business import Business
from app.models.influencer import Influencer
from app.models.subscription_package import SubscriptionPackage
from app.models.subscription import UserSubscription, SubscriptionStatus, PaymentType, BillingCycle
from app.models.subscription_history import SubscriptionHistory
from app.models.payment_order import PaymentOrder, PaymentOrderStatus
from app.models.referral import Referral
from app.models.content import BlogPost, Testimonial, VideoSubmission

__all__ = [
    "User", "Business", "Influencer", "SubscriptionPackage",
    "UserSubscription", "SubscriptionStatus", "PaymentType", "BillingCycle",
    "SubscriptionHistory", "PaymentOrder", "PaymentOrderStatus", "Referral",
    "BlogPost", "Testimonial", "VideoSubmission",
]
