import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.cache import get_cached_listing, invalidate_listing, set_cached_listing
from app.models.subscription import BillingCycle, PaymentType
from app.models.subscription_package import SubscriptionPackage
from app.services.analytics_service import AnalyticsService
from app.utils.ids import package_id as new_package_id

logger = logging.getLogger(__name__)

PAYMENT_TYPES = {p.value for p in PaymentType}
BILLING_CYCLES = {c.value for c in BillingCycle}
PACKAGE_TYPES = ('Business', 'Influencer')

# Starter catalogue for a fresh database
DEFAULT_PACKAGES = [
    {
        'id': 'business-basic',
        'title': 'Basic Business',
        'price': 9999,
        'setup_fee': 1999,
        'short_description': 'Essential tools for small businesses',
        'full_description': 'Get started with the essential tools every small business needs to establish an online presence.',
        'features': ['Business profile listing', 'Basic analytics', 'Email support'],
        'popular': False,
        'type': 'Business',
    },
    {
        'id': 'business-pro',
        'title': 'Business Pro',
        'price': 19999,
        'setup_fee': 999,
        'short_description': 'Advanced tools for growing businesses',
        'full_description': 'Comprehensive tools and features for businesses looking to expand their reach and customer base.',
        'features': ['Everything in Basic', 'Priority business listing', 'Advanced analytics',
                     'Priority support', 'Marketing toolkit'],
        'popular': True,
        'type': 'Business',
    },
    {
        'id': 'influencer-starter',
        'title': 'Influencer Starter',
        'price': 4999,
        'setup_fee': 999,
        'short_description': 'Essential tools for new influencers',
        'full_description': 'Get started with the essential tools every influencer needs to connect with businesses.',
        'features': ['Influencer profile listing', 'Basic analytics', 'Email support'],
        'popular': False,
        'type': 'Influencer',
    },
    {
        'id': 'influencer-pro',
        'title': 'Influencer Pro',
        'price': 9999,
        'setup_fee': 499,
        'short_description': 'Advanced tools for serious influencers',
        'full_description': 'Comprehensive tools and features for influencers looking to monetize their audience and grow their brand.',
        'features': ['Everything in Starter', 'Priority profile listing', 'Advanced analytics',
                     'Priority support', 'Brand partnership toolkit'],
        'popular': True,
        'type': 'Influencer',
    },
]


def parse_features(features) -> list[str]:
    """Features arrive as a list or as newline-separated text"""
    if features is None:
        return []
    if isinstance(features, str):
        features = features.split('\n')
    return [str(f).strip() for f in features if f is not None and str(f).strip()]


def package_to_dict(package: SubscriptionPackage) -> dict:
    payment_type = package.payment_type if package.payment_type in PAYMENT_TYPES else PaymentType.RECURRING.value
    billing_cycle = package.billing_cycle if package.billing_cycle in BILLING_CYCLES else None
    return {
        'id': package.id,
        'title': package.title,
        'price': float(package.price) if package.price is not None else None,
        'monthly_price': float(package.monthly_price) if package.monthly_price is not None else None,
        'setup_fee': float(package.setup_fee or 0),
        'duration_months': package.duration_months or 12,
        'short_description': package.short_description or '',
        'full_description': package.full_description or '',
        'features': list(package.features or []),
        'popular': bool(package.popular),
        'type': package.type or 'Business',
        'terms_and_conditions': package.terms_and_conditions or '',
        'payment_type': payment_type,
        'billing_cycle': billing_cycle,
        'advance_payment_months': package.advance_payment_months or 0,
        'dashboard_sections': list(package.dashboard_sections or []),
        'is_active': bool(package.is_active),
        'created_at': package.created_at.isoformat() if package.created_at else None,
        'updated_at': package.updated_at.isoformat() if package.updated_at else None,
    }


class PackageService:
    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    def get_all_packages(self, db: Session, include_inactive: bool = False) -> list[dict]:
        """All packages, cheapest first"""
        self.logger.info(f"get_all_packages: Entry - include_inactive: {include_inactive}")

        cache_params = {'include_inactive': include_inactive}
        cached = get_cached_listing('packages', cache_params)
        if cached is not None:
            return cached

        try:
            query = db.query(SubscriptionPackage)
            if not include_inactive:
                query = query.filter(SubscriptionPackage.is_active == True)
            packages = [package_to_dict(p) for p in query.order_by(SubscriptionPackage.price.asc()).all()]

            set_cached_listing('packages', cache_params, packages)
            self.logger.info(f"get_all_packages: Success - {len(packages)} packages")
            return packages
        except Exception as e:
            self.analytics.log_failure(action='get_all_packages', error=str(e))
            self.logger.error(f"get_all_packages: Failure - {e}")
            raise

    def get_packages_by_type(self, db: Session, package_type: str) -> list[dict]:
        self.logger.info(f"get_packages_by_type: Entry - {package_type}")

        cache_params = {'type': package_type}
        cached = get_cached_listing('packages', cache_params)
        if cached is not None:
            return cached

        try:
            packages = db.query(SubscriptionPackage).filter(
                SubscriptionPackage.type == package_type,
                SubscriptionPackage.is_active == True
            ).order_by(SubscriptionPackage.price.asc()).all()
            result = [package_to_dict(p) for p in packages]

            set_cached_listing('packages', cache_params, result)
            self.logger.info(f"get_packages_by_type: Success - {len(result)} packages")
            return result
        except Exception as e:
            self.analytics.log_failure(action='get_packages_by_type', error=str(e), parameters={'type': package_type})
            self.logger.error(f"get_packages_by_type: Failure - {e}")
            raise

    def get_package_by_id(self, db: Session, package_id: str) -> Optional[dict]:
        """Returns None when the package does not exist"""
        self.logger.info(f"get_package_by_id: Entry - {package_id}")

        try:
            package = db.query(SubscriptionPackage).filter(SubscriptionPackage.id == package_id).first()
            self.logger.info(f"get_package_by_id: Success - found: {package is not None}")
            return package_to_dict(package) if package else None
        except Exception as e:
            self.analytics.log_failure(action='get_package_by_id', error=str(e), parameters={'package_id': package_id})
            self.logger.error(f"get_package_by_id: Failure - {e}")
            raise

    def save_package(self, db: Session, data: dict) -> dict:
        """
        Insert or update a package.

        Generates a `pkg_<epoch ms>` id when none is given. One-time packages
        carry no monthly price, setup fee, billing cycle or advance months;
        recurring packages default to yearly billing.
        """
        package_id = data.get('id') or new_package_id()
        self.logger.info(f"save_package: Entry - {package_id}")

        try:
            title = (data.get('title') or '').strip()
            if not title:
                raise ValueError("Package title is required")
            if data.get('price') is None or data.get('price') == '':
                raise ValueError("Package price is required")

            payment_type = data.get('payment_type')
            if payment_type not in PAYMENT_TYPES:
                payment_type = PaymentType.RECURRING.value

            values = {
                'title': title,
                'price': float(data['price']),
                'duration_months': int(data.get('duration_months') or 12),
                'short_description': data.get('short_description') or '',
                'full_description': data.get('full_description') or '',
                'features': parse_features(data.get('features')),
                'popular': bool(data.get('popular', False)),
                'type': data.get('type') if data.get('type') in PACKAGE_TYPES else 'Business',
                'terms_and_conditions': data.get('terms_and_conditions') or '',
                'payment_type': payment_type,
                'dashboard_sections': list(data.get('dashboard_sections') or []),
                'is_active': bool(data.get('is_active', True)),
            }

            if payment_type == PaymentType.ONE_TIME.value:
                values.update({
                    'monthly_price': None,
                    'setup_fee': 0.0,
                    'billing_cycle': None,
                    'advance_payment_months': 0,
                })
            else:
                billing_cycle = data.get('billing_cycle')
                monthly_price = data.get('monthly_price')
                values.update({
                    'monthly_price': float(monthly_price) if monthly_price not in (None, '') else None,
                    'setup_fee': float(data.get('setup_fee') or 0),
                    'billing_cycle': billing_cycle if billing_cycle in BILLING_CYCLES else BillingCycle.YEARLY.value,
                    'advance_payment_months': int(data.get('advance_payment_months') or 0),
                })

            package = db.query(SubscriptionPackage).filter(SubscriptionPackage.id == package_id).first()
            if package:
                for key, value in values.items():
                    setattr(package, key, value)
                package.updated_at = datetime.utcnow()
            else:
                package = SubscriptionPackage(id=package_id, **values)
                db.add(package)

            db.commit()
            db.refresh(package)
            invalidate_listing('packages')

            self.analytics.log_success(action='save_package', parameters={'package_id': package_id})
            self.logger.info(f"save_package: Success - {package_id}")
            return package_to_dict(package)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='save_package', error=str(e), parameters={'package_id': package_id})
            self.logger.error(f"save_package: Failure - {e}")
            raise

    def delete_package(self, db: Session, package_id: str) -> bool:
        self.logger.info(f"delete_package: Entry - {package_id}")

        try:
            package = db.query(SubscriptionPackage).filter(SubscriptionPackage.id == package_id).first()
            if not package:
                raise ValueError(f"Package not found: {package_id}")

            db.delete(package)
            db.commit()
            invalidate_listing('packages')

            self.analytics.log_success(action='delete_package', parameters={'package_id': package_id})
            self.logger.info(f"delete_package: Success - {package_id}")
            return True
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='delete_package', error=str(e), parameters={'package_id': package_id})
            self.logger.error(f"delete_package: Failure - {e}")
            raise
