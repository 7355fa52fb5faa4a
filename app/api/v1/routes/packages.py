import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import http_error
from app.payments.amounts import calculate_initial_payment, checkout_amount, to_paise
from app.services.package_service import PackageService

router = APIRouter()
logger = logging.getLogger(__name__)


def get_package_service() -> PackageService:
    return PackageService()


@router.get("")
async def list_packages(
    type: Optional[str] = None,
    db: Session = Depends(get_db),
    package_service: PackageService = Depends(get_package_service)
):
    """
    Active subscription packages, cheapest first.
    Public endpoint - no authentication required.
    """
    logger.info(f"list_packages: Entry - type: {type}")

    try:
        if type:
            packages = package_service.get_packages_by_type(db, type)
        else:
            packages = package_service.get_all_packages(db)
        return {"packages": packages}
    except Exception as e:
        logger.error(f"list_packages: Failure - {e}")
        raise http_error(e)


def _get_or_404(db: Session, package_service: PackageService, package_id: str) -> dict:
    package = package_service.get_package_by_id(db, package_id)
    if not package:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Package not found: {package_id}")
    return package


@router.get("/{package_id}")
async def get_package(
    package_id: str,
    db: Session = Depends(get_db),
    package_service: PackageService = Depends(get_package_service)
):
    try:
        return _get_or_404(db, package_service, package_id)
    except Exception as e:
        logger.error(f"get_package: Failure - {e}")
        raise http_error(e)


@router.get("/{package_id}/pricing")
async def get_package_pricing(
    package_id: str,
    db: Session = Depends(get_db),
    package_service: PackageService = Depends(get_package_service)
):
    """What checkout will charge for this package"""
    try:
        package = _get_or_404(db, package_service, package_id)
        amount = checkout_amount(package)
        return {
            "package_id": package_id,
            "initial_payment": calculate_initial_payment(package),
            "checkout_amount": amount,
            "amount_paise": to_paise(amount),
            "currency": "INR",
        }
    except Exception as e:
        logger.error(f"get_package_pricing: Failure - {e}")
        raise http_error(e)
