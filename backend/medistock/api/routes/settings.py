"""Pharmacy profile and sale defaults, as configured through the environment."""
from decimal import Decimal

from fastapi import APIRouter, Depends

from medistock.api.deps import can_view
from medistock.core.config import settings
from medistock.models.user import User
from medistock.schemas.settings import SettingsResponse

router = APIRouter()


@router.get("", response_model=SettingsResponse)
def get_settings(current_user: User = Depends(can_view)):
    return SettingsResponse(
        company_name=settings.PHARMACY_NAME,
        phone=settings.PHARMACY_PHONE,
        address=settings.PHARMACY_ADDRESS,
        invoice_prefix=settings.INVOICE_PREFIX,
        currency=settings.CURRENCY,
        default_tax_rate=Decimal(str(settings.DEFAULT_TAX_RATE)),
        default_discount_rate=Decimal(str(settings.DEFAULT_DISCOUNT_RATE)),
        expiry_alert_days=settings.EXPIRY_ALERT_DAYS,
    )
