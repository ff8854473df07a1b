from decimal import Decimal

from pydantic import BaseModel


class SettingsResponse(BaseModel):
    company_name: str
    phone: str
    address: str
    invoice_prefix: str
    currency: str
    default_tax_rate: Decimal
    default_discount_rate: Decimal
    expiry_alert_days: int
