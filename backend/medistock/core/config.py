"""Application configuration.

Environment variables override all defaults.
SECRET_KEY must be set in production - startup fails fast if it is missing.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv


# Load backend/.env for local development; real environment variables win
_BACKEND_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_BACKEND_DIR / ".env", override=False)


def _float_env(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


class Settings:
    # Database Configuration
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./medistock.db")

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = ENVIRONMENT == "development"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_JSON: bool = os.getenv("LOG_JSON", "false").lower() in ("1", "true", "yes")

    # JWT
    SECRET_KEY: str = os.getenv("SECRET_KEY", None)
    if not SECRET_KEY:
        if ENVIRONMENT == "production":
            raise ValueError(
                "SECRET_KEY must be set in production environment. "
                "Generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        import warnings
        warnings.warn(
            "SECRET_KEY not set in environment. Using development default. "
            "Set SECRET_KEY in .env to a strong random value.",
            RuntimeWarning
        )
        SECRET_KEY = "development-only-weak-default-change-in-production"

    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))
    AUTH_COOKIE_NAME: str = "medistock_token"

    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
        ).split(",")
        if origin.strip()
    ]

    SECURE_COOKIES: bool = ENVIRONMENT == "production"
    SAME_SITE_COOKIE: str = "strict"

    MIN_PASSWORD_LENGTH: int = 8

    # Pharmacy profile printed on invoices
    PHARMACY_NAME: str = os.getenv("PHARMACY_NAME", "MediStock Pharmacy")
    PHARMACY_PHONE: str = os.getenv("PHARMACY_PHONE", "+92-300-1234567")
    PHARMACY_ADDRESS: str = os.getenv(
        "PHARMACY_ADDRESS", "123 Medical Street, Health City, Karachi, Pakistan"
    )
    INVOICE_PREFIX: str = os.getenv("INVOICE_PREFIX", "INV")
    CURRENCY: str = os.getenv("CURRENCY", "PKR")

    # Sale defaults (fractions, 0.17 == 17%)
    DEFAULT_TAX_RATE: float = _float_env("DEFAULT_TAX_RATE", "0.17")
    DEFAULT_DISCOUNT_RATE: float = _float_env("DEFAULT_DISCOUNT_RATE", "0.05")

    EXPIRY_ALERT_DAYS: int = int(os.getenv("EXPIRY_ALERT_DAYS", "30"))


settings = Settings()
