"""
MediStock Backend - pharmacy inventory, sales and invoicing.

ARCHITECTURE:
- FastAPI routers per screen area (inventory, purchases, sales, returns,
  customers, invoices, reports)
- Service layer owns every stock-affecting write; routers only translate
- SQLAlchemy DB: batches and the stock ledger are the source of truth

STOCK MODEL:
- Sales dispense from a chosen batch; FEFO order is suggested, never forced
- Cart checks are advisory, the sale commit re-checks stored quantities
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medistock import __version__
from medistock.api.routes import (
    auth,
    customers,
    invoices,
    medicines,
    purchases,
    reports,
    returns,
    sales,
    users,
)
from medistock.api.routes import settings as settings_routes
from medistock.core.config import settings
from medistock.core.exceptions import register_exception_handlers
from medistock.core.logging_config import setup_logging
from medistock.db.init_db import init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    1. Configure logging
    2. Create tables and the default Admin account
    """
    setup_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    logger.info("[*] Initializing database...")
    init_db()
    logger.info(f"[OK] Database ready ({settings.ENVIRONMENT})")
    yield
    logger.info("[*] Shutting down")


app = FastAPI(
    title="MediStock API",
    description="Pharmacy inventory with batch/expiry tracking, FEFO sales, returns and invoicing.",
    version=__version__,
    lifespan=lifespan,
)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if settings.SECURE_COOKIES:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


register_exception_handlers(app)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(medicines.router, prefix="/medicines", tags=["inventory"])
app.include_router(purchases.router, prefix="/purchases", tags=["purchases"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(returns.router, prefix="/returns", tags=["returns"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
app.include_router(settings_routes.router, prefix="/settings", tags=["settings"])


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}
