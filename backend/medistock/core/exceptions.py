"""
Error taxonomy and safe HTTP mapping.

Services raise PharmacyError subclasses; the API layer turns them into
HTTPExceptions through BusinessError. Internal details (SQL errors, stack
traces) are logged, never returned to the client.
"""
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base class for business-rule failures raised by the service layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PharmacyError):
    def __init__(self, resource: str, identifier=None):
        self.resource = resource
        self.identifier = identifier
        suffix = f" {identifier}" if identifier is not None else ""
        super().__init__(f"{resource}{suffix} not found")


class ValidationError(PharmacyError):
    """Input rejected by a business rule (bad quantity, empty cart, ...)."""


class InsufficientStockError(ValidationError):
    def __init__(self, available: int, message: str | None = None):
        self.available = available
        super().__init__(message or f"Only {available} units available in selected batch")


class ConflictError(PharmacyError):
    """Write refused because of existing state (duplicates, references)."""


class BusinessError:
    """HTTPException factories with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource") -> HTTPException:
        logger.info(f"Not found: {resource}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Same response for wrong password, unknown user and bad token."""
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business logic errors.
        OK to include specific details here since the user caused the issue.
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """Generic 500 - logs the actual error internally, hides it from the user."""
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

    @classmethod
    def from_domain(cls, error: PharmacyError) -> HTTPException:
        if isinstance(error, NotFoundError):
            return cls.not_found(error.resource)
        if isinstance(error, ConflictError):
            return cls.conflict(error.message)
        return cls.bad_request(error.message)


def _as_response(exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PharmacyError)
    async def pharmacy_error_handler(request: Request, exc: PharmacyError):
        return _as_response(BusinessError.from_domain(exc))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        return _as_response(BusinessError.server_error(exc))
