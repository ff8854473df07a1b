"""
Audit logging for authentication and stock-affecting operations.

Every sale, purchase, return and role change is written as one JSON line to
the "audit" logger so the ledger can be reconstructed from logs.
Passwords and tokens are never logged.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from medistock.models.user import User

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for security-critical and stock events."""

    @staticmethod
    def log_authentication(action: str, email: str, ip_address: str, success: bool, reason: str = ""):
        """
        Usage:
            AuditLog.log_authentication("login", "admin@pharmacy.com", "10.0.0.4", True)
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason

        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "sale", "purchase", "return"
        resource_type: str,  # "medicine", "batch", "invoice", "customer", "user"
        resource_id: int,
        user: Optional[User],
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Usage:
            AuditLog.log_action("sale", "invoice", 12, current_user, changes={"total": "1400.00"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user.id if user else None,
            "user_email": user.email if user else None,
            "resource_id": resource_id,
        }
        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_access_denied(user: User, required_roles, path: str):
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "user_id": user.id,
            "role": user.role,
            "required_roles": sorted(required_roles),
            "path": path,
        }
        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_permission_change(user_id: int, granted_by: int, role: str):
        log_entry = {
            "timestamp": _now(),
            "event_type": "permissions.changed",
            "user_id": user_id,
            "granted_by": granted_by,
            "role": role,
        }
        audit_logger.info(json.dumps(log_entry))
