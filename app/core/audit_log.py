"""
Audit logging for admin actions

Every back-office mutation records who did what to which resource.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Any

from fastapi import Request

from app.core.config import settings

audit_logger = logging.getLogger("audit")
audit_logger.setLevel(logging.INFO)

# Action categories
ACTION_PARTNER_CREATE = "partner.create"
ACTION_PARTNER_UPDATE = "partner.update"
ACTION_PARTNER_DELETE = "partner.delete"
ACTION_BRAND_CREATE = "brand.create"
ACTION_BRAND_DELETE = "brand.delete"
ACTION_LICENSE_CREATE = "license.create"
ACTION_LICENSE_UPDATE = "license.update"
ACTION_LICENSE_DELETE = "license.delete"
ACTION_BANNER_CREATE = "banner.create"
ACTION_BANNER_UPDATE = "banner.update"
ACTION_BANNER_DELETE = "banner.delete"
ACTION_GALLERY_CREATE = "gallery.create"
ACTION_GALLERY_DELETE = "gallery.delete"
ACTION_HOMEPAGE_UPDATE = "homepage.update"
ACTION_CONFIG_UPDATE = "config.update"
ACTION_DISCOUNT_CREATE = "discount.create"
ACTION_DISCOUNT_DELETE = "discount.delete"
ACTION_DISCOUNT_APPLY = "discount.apply"
ACTION_STAFF_PICK_UPDATE = "product.staff_pick"
ACTION_PLAN_UPDATE = "subscription_plan.update"
ACTION_FONT_CREATE = "font.create"
ACTION_FONT_UPDATE = "font.update"
ACTION_FONT_DELETE = "font.delete"
ACTION_BUNDLE_CREATE = "bundle.create"
ACTION_BUNDLE_UPDATE = "bundle.update"
ACTION_BUNDLE_DELETE = "bundle.delete"
ACTION_POST_CREATE = "post.create"
ACTION_POST_UPDATE = "post.update"
ACTION_POST_DELETE = "post.delete"

SENSITIVE_KEYS = ("password", "secret", "token", "key", "credential")


def log_admin_action(
    action: str,
    user_id: str,
    user_email: Optional[str],
    resource_type: str,
    resource_id: Optional[Any] = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None,
    success: bool = True,
):
    """
    Log an administrative action.

    Args:
        action: Action identifier (e.g., "partner.create")
        user_id: ID of the admin performing the action
        user_email: Email of the admin
        resource_type: Type of resource affected (e.g., "partner", "license")
        resource_id: ID of the affected resource (if applicable)
        details: Additional context about the action
        ip_address: IP address of the request
        success: Whether the action succeeded
    """
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "action": action,
        "admin_id": str(user_id),
        "admin_email": user_email,
        "resource_type": resource_type,
        "resource_id": str(resource_id) if resource_id else None,
        "success": success,
        "ip_address": ip_address,
        "environment": settings.ENVIRONMENT,
    }

    if details:
        log_entry["details"] = {
            k: v for k, v in details.items()
            if k.lower() not in SENSITIVE_KEYS
        }

    if success:
        audit_logger.info(
            f"AUDIT: {action} by {user_email} on {resource_type}/{resource_id}",
            extra={"audit": log_entry}
        )
    else:
        audit_logger.warning(
            f"AUDIT FAILED: {action} by {user_email} on {resource_type}/{resource_id}",
            extra={"audit": log_entry}
        )


def audit(request: Request, admin, action: str, resource_type: str, resource_id=None, details=None):
    """Shorthand used by admin routes: pulls the caller IP from the request."""
    log_admin_action(
        action=action,
        user_id=admin.id,
        user_email=admin.email,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        ip_address=request.client.host if request.client else None,
    )
