"""Admin audit log: who changed what from the admin console.

Recording is best-effort. The administrative mutation has already been
decided by the time it is logged, so a failure to write the log entry is
reported through structlog and never reaches the caller.
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.utils.queries import find_all

logger = structlog.get_logger(__name__)


class AdminAction(Enum):
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    DISABLE_USER = "DISABLE_USER"
    ENABLE_USER = "ENABLE_USER"
    UPDATE_PHONE = "UPDATE_PHONE"
    DELETE_PHONE = "DELETE_PHONE"
    DISABLE_PHONE = "DISABLE_PHONE"
    ENABLE_PHONE = "ENABLE_PHONE"
    HIDE_REVIEW = "HIDE_REVIEW"
    SHOW_REVIEW = "SHOW_REVIEW"
    DELETE_REVIEW = "DELETE_REVIEW"
    EXPORT_ORDERS = "EXPORT_ORDERS"


class TargetType(Enum):
    USER = "User"
    PHONE = "Phone"
    REVIEW = "Review"
    ORDER = "Order"


@marketplace.aggregate
class AdminLog:
    admin_user_id = Identifier(required=True)
    action = String(required=True, choices=AdminAction)
    target_type = String(required=True, choices=TargetType)
    target_id = Identifier(required=True)
    details = Text()  # JSON object
    created_at = DateTime()


def record_admin_action(actor_id, action, target_type, target_id, details=None):
    """Store an audit entry; returns the entry, or None when it could not be written."""
    action_value = action.value if isinstance(action, AdminAction) else action
    target_value = target_type.value if isinstance(target_type, TargetType) else target_type

    try:
        entry = AdminLog(
            admin_user_id=actor_id,
            action=action_value,
            target_type=target_value,
            target_id=target_id,
            details=json.dumps(details) if details else None,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(AdminLog).add(entry)
    except Exception as exc:
        logger.warning(
            "Failed to record admin action",
            actor_id=str(actor_id) if actor_id else None,
            action=action_value,
            target_type=target_value,
            target_id=str(target_id) if target_id else None,
            error=str(exc),
        )
        return None

    logger.info(
        "Admin action recorded",
        actor_id=str(actor_id),
        action=action_value,
        target_type=target_value,
        target_id=str(target_id),
    )
    return entry


def admin_logs(**filters):
    """Audit entries, newest first."""
    entries = find_all(AdminLog, **filters)
    return sorted(entries, key=lambda e: e.created_at, reverse=True)
