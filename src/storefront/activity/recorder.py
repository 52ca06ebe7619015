"""Best-effort activity recording.

Audit writes must never break the operation being audited: every helper
here logs and swallows storage failures and returns None instead of the
stored entry.
"""

import json
from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from storefront.activity.activity import ActivityCategory, ActivityLog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who performed an action, as far as the caller knows."""

    name: str = "System"
    role: str = "system"
    user_id: str | None = None
    ip_address: str | None = None


SYSTEM = Actor()


def record_activity(
    action: str,
    category: str,
    description: str,
    actor: Actor = SYSTEM,
    target_id: str | None = None,
    target_type: str | None = None,
    target_name: str | None = None,
    details: dict | None = None,
) -> ActivityLog | None:
    try:
        entry = ActivityLog.record(
            action=action,
            category=category,
            description=description,
            user_id=actor.user_id,
            user_name=actor.name,
            user_role=actor.role,
            target_id=target_id,
            target_type=target_type,
            target_name=target_name,
            details=json.dumps(details, default=str) if details else None,
            ip_address=actor.ip_address,
        )
        current_domain.repository_for(ActivityLog).add(entry)
        return entry
    except Exception as exc:
        logger.error(
            "Failed to record activity",
            action=action,
            category=category,
            target_id=target_id,
            error=str(exc),
        )
        return None


def log_order_action(
    action: str,
    order_id: str,
    order_number: str,
    actor: Actor = SYSTEM,
    description: str | None = None,
    details: dict | None = None,
) -> ActivityLog | None:
    return record_activity(
        action=action,
        category=ActivityCategory.ORDER.value,
        description=description or f"Order {order_number} {action.replace('_', ' ')}",
        actor=actor,
        target_id=order_id,
        target_type="Order",
        target_name=order_number,
        details=details,
    )


def log_product_action(
    action: str,
    product_id: str,
    product_name: str,
    actor: Actor = SYSTEM,
    description: str | None = None,
    details: dict | None = None,
) -> ActivityLog | None:
    return record_activity(
        action=action,
        category=ActivityCategory.PRODUCT.value,
        description=description or f"Product {product_name} {action.replace('_', ' ')}",
        actor=actor,
        target_id=product_id,
        target_type="Product",
        target_name=product_name,
        details=details,
    )
