"""ActivityLog aggregate: append-only audit trail of admin and system actions."""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String, Text

from storefront.domain import storefront


class ActivityAction(Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    LOGIN = "login"
    LOGOUT = "logout"
    PASSWORD_CHANGED = "password_changed"


class ActivityCategory(Enum):
    ORDER = "order"
    PRODUCT = "product"
    CLIENT = "client"
    USER = "user"
    SETTINGS = "settings"
    SYSTEM = "system"


@storefront.aggregate
class ActivityLog:
    """One recorded action. Entries are written once and never modified."""

    action = String(required=True, choices=ActivityAction)
    category = String(required=True, choices=ActivityCategory)
    description = Text(required=True)
    user_id = Identifier()
    user_name = String(max_length=255, default="System")
    user_role = String(max_length=50, default="system")
    target_id = String(max_length=255)
    target_type = String(max_length=50)
    target_name = String(max_length=255)
    details = Text()  # JSON object
    ip_address = String(max_length=64)
    created_at = DateTime()

    @classmethod
    def record(cls, action, category, description, **fields):
        return cls(action=action, category=category, description=description, created_at=datetime.now(UTC), **fields)
