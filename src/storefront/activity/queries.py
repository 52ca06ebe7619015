"""Admin listing of the activity log."""

import json

from protean.utils.globals import current_domain

from storefront.activity.activity import ActivityCategory, ActivityLog
from storefront.shared.pagination import DEFAULT_PAGE_SIZE, iter_query, matches_search, paginate, query_page


def activity_to_dict(entry: ActivityLog) -> dict:
    return {
        "id": str(entry.id),
        "action": entry.action,
        "category": entry.category,
        "description": entry.description,
        "user_id": entry.user_id,
        "user_name": entry.user_name,
        "user_role": entry.user_role,
        "target_id": entry.target_id,
        "target_type": entry.target_type,
        "target_name": entry.target_name,
        "details": json.loads(entry.details) if entry.details else {},
        "ip_address": entry.ip_address,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


def _activity_query(**filters):
    query = current_domain.repository_for(ActivityLog)._dao.query
    if filters:
        query = query.filter(**filters)
    return query.order_by("-created_at")


def _category_count(category: str) -> int:
    return current_domain.repository_for(ActivityLog)._dao.query.filter(category=category).limit(1).all().total


def list_activity(
    category: str | None = None,
    action: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """Newest-first activity entries with per-category totals.

    ``stats`` counts every stored entry by category, independent of the
    filters applied to the page.
    """
    filters = {}
    if category:
        filters["category"] = category
    if action:
        filters["action"] = action

    query = _activity_query(**filters)
    if search:
        entries = [
            entry
            for entry in iter_query(query)
            if matches_search(search, entry.description, entry.user_name, entry.target_name)
        ]
        result = paginate(entries, page=page, limit=limit)
    else:
        result = query_page(query, page=page, limit=limit)

    stats = {member.value: _category_count(member.value) for member in ActivityCategory}

    return {
        "logs": [activity_to_dict(entry) for entry in result["items"]],
        "total": result["total"],
        "page": result["page"],
        "total_pages": result["total_pages"],
        "stats": stats,
    }
