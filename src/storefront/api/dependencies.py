"""Request-scoped dependencies shared by the routers."""

from fastapi import Header, Request

from storefront.activity.recorder import Actor


def current_actor(
    request: Request,
    x_actor_id: str | None = Header(default=None),
    x_actor_name: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """Attribute admin actions to the caller named in the X-Actor-* headers.

    Authentication happens in front of this service; requests without the
    headers are attributed to an anonymous admin.
    """
    return Actor(
        name=x_actor_name or "Admin",
        role=x_actor_role or "admin",
        user_id=x_actor_id,
        ip_address=request.client.host if request.client else None,
    )
