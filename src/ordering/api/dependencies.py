"""FastAPI dependencies shared by the ordering and payments routers.

The auth/session layer in front of this service authenticates the caller and
forwards the identity in headers. Services are built once at startup and
stored on ``app.state``.
"""

from fastapi import Header, HTTPException, Request

from ordering.collaborators.port import Actor, Role


def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default=Role.USER.value),
    x_user_email: str | None = Header(default=None),
) -> Actor:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    role = x_user_role.upper()
    if role not in {r.value for r in Role}:
        role = Role.USER.value
    return Actor(user_id=x_user_id, role=role, email=x_user_email)


def get_lifecycle(request: Request):
    return request.app.state.lifecycle


def get_webhook_processor(request: Request):
    return request.app.state.webhooks


async def raw_body(request: Request) -> bytes:
    """Exact request bytes, for signature checks over the body."""
    return await request.body()
