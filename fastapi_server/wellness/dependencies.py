"""
Shared FastAPI dependencies.
"""
from typing import Optional

from fastapi import Header, HTTPException, Request

from wellness.cache import ResultCache


def get_cache(request: Request) -> ResultCache:
    """Return the application's result cache (created in the lifespan handler)."""
    return request.app.state.cache


def get_current_user_id(
    x_user_id: Optional[int] = Header(None, alias="X-User-Id"),
) -> int:
    """
    Resolve the authenticated user.

    The identity provider sits in front of this service and forwards the
    principal's id in the X-User-Id header. The header is trusted as received,
    so the service must only be reachable behind that identity proxy; exposed
    directly, any caller could act as any user.
    """
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return x_user_id
