"""
Request-scoped dependencies: viewer identity and operator guard.

Identity headers are set by the upstream auth gateway after it verifies the
session; this service trusts them as-is.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status

from ..policy import OperatorAllowlist, ViewerContext
from .state import get_allowlist


def get_viewer(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    token: Optional[str] = Query(default=None),
    allowlist: OperatorAllowlist = Depends(get_allowlist),
) -> ViewerContext:
    return allowlist.viewer_context(user_id=x_user_id, email=x_user_email, token=token)


def require_operator(viewer: ViewerContext = Depends(get_viewer)) -> ViewerContext:
    """Operator-only endpoints."""
    if not viewer.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in required")
    if not viewer.is_operator:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operator access required")
    return viewer
