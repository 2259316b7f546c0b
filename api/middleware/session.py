"""
Session Middleware
==================

Resolves the caller's identity from headers set by the upstream web
application. Login itself happens upstream; this service only trusts it.
"""

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from api.schemas import ErrorResponse
from observability.logging_config import bind_context

USER_HEADER = "X-User-Id"
SESSION_HEADER = "X-Session-Id"

# Paths that don't require a session
PUBLIC_PATHS = {
    "/health",
    "/ready",
    "/live",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/metrics",
}


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Requires an authenticated user on every non-public path.

    Sets ``request.state.user_id`` and ``request.state.session_id``. Without a
    session header the request id stands in as the session identifier.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with session resolution."""
        if self._is_public_path(request.url.path) or request.method == "OPTIONS":
            return await call_next(request)

        request_id = getattr(request.state, "request_id", None)
        user_id = request.headers.get(USER_HEADER, "").strip()
        if not user_id:
            return JSONResponse(
                status_code=401,
                content=ErrorResponse(error="Unauthorized", request_id=request_id).model_dump(
                    exclude_none=True
                ),
            )

        session_id = request.headers.get(SESSION_HEADER, "").strip() or request_id or user_id
        request.state.user_id = user_id
        request.state.session_id = session_id
        bind_context(user_id=user_id, session_id=session_id)

        return await call_next(request)

    def _is_public_path(self, path: str) -> bool:
        """Check if path is public (doesn't require a session)."""
        if path in PUBLIC_PATHS:
            return True

        # Prefix match for docs
        return path.startswith("/docs") or path.startswith("/redoc")
