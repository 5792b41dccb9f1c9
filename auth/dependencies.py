"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two stages, both plain functions of the request:

  authenticate()  -- requires "Authorization: Bearer <token>", validates the
                     token with the TokenService on app.state, and publishes
                     account_id / username / role on request.state.
  require_admin() -- reads request.state.role only. It never re-parses the
                     token, so it must be listed after authenticate().

Protected routers declare them in order:
    APIRouter(dependencies=[Depends(authenticate), Depends(require_admin)])
FastAPI resolves a dependency list in declaration order, and a raised error
aborts the request before any later dependency or the handler runs.

Failures are raised as core.errors types; api/main.py renders them as
{"error": message} with the matching status code.

Layer rule: may import from fastapi (Request) because this module is part of
the dependency injection system. No imports from tasks/.
"""

from __future__ import annotations

import logging

from fastapi import Request

from auth.models import Claims, Role
from auth.tokens import TokenService
from core.errors import AdminRequired, MalformedAuthHeader, MissingAuthHeader, TokenExpired, TokenInvalid

logger = logging.getLogger("taskguard.auth")


def authenticate(request: Request) -> Claims:
    """Require a valid bearer token. Raises 401 errors, returns the Claims.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: Claims = Depends(authenticate)): ...
    """
    header = request.headers.get("Authorization", "")
    if not header:
        raise MissingAuthHeader()

    parts = header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise MalformedAuthHeader()

    tokens: TokenService = request.app.state.token_service
    try:
        claims = tokens.validate(parts[1])
    except TokenExpired:
        logger.info("Rejected expired token on %s", request.url.path)
        raise
    except TokenInvalid as exc:
        logger.info("Rejected token on %s (%s)", request.url.path, type(exc).__name__)
        raise

    request.state.account_id = claims.subject_id
    request.state.username = claims.username
    request.state.role = claims.role
    return claims


def require_admin(request: Request) -> None:
    """Reject with 403 unless authenticate() stored the ADMINISTRATOR role."""
    role = getattr(request.state, "role", None)
    if role is not Role.ADMINISTRATOR:
        raise AdminRequired()
