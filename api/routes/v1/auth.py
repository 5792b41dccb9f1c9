"""
api/routes/v1/auth.py -- Registration, login and account administration endpoints.

Routes:
  POST /api/v1/register                    -- create account (public)
  POST /api/v1/login                       -- password login; returns bearer token (public)
  GET  /api/v1/me                          -- identity of the current token (requires auth)
  GET  /api/v1/admin/accounts              -- list accounts (admin only)
  GET  /api/v1/admin/accounts/{account_id} -- one account (admin only)
  PUT  /api/v1/admin/promote/{account_id}  -- grant administrator role (admin only)

Security:
  The first account ever registered becomes administrator (bootstrap rule,
  enforced in AccountService + AccountStore). Any role sent by the client
  is ignored.
  Login answers one generic message for unknown usernames and wrong passwords
  unless Settings.unify_login_errors is False. The specific kind is logged.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AccountResponse,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
)
from auth.accounts import AccountService
from auth.dependencies import authenticate, require_admin
from auth.models import Claims
from core.errors import UserNotFound, WrongPassword

logger = logging.getLogger("taskguard.api")

_GENERIC_LOGIN_ERROR = "Invalid username or password"

# Auth policy:
# - POST /register, POST /login:     public -- they produce the tokens
# - GET  /me:                        requires auth (authenticate)
# - /admin/*:                        requires auth, then admin role gate
router = APIRouter()
admin_router = APIRouter(prefix="/admin", dependencies=[Depends(authenticate), Depends(require_admin)])


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AccountResponse, status_code=201)
async def register(request: Request, body: RegisterRequest) -> AccountResponse:
    """Create an account. The first account in an empty store becomes administrator."""
    accounts: AccountService = request.app.state.accounts
    created = await accounts.create_account(body.username, body.password, role=body.role)
    return AccountResponse.from_account(created)


@router.post("/login", response_model=LoginResponse)
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a bearer token.

    Include the token on protected routes as: Authorization: Bearer <access_token>
    """
    accounts: AccountService = request.app.state.accounts
    try:
        account, token = await accounts.authenticate(body.username, body.password)
    except (UserNotFound, WrongPassword) as exc:
        logger.info("Login failed for %r: %s", body.username, type(exc).__name__)
        message = _GENERIC_LOGIN_ERROR if request.app.state.settings.unify_login_errors else exc.message
        resp = JSONResponse(
            status_code=401,
            content={"error": message},
            headers={"WWW-Authenticate": "Bearer"},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    lifetime = request.app.state.token_service.lifetime
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=int(lifetime.total_seconds()),
            account=AccountResponse.from_account(account),
        ).model_dump(mode="json"),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/me", response_model=MeResponse)
async def me(claims: Claims = Depends(authenticate)) -> MeResponse:
    """Return the identity carried by the presented token."""
    return MeResponse(account_id=claims.subject_id, username=claims.username, role=claims.role)


# ---------------------------------------------------------------------------
# Account administration (admin only)
# ---------------------------------------------------------------------------


@admin_router.get("/accounts", response_model=list[AccountResponse])
async def list_accounts(request: Request) -> list[AccountResponse]:
    accounts: AccountService = request.app.state.accounts
    return [AccountResponse.from_account(a) for a in await accounts.list_accounts()]


@admin_router.put("/promote/{account_id}", response_model=MessageResponse)
async def promote(request: Request, account_id: str) -> MessageResponse:
    """Grant the administrator role to an existing account."""
    accounts: AccountService = request.app.state.accounts
    await accounts.promote(account_id)
    logger.info("Account %s promoted by %s", account_id, request.state.account_id)
    return MessageResponse(message="promoted to admin")


@admin_router.get("/accounts/{account_id}", response_model=AccountResponse)
async def get_account(request: Request, account_id: str) -> AccountResponse:
    accounts: AccountService = request.app.state.accounts
    return AccountResponse.from_account(await accounts.get_account(account_id))
