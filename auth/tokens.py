"""
auth/tokens.py -- Bearer token issue and validation (python-jose, HS256).

Security design decisions:
  Tokens are stateless: a signed payload carrying id, username, role and exp.
  There is no server-side session store, so a token stays valid until it
  expires -- no revocation list.

  The signing secret is injected through the TokenService constructor (built
  once in api/main.py lifespan from Settings.secret_key). Nothing in this
  module reads configuration on its own.

  validate() separates three failure kinds so the middleware can answer
  "Token has expired" distinctly from "Invalid token":
    TokenMalformed        -- not parseable as a JWT, or required claims absent
    TokenSignatureInvalid -- signature does not verify against the secret
    TokenExpired          -- signature fine, but now >= exp

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.models import Account, Claims, Role
from core.errors import SigningError, TokenExpired, TokenMalformed, TokenSignatureInvalid

logger = logging.getLogger("taskguard.auth")

ALGORITHM = "HS256"
DEFAULT_LIFETIME = timedelta(hours=24)

_REQUIRED_CLAIMS = ("id", "username", "role")


class TokenService:
    """Issues and validates signed, time-bounded claims.

    Holds no state besides the secret and lifetime, both fixed at startup.
    """

    def __init__(self, secret_key: str, lifetime: timedelta = DEFAULT_LIFETIME) -> None:
        self._secret_key = secret_key
        self.lifetime = lifetime

    def issue(self, account: Account) -> str:
        """Encode a signed token for account, expiring `lifetime` from now."""
        if account.id is None:
            raise SigningError("Cannot issue a token for an unsaved account.")
        expire = datetime.now(timezone.utc) + self.lifetime
        payload = {
            "id": account.id,
            "username": account.username,
            "role": account.role.value,
            "exp": int(expire.timestamp()),
        }
        try:
            return jwt.encode(payload, self._secret_key, algorithm=ALGORITHM)
        except JWTError as exc:
            raise SigningError() from exc

    def validate(self, token: str) -> Claims:
        """Verify and decode a token. Raises one of the three failure kinds."""
        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenMalformed() from exc

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"require_exp": True},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTClaimsError as exc:
            raise TokenMalformed() from exc
        except JWTError as exc:
            raise TokenSignatureInvalid() from exc

        # jose treats now == exp as still valid; the boundary instant is expired here.
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        if datetime.now(timezone.utc) >= expires_at:
            raise TokenExpired()

        for name in _REQUIRED_CLAIMS:
            if not isinstance(payload.get(name), str) or not payload[name]:
                raise TokenMalformed()
        try:
            role = Role(payload["role"])
        except ValueError as exc:
            raise TokenMalformed() from exc

        return Claims(
            subject_id=payload["id"],
            username=payload["username"],
            role=role,
            expires_at=expires_at,
        )
