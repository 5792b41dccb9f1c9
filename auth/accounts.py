"""
auth/accounts.py -- Account provisioning and login use cases.

AccountService is the use-case layer for accounts. Each public coroutine opens
its own bounded scope (core/scope.py) and hands only that scope to the store.
Blocking work (SQL, bcrypt) runs in worker threads via Scope.run().

Bootstrap rule:
  create_account() proposes ADMINISTRATOR when count_all() is zero and MEMBER
  otherwise. The count and the insert are separate round trips, so the store
  makes the final call: AccountStore.insert() writes ADMINISTRATOR only if it
  wins the single-row bootstrap claim in the same transaction.

Login failures:
  authenticate() raises UserNotFound and WrongPassword as distinct kinds so
  callers can log them. Whether clients see the difference is the route's
  decision (Settings.unify_login_errors). Unknown usernames still cost one
  bcrypt check (PasswordHasher.equalize) to keep timing uniform.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from auth.models import Account, Role
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenService
from core.errors import AccountNotFound, DuplicateUsername, UserNotFound, ValidationFailed, WrongPassword
from core.scope import bounded_scope

logger = logging.getLogger("taskguard.accounts")

USERNAME_MAX_LEN = 255


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validate_credentials(username: str, password: str) -> str:
    """Return the normalized username or raise ValidationFailed."""
    username = (username or "").strip()
    if not username:
        raise ValidationFailed("username is required")
    if len(username) > USERNAME_MAX_LEN:
        raise ValidationFailed(f"username must be at most {USERNAME_MAX_LEN} characters")
    if not password:
        raise ValidationFailed("password is required")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationFailed(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return username


class AccountService:
    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        timeout: float,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self.timeout = timeout

    async def create_account(self, username: str, password: str, role: Role | str | None = None) -> Account:
        """Register a new account and return the stored record.

        `role` is accepted for wire compatibility and ignored: the bootstrap
        rule alone decides it.

        Raises ValidationFailed for missing fields, DuplicateUsername if the
        username is taken (no write happens in that case).
        """
        username = _validate_credentials(username, password)
        async with bounded_scope(self.timeout) as scope:
            if await scope.run(self._store.find_by_username, scope, username) is not None:
                raise DuplicateUsername()

            count = await scope.run(self._store.count_all, scope)
            proposed = Role.ADMINISTRATOR if count == 0 else Role.MEMBER

            hashed = await scope.run(self._hasher.hash, password)
            now = _now_iso()
            candidate = Account(
                username=username,
                role=proposed,
                hashed_password=hashed,
                created_at=now,
                updated_at=now,
            )
            try:
                created = await scope.run(self._store.insert, scope, candidate)
            except IntegrityError as exc:
                raise DuplicateUsername() from exc

        if created.role is Role.ADMINISTRATOR:
            logger.warning("First account %r bootstrapped as administrator", created.username)
        else:
            logger.info("Account %r created", created.username)
        return created

    async def authenticate(self, username: str, password: str) -> tuple[Account, str]:
        """Verify credentials and return (account, bearer token).

        The username is stripped the same way create_account() stores it.
        Raises UserNotFound, WrongPassword, or SigningError.
        """
        username = (username or "").strip()
        async with bounded_scope(self.timeout) as scope:
            account = await scope.run(self._store.find_by_username, scope, username)
            if account is None:
                await scope.run(self._hasher.equalize, password)
                raise UserNotFound()
            if not await scope.run(self._hasher.verify, password, account.hashed_password):
                raise WrongPassword()
            token = self._tokens.issue(account)
        return account, token

    async def promote(self, account_id: str) -> None:
        """Grant ADMINISTRATOR to an existing account. Raises AccountNotFound."""
        async with bounded_scope(self.timeout) as scope:
            updated = await scope.run(self._store.update_role_by_id, scope, account_id, Role.ADMINISTRATOR)
        if not updated:
            raise AccountNotFound()
        logger.info("Account %s promoted to administrator", account_id)

    async def get_account(self, account_id: str) -> Account:
        """Fetch one account by id. Raises AccountNotFound."""
        async with bounded_scope(self.timeout) as scope:
            account = await scope.run(self._store.find_by_id, scope, account_id)
        if account is None:
            raise AccountNotFound()
        return account

    async def list_accounts(self) -> list[Account]:
        async with bounded_scope(self.timeout) as scope:
            return await scope.run(self._store.list_all, scope)
