"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper. AccountStore is the repository;
_row_to_account is the mapper. Services never touch SQL directly.

Every public method takes the caller's Scope (core/scope.py) first and checks
it before each round trip, so a call abandoned by its use case does not start
new statements after the deadline.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  UNIQUE(username) is enforced by the schema. AccountService pre-checks for a
  friendlier error, but the constraint is the source of truth: insert() raises
  sqlalchemy.exc.IntegrityError when two registrations race on one username.

Bootstrap claim:
  bootstrap_claim is a single-row table (id=1 enforced by CHECK constraint).
  insert() claims it with INSERT OR IGNORE in the same transaction that writes
  an ADMINISTRATOR account. Only one transaction can create that row, so when
  two first registrations race, the loser is written as MEMBER. If the account
  insert fails, the transaction rolls back and the claim goes with it.

DB path: taskguard.db at the repository root unless DATABASE_URL says otherwise.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine

from auth.models import Account, Role
from core.scope import Scope

logger = logging.getLogger("taskguard.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(10), nullable=False, server_default=Role.MEMBER.value),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore()
        created = store.insert(scope, Account(username="alice", hashed_password=h))
        account = store.find_by_username(scope, "alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)
        self._ensure_bootstrap_claim()

    def _ensure_bootstrap_claim(self) -> None:
        """Create the single-row bootstrap_claim table if not present.

        The table starts empty. A row appears only when the first
        ADMINISTRATOR account is written (see insert()).
        """
        with self.engine.connect() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS bootstrap_claim (
                        id INTEGER PRIMARY KEY CHECK (id = 1),
                        claimed_at TEXT NOT NULL
                    )
                    """
                )
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_username(self, scope: Scope, username: str) -> Account | None:
        """Look up an account by exact username. Returns None if not found."""
        scope.check()
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None

    def find_by_id(self, scope: Scope, account_id: str) -> Account | None:
        """Look up an account by id. Returns None if not found."""
        scope.check()
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def count_all(self, scope: Scope) -> int:
        scope.check()
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_accounts)).scalar()
        return result or 0

    def list_all(self, scope: Scope) -> list[Account]:
        """Return all accounts ordered by creation time."""
        scope.check()
        with self.engine.connect() as conn:
            rows = conn.execute(_accounts.select().order_by(_accounts.c.created_at)).fetchall()
        return [_row_to_account(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, scope: Scope, account: Account) -> Account:
        """Write a new account with a server-assigned id and return the stored record.

        An ADMINISTRATOR account must win the bootstrap claim in the same
        transaction; if the claim is already taken the account is written as
        MEMBER instead. The returned record reflects the role actually stored.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        """
        scope.check()
        role = account.role
        account_id = uuid.uuid4().hex
        with self.engine.begin() as conn:
            if role is Role.ADMINISTRATOR:
                claimed = conn.execute(
                    text("INSERT OR IGNORE INTO bootstrap_claim (id, claimed_at) VALUES (1, :now)"),
                    {"now": _now_iso()},
                ).rowcount
                if claimed != 1:
                    logger.warning("Bootstrap already claimed; %r stored as %s", account.username, Role.MEMBER.name)
                    role = Role.MEMBER
            conn.execute(
                _accounts.insert().values(
                    id=account_id,
                    username=account.username,
                    hashed_password=account.hashed_password,
                    role=role.value,
                    created_at=account.created_at or _now_iso(),
                    updated_at=account.updated_at or _now_iso(),
                )
            )
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row)

    def update_role_by_id(self, scope: Scope, account_id: str, role: Role) -> bool:
        """Set the role of one account. Returns False if account_id was not found."""
        scope.check()
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update()
                .where(_accounts.c.id == account_id)
                .values(role=role.value, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Account database ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
