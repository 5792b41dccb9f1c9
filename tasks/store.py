"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclass in tasks/models.py remains the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Every method takes the caller's Scope and checks it before
touching the database.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///taskguard.db")
    created = store.insert(scope, Task(title="t", description="d", due_date="2025-01-01", status="pending"))
    tasks = store.list_all(scope)
    store.close()
"""

import uuid
from typing import Optional

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from core.scope import Scope
from tasks.models import Task

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("due_date", String(32), nullable=False),
    Column("status", String(50), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


class TaskStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_all(self, scope: Scope) -> list[Task]:
        """Return every task ordered by due date."""
        scope.check()
        with self.engine.connect() as conn:
            rows = conn.execute(_tasks.select().order_by(_tasks.c.due_date)).fetchall()
        return [_row_to_task(r) for r in rows]

    def get(self, scope: Scope, task_id: str) -> Optional[Task]:
        """Return one task or None if task_id is unknown."""
        scope.check()
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, scope: Scope, task: Task) -> Task:
        """Write a new task with a server-assigned id and return it."""
        scope.check()
        task_id = uuid.uuid4().hex
        with self.engine.connect() as conn:
            conn.execute(
                _tasks.insert().values(
                    id=task_id,
                    title=task.title,
                    description=task.description,
                    due_date=task.due_date,
                    status=task.status,
                )
            )
            conn.commit()
        return Task(
            id=task_id,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            status=task.status,
        )

    def update(self, scope: Scope, task_id: str, task: Task) -> Optional[Task]:
        """Replace the mutable fields of a task. Returns the updated task, or None if not found."""
        scope.check()
        with self.engine.begin() as conn:
            result = conn.execute(
                _tasks.update()
                .where(_tasks.c.id == task_id)
                .values(
                    title=task.title,
                    description=task.description,
                    due_date=task.due_date,
                    status=task.status,
                )
            )
            if result.rowcount == 0:
                return None
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row)

    def delete(self, scope: Scope, task_id: str) -> bool:
        """Delete a task. Returns True if a row was removed, False if not found."""
        scope.check()
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        due_date=row.due_date,
        status=row.status,
    )
