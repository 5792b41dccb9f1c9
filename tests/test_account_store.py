"""
tests/test_account_store.py -- Unit tests for auth/store.py (AccountStore).

Store methods are synchronous and take a Scope, so each test opens a bounded
scope inside an anyio test and calls the store directly.

Coverage:
  - insert() assigns an id and returns the stored record
  - find_by_username / find_by_id return None for unknown keys
  - UNIQUE(username) raises IntegrityError on a second insert
  - bootstrap claim: a second ADMINISTRATOR insert is downgraded to MEMBER
  - a failed insert releases the bootstrap claim (transaction rollback)
  - update_role_by_id() reports whether a row matched
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import Account, Role
from auth.store import AccountStore
from core.scope import bounded_scope

pytestmark = pytest.mark.anyio


def _account(username: str, role: Role = Role.MEMBER) -> Account:
    return Account(username=username, role=role, hashed_password="$2b$04$placeholder")


async def test_insert_assigns_id(account_store: AccountStore) -> None:
    async with bounded_scope(5.0) as scope:
        created = account_store.insert(scope, _account("alice"))
        found = account_store.find_by_username(scope, "alice")
    assert created.id
    assert found == created
    assert found.created_at and found.updated_at


async def test_unknown_lookups_return_none(account_store: AccountStore) -> None:
    async with bounded_scope(5.0) as scope:
        assert account_store.find_by_username(scope, "nobody") is None
        assert account_store.find_by_id(scope, "0" * 32) is None


async def test_count_and_list(account_store: AccountStore) -> None:
    async with bounded_scope(5.0) as scope:
        assert account_store.count_all(scope) == 0
        account_store.insert(scope, _account("a"))
        account_store.insert(scope, _account("b"))
        assert account_store.count_all(scope) == 2
        assert {a.username for a in account_store.list_all(scope)} == {"a", "b"}


async def test_duplicate_username_raises(account_store: AccountStore) -> None:
    async with bounded_scope(5.0) as scope:
        account_store.insert(scope, _account("dup"))
        with pytest.raises(IntegrityError):
            account_store.insert(scope, _account("dup"))
        assert account_store.count_all(scope) == 1


async def test_second_admin_insert_is_downgraded(account_store: AccountStore) -> None:
    async with bounded_scope(5.0) as scope:
        first = account_store.insert(scope, _account("first", Role.ADMINISTRATOR))
        second = account_store.insert(scope, _account("second", Role.ADMINISTRATOR))
        stored = account_store.find_by_id(scope, second.id)
    assert first.role is Role.ADMINISTRATOR
    assert second.role is Role.MEMBER
    assert stored.role is Role.MEMBER


async def test_failed_insert_releases_claim(account_store: AccountStore) -> None:
    """A duplicate-username ADMINISTRATOR insert rolls back its claim with it."""
    async with bounded_scope(5.0) as scope:
        account_store.insert(scope, _account("taken"))
        with pytest.raises(IntegrityError):
            account_store.insert(scope, _account("taken", Role.ADMINISTRATOR))
        admin = account_store.insert(scope, _account("admin", Role.ADMINISTRATOR))
    assert admin.role is Role.ADMINISTRATOR


async def test_update_role_by_id(account_store: AccountStore) -> None:
    async with bounded_scope(5.0) as scope:
        member = account_store.insert(scope, _account("member"))
        assert account_store.update_role_by_id(scope, member.id, Role.ADMINISTRATOR) is True
        assert account_store.find_by_id(scope, member.id).role is Role.ADMINISTRATOR
        assert account_store.update_role_by_id(scope, "missing", Role.ADMINISTRATOR) is False


async def test_ping(account_store: AccountStore) -> None:
    assert account_store.ping() is True
