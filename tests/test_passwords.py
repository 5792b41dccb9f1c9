"""
tests/test_passwords.py -- Unit tests for auth/passwords.py (PasswordHasher).

Coverage:
  - hash() output is a bcrypt hash that differs between calls (salted)
  - verify() accepts the original password and rejects others
  - verify() returns False for empty or malformed stored hashes instead of raising
  - equalize() runs without a stored hash and returns nothing
"""

from __future__ import annotations

import pytest

from auth.passwords import PasswordHasher


@pytest.fixture(scope="module")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


class TestHash:
    def test_hash_is_not_plaintext(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("s3cret-password")
        assert hashed != "s3cret-password"
        assert hashed.startswith("$2")

    def test_hash_is_salted(self, hasher: PasswordHasher) -> None:
        """Two hashes of the same password differ, yet both verify."""
        first = hasher.hash("same-password")
        second = hasher.hash("same-password")
        assert first != second
        assert hasher.verify("same-password", first)
        assert hasher.verify("same-password", second)

    def test_hash_uses_configured_cost(self, hasher: PasswordHasher) -> None:
        assert hasher.hash("cost-check")[4:6] == "04"


class TestVerify:
    def test_correct_password(self, hasher: PasswordHasher) -> None:
        assert hasher.verify("right-password", hasher.hash("right-password")) is True

    def test_wrong_password(self, hasher: PasswordHasher) -> None:
        assert hasher.verify("wrong-password", hasher.hash("right-password")) is False

    @pytest.mark.parametrize("stored", [None, "", "not-a-bcrypt-hash"])
    def test_bad_stored_hash_returns_false(self, hasher: PasswordHasher, stored) -> None:
        assert hasher.verify("anything", stored) is False

    def test_equalize_returns_none(self, hasher: PasswordHasher) -> None:
        assert hasher.equalize("unknown-user-password") is None
