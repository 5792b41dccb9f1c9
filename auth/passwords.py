"""
auth/passwords.py -- One-way password hashing (bcrypt, used directly).

bcrypt is the right choice for low-entropy secrets because its cost factor
makes brute force expensive. The cost (rounds) comes from Settings so tests
can run at the minimum of 4.

bcrypt only looks at the first 72 bytes of its input. Rather than truncating
silently, AccountService rejects longer passwords before they reach hash().

The dummy hash computed at construction backs equalize(): login runs one
bcrypt check whether or not the username exists, so response time does not
reveal which usernames are registered.
"""

from __future__ import annotations

import bcrypt

from core.errors import HashingError

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("taskguard_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt hash. Two calls on the same input differ."""
        try:
            return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingError() from exc

    def verify(self, plain: str, hashed: str | None) -> bool:
        """Return True if plain matches hashed. Malformed hashes return False."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def equalize(self, plain: str) -> None:
        """Spend one bcrypt check on a throwaway hash (unknown-username path)."""
        self.verify(plain, self._dummy_hash)
