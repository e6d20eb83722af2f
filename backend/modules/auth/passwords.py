"""
Password hashing with bcrypt.
"""

import secrets
from typing import Optional

import bcrypt

DEFAULT_ROUNDS = 12


class PasswordHasher:
    """
    Salted bcrypt hashing.

    The work factor is embedded in every hash, so changing ``rounds`` only
    affects new hashes; existing ones keep verifying.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self._rounds = rounds
        self._dummy_hash: Optional[str] = None

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash. Malformed hashes never match."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, password: str) -> bool:
        """
        Spend the same work as ``verify`` against a throwaway hash.

        Used when there is no stored hash to check, so a missing account
        costs as much time as a wrong password. Always False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_hex(16))
        self.verify(password, self._dummy_hash)
        return False
