"""Password hashing service using bcrypt."""

from passlib.context import CryptContext


class PasswordService:
    """Hashes and verifies user passwords.

    Uses passlib's CryptContext so the scheme and work factor can change
    later without invalidating stored hashes (see needs_rehash).
    """

    def __init__(self, rounds: int = 12):
        """
        Args:
            rounds: bcrypt work factor (4 is the minimum; tests use it for speed)
        """
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hash: str) -> bool:
        """Check a password against a stored hash.

        A malformed or unrecognized hash counts as a mismatch.
        """
        try:
            return self._context.verify(password, hash)
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hash: str) -> bool:
        """True when the hash was made with outdated settings."""
        return self._context.needs_update(hash)
