"""Password hashing with bcrypt."""

from dataclasses import dataclass

import bcrypt


@dataclass(frozen=True)
class PasswordHasher:
    """Hash and verify user passwords."""

    rounds: int = 12

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str | None, password_hash: str | None) -> bool:
        """Return true when the password matches the stored hash."""
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False
