"""
Password hashing utilities using bcrypt
"""

import bcrypt

from app.core.config_manager import settings


class PasswordHasher:
    """Simple password hashing utility"""

    @staticmethod
    def hash_password(password: str, rounds: int = None) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password
            rounds: bcrypt cost factor, defaults to settings.bcrypt_rounds

        Returns:
            Hashed password as string
        """
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            password: Plain text password
            hashed_password: Previously hashed password

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        if not password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"), hashed_password.encode("utf-8")
            )
        except ValueError:
            return False


# Verified against when the identifier matches no user, so unknown users cost
# the same bcrypt work as known ones
DUMMY_PASSWORD_HASH = PasswordHasher.hash_password("tomevault-timing-equalizer")
