"""
Password strength policy shared by registration, admin password reset and
self-service password change.
"""

import re

from app.core.exceptions import ValidationError

MIN_PASSWORD_LENGTH = 8
# bcrypt only accepts the first 72 bytes
MAX_PASSWORD_BYTES = 72

PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 8 characters long and contain at least one "
    "uppercase letter, one lowercase letter and one digit"
)


def validate_password_strength(password: str) -> None:
    """
    Raise ValidationError unless ``password`` satisfies the policy.

    Rules: at least 8 characters, one uppercase letter, one lowercase letter,
    one digit, and no more than 72 bytes once UTF-8 encoded.
    """
    if (
        not password
        or len(password) < MIN_PASSWORD_LENGTH
        or not re.search(r"[A-Z]", password)
        or not re.search(r"[a-z]", password)
        or not re.search(r"\d", password)
    ):
        raise ValidationError(PASSWORD_POLICY_MESSAGE)

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must not be longer than {MAX_PASSWORD_BYTES} bytes"
        )
