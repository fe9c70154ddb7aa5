"""bcrypt password hashing."""

import bcrypt

# bcrypt ignores (newer releases reject) input beyond this many bytes.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with a fresh salt.

    Args:
        password (str): Password in plain text
        rounds (int): bcrypt cost factor

    Returns:
        str: bcrypt hash"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode(
        "ascii"
    )


def check_password(password: str, password_hash: str) -> bool:
    """Compare a password against a stored bcrypt hash."""
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("ascii"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
