"""Password hashing utilities.

Learn: bcrypt salts automatically and stores the work factor inside the
hash ("$2b$12$..."), so changing VIDSHARE_BCRYPT_ROUNDS only affects new
hashes; existing ones keep verifying.
"""

import bcrypt

from vidshare.config import settings

# bcrypt only looks at the first 72 bytes
_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    pw_bytes = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_MAX_PASSWORD_BYTES],
            password_hash.encode("utf-8"),
        )
    except (ValueError, TypeError):
        return False
