"""
Password hashing and demo tokens

Demo tokens look like ``demo-token-<user uuid>-<issued ms>``. They identify a
user but are not signed; they exist for local testing only.
"""
import time
import uuid
from typing import Optional

import bcrypt

from student_dashboard import config

DEMO_TOKEN_PREFIX = "demo-token-"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds or config.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def create_demo_token(user_id: uuid.UUID) -> str:
    return f"{DEMO_TOKEN_PREFIX}{user_id}-{int(time.time() * 1000)}"


def parse_demo_token(token: str) -> Optional[uuid.UUID]:
    """
    Extract the user id from a demo token.

    Returns:
        The user UUID, or None when the token is malformed
    """
    if not token or not token.startswith(DEMO_TOKEN_PREFIX):
        return None

    # The UUID itself contains hyphens, so split the timestamp off the right
    user_part, _, issued = token[len(DEMO_TOKEN_PREFIX):].rpartition("-")
    if not user_part or not issued.isdigit():
        return None

    try:
        return uuid.UUID(user_part)
    except ValueError:
        return None
