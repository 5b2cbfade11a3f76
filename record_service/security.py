"""
Secret hashing utilities.

Record secrets are stored as bcrypt hashes, never as plaintext.
"""

from typing import Optional

import bcrypt
import structlog

from .config import settings

logger = structlog.get_logger(__name__)

# bcrypt only reads the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


def _encode(secret: str) -> bytes:
    return secret.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_secret(secret: str, rounds: Optional[int] = None) -> str:
    """
    Hash a secret using bcrypt.

    Args:
        secret: Plain text secret
        rounds: bcrypt cost factor (defaults to PASSWORD_HASH_ROUNDS)

    Returns:
        Hashed secret string
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.PASSWORD_HASH_ROUNDS)
    hashed = bcrypt.hashpw(_encode(secret), salt)
    return hashed.decode("utf-8")


def verify_secret(secret: str, hashed_secret: str) -> bool:
    """
    Verify a secret against its hash.

    Args:
        secret: Plain text secret to verify
        hashed_secret: Stored hash to verify against

    Returns:
        True if secret matches, False otherwise
    """
    try:
        return bcrypt.checkpw(_encode(secret), hashed_secret.encode("utf-8"))
    except ValueError as e:
        logger.warning("Secret verification failed", error=str(e))
        return False
