"""
Single-use secret tokens for email verification and password reset.

Tokens are 32 random bytes from the OS entropy source, hex encoded. They
are stored server-side next to the user record with an expiry and cleared
once consumed.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from .exceptions import InvalidTokenFormatError, TokenGenerationError

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2
DEFAULT_TOKEN_TTL = timedelta(hours=24)

_HEX_DIGITS = frozenset(string.hexdigits)


def generate_secret_token() -> str:
    """
    Generate a new 64-character lowercase hex token.

    Raises:
        TokenGenerationError: If the entropy source is unavailable
    """
    try:
        return secrets.token_hex(TOKEN_BYTES)
    except OSError as e:
        logger.error(f"Entropy source failure while generating token: {e}")
        raise TokenGenerationError() from e


def generate_secret_token_with_expiry(
    ttl: timedelta = DEFAULT_TOKEN_TTL,
    now: Optional[datetime] = None,
) -> tuple[str, datetime]:
    """Generate a token together with its absolute expiry time (UTC)."""
    issued_at = now or datetime.now(timezone.utc)
    return generate_secret_token(), issued_at + ttl


def validate_token_format(token: str) -> None:
    """
    Check that a token has the shape produced by generate_secret_token.

    This only inspects the string; it says nothing about whether the token
    exists in storage.

    Raises:
        InvalidTokenFormatError: For empty, wrong-length, or non-hex input
    """
    if not token:
        raise InvalidTokenFormatError("token cannot be empty")
    if len(token) != TOKEN_LENGTH:
        raise InvalidTokenFormatError(f"token must be {TOKEN_LENGTH} characters")
    if not _HEX_DIGITS.issuperset(token):
        raise InvalidTokenFormatError("token must be hexadecimal")


def is_token_expired(
    expires_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> bool:
    """Return True if the expiry has passed. A missing expiry counts as expired."""
    if expires_at is None:
        return True
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return (now or datetime.now(timezone.utc)) > expires_at
