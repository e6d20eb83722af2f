"""
JWT access and refresh tokens.

Both token kinds carry the same claims plus a ``type`` claim and are signed
with different keys: an access token never validates as a refresh token and
vice versa. Tokens are stateless; there is no revocation list.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ExpiredTokenError, InvalidClaimsError, InvalidTokenError
from .models import TokenClaims, TokenPair

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["exp", "iat", "nbf", "iss", "sub", "type"]

ACCESS = "access"
REFRESH = "refresh"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JWTManager:
    """
    Issues and validates HS256 token pairs.

    Only the configured algorithm is accepted on decode, and no clock
    leeway is allowed. ``clock`` controls the issue time of new tokens.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = timedelta(minutes=30),
        refresh_ttl: timedelta = timedelta(days=7),
        issuer: str = "portcullis",
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use different signing secrets")
        self._access_ttl = access_ttl
        self._issuer = issuer
        self._algorithm = algorithm
        self._clock = clock or _utcnow
        self._keys = {
            ACCESS: (access_secret, access_ttl),
            REFRESH: (refresh_secret, refresh_ttl),
        }

    # -------------------------------------------------------------------------
    # Issuing
    # -------------------------------------------------------------------------

    def issue_pair(self, user_id: int, email: str) -> TokenPair:
        """Issue a new access token and refresh token for a user."""
        now = self._clock()
        access_token = self._encode(user_id, email, ACCESS, now)
        refresh_token = self._encode(user_id, email, REFRESH, now)
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=now + self._access_ttl,
        )

    def refresh_access(self, refresh_token: str) -> str:
        """
        Mint a new access token from a valid refresh token.

        The refresh token itself stays valid until it expires.

        Raises:
            ExpiredTokenError, InvalidTokenError, InvalidClaimsError
        """
        claims = self.validate_refresh(refresh_token)
        return self._encode(claims.user_id, claims.email, ACCESS, self._clock())

    def access_expires_at(self) -> datetime:
        """Expiry of an access token issued now."""
        return self._clock() + self._access_ttl

    def _encode(
        self,
        user_id: int,
        email: str,
        token_type: str,
        now: datetime,
    ) -> str:
        secret, ttl = self._keys[token_type]
        payload = {
            "type": token_type,
            "user_id": user_id,
            "email": email,
            "sub": email,
            "iss": self._issuer,
            "iat": now,
            "nbf": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_access(self, token: str) -> TokenClaims:
        return self._decode(token, ACCESS)

    def validate_refresh(self, token: str) -> TokenClaims:
        return self._decode(token, REFRESH)

    def _decode(self, token: str, token_type: str) -> TokenClaims:
        secret, _ = self._keys[token_type]
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                leeway=0,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except (jwt.MissingRequiredClaimError, jwt.InvalidIssuerError) as e:
            raise InvalidClaimsError(str(e))
        except jwt.PyJWTError as e:
            logger.debug(f"Rejected token: {e}")
            raise InvalidTokenError()

        if payload["type"] != token_type:
            logger.debug(f"Rejected {payload['type']!r} token where {token_type!r} was expected")
            raise InvalidTokenError()

        try:
            return TokenClaims(**payload)
        except PydanticValidationError as e:
            raise InvalidClaimsError(f"Malformed claims: {e.error_count()} error(s)")
