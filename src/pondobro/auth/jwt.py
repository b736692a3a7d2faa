"""Token issuance and verification.

Learn: Two kinds of credential with very different shapes:
- Access token: a signed JWT (HS256) carrying sub/email/role, valid for
  an hour by default. Verified by signature + expiry + iss/aud, never stored.
- Refresh token: 32 random bytes, base64 encoded. No claims at all; it
  is only meaningful as the key of a row in the sessions table.

TokenService is independent of storage; the auth workflow persists the
refresh token it hands out.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from pondobro.config import Settings, settings as default_settings

# Fallback identifier claim, checked when "sub" is absent.
USER_ID_FALLBACK_CLAIM = "nameid"

REFRESH_TOKEN_BYTES = 32


class TokenError(Exception):
    """Raised when an access token fails verification."""


class TokenService:
    """Creates access/refresh tokens from the configured secret and lifetimes."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings

    def create_access_token(self, user) -> str:
        """Create a signed access token for *user* (anything with id/email/role)."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "iss": self.config.jwt_issuer,
            "aud": self.config.jwt_audience,
            "iat": now,
            "exp": now + timedelta(minutes=self.config.access_token_expire_minutes),
        }
        return jwt.encode(
            payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm
        )

    def create_refresh_token(self) -> str:
        """32 cryptographically random bytes, base64url without padding.

        The URL-safe alphabet keeps the value legal inside a cookie
        without quoting.
        """
        return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)

    def refresh_expiry(self) -> datetime:
        return datetime.now(timezone.utc) + timedelta(
            days=self.config.refresh_token_expire_days
        )

    def decode_access_token(self, token: str) -> dict:
        """Verify and decode an access token.

        Returns the claims dict on success.
        Raises TokenError on failure.
        """
        try:
            return jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.jwt_algorithm],
                audience=self.config.jwt_audience,
                issuer=self.config.jwt_issuer,
            )
        except jwt.ExpiredSignatureError:
            raise TokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")


def user_id_from_claims(claims: dict) -> Optional[int]:
    """Pull an integer user id out of verified claims, or None."""
    raw = claims.get("sub") or claims.get(USER_ID_FALLBACK_CLAIM)
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
