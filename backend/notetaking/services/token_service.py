"""
Note Taking API — Token Service
=================================

What:  Issues and verifies the signed bearer credentials (JWT, HS256).
Why:   Every note/tag endpoint derives the caller's identity from the token,
       never from a request parameter.
How:   PyJWT encode/decode with issuer, audience and expiry enforced.

Claims:
    sub    user id as a string (JWT requires string subjects)
    email  informational, not trusted for authorization
    type   "access" for API calls, "refresh" for POST /auth/refresh only
    iss / aud / iat / exp / jti

Any verification failure surfaces as UnauthorizedError; the reason is
logged at DEBUG level and never returned to the client.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict
from uuid import uuid4

import jwt

from notetaking.config import settings
from notetaking.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"

REQUIRED_CLAIMS = ["sub", "type", "exp", "iat", "iss", "aud"]


class TokenService:
    """Stateless JWT issuer/verifier configured from settings."""

    def _encode(self, user_id: int, email: str, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "type": token_type,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": str(uuid4()),
        }
        return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    @property
    def access_token_ttl_seconds(self) -> int:
        return settings.access_token_expire_minutes * 60

    def create_access_token(self, user_id: int, email: str) -> str:
        return self._encode(
            user_id, email, ACCESS, timedelta(minutes=settings.access_token_expire_minutes)
        )

    def create_refresh_token(self, user_id: int, email: str) -> str:
        return self._encode(
            user_id, email, REFRESH, timedelta(days=settings.refresh_token_expire_days)
        )

    def decode(self, token: str, expected_type: str) -> Dict[str, Any]:
        """
        Verify signature, expiry, issuer, audience and token type.

        Raises:
            UnauthorizedError: for any invalid, expired or wrong-type token
        """
        try:
            payload = jwt.decode(
                token,
                key=settings.jwt_secret,
                algorithms=[settings.jwt_algorithm],
                audience=settings.jwt_audience,
                issuer=settings.jwt_issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected token: %s", exc)
            raise UnauthorizedError("Invalid token") from exc

        if payload.get("type") != expected_type:
            raise UnauthorizedError("Invalid token")
        return payload

    def user_id_from(self, payload: Dict[str, Any]) -> int:
        """Parse the numeric user id out of `sub`; never falls back to a default."""
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise UnauthorizedError("Invalid token") from exc
        if user_id <= 0:
            raise UnauthorizedError("Invalid token")
        return user_id


token_service = TokenService()
