"""
Note Taking API — Caller Identity Dependency
==============================================

What:  Resolves the authenticated user id from the Authorization header.
Why:   Every note and tag operation is scoped to its owner; the id must come
       from a verified token, never from the request body or query string.
How:   FastAPI dependency. Runs before the handler body, so a rejected
       credential never reaches any service or opens a write.

Rejected (401, WWW-Authenticate: Bearer):
    - no Authorization header, or a scheme other than Bearer
    - bad signature, expired, wrong issuer/audience
    - a refresh token presented as an access token
    - a `sub` claim that is missing or not a positive integer
"""

from typing import Optional

from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notetaking.exceptions import UnauthorizedError
from notetaking.services.token_service import ACCESS, token_service

# auto_error=False: a missing header goes through our own 401 envelope
http_bearer = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(http_bearer),
) -> int:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")
    payload = token_service.decode(credentials.credentials, expected_type=ACCESS)
    return token_service.user_id_from(payload)
