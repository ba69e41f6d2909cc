"""
Note Taking API — Auth Service
================================

What:  Account registration, credential login and token refresh.
How:   argon2id password hashes (password_hasher), HS256 JWTs (token_service),
       users table through the request session.

Error mapping:
    email already registered       → ConflictError (409)
    unknown email / wrong password → UnauthorizedError (401), same message
                                     for both so accounts cannot be enumerated
    bad or wrong-type refresh token → UnauthorizedError (401)
"""

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.exceptions import ConflictError, DatabaseError, UnauthorizedError
from notetaking.models import User
from notetaking.models.note import utc_now
from notetaking.schemas.auth import AuthResponse, TokenPairResponse
from notetaking.services.password_hasher import (
    dummy_password_hash,
    hash_password,
    needs_rehash,
    verify_password,
)
from notetaking.services.token_service import REFRESH, token_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:

    def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            token=token_service.create_access_token(user.id, user.email),
            refresh_token=token_service.create_refresh_token(user.id, user.email),
            expires_in=token_service.access_token_ttl_seconds,
        )

    async def _find_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def register(
        self, db: AsyncSession, email: str, password: str, full_name: str
    ) -> AuthResponse:
        """
        Create an account and sign it in.

        The pre-check gives the common case a clean 409; the unique index
        catches the race where two registrations for one email overlap.

        Raises:
            ConflictError: Email already registered (→ 409)
            DatabaseError: Any other storage failure
        """
        try:
            if await self._find_by_email(db, email) is not None:
                raise ConflictError(
                    message="User with this email already exists",
                    context={"email": email},
                )

            password_hash = await asyncio.to_thread(hash_password, password)
            user = User(email=email, password_hash=password_hash, full_name=full_name)
            async with db.begin_nested():
                db.add(user)
                await db.flush()
        except IntegrityError as e:
            raise ConflictError(
                message="User with this email already exists",
                context={"email": email},
            ) from e
        except SQLAlchemyError as e:
            logger.error("Failed to save user %s: %s", email, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create user account",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("User %s registered successfully", email)
        return self._auth_response(user)

    async def login(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Raises:
            UnauthorizedError: Unknown email or wrong password (→ 401)
        """
        try:
            user = await self._find_by_email(db, email)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__}) from e

        # argon2 runs on a worker thread; unknown emails verify against a dummy
        # hash so both rejections take the same time
        stored_hash = user.password_hash if user is not None else dummy_password_hash()
        matches = await asyncio.to_thread(verify_password, password, stored_hash)
        if user is None or not matches:
            logger.warning("Failed login attempt for email %s", email)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if needs_rehash(user.password_hash):
            user.password_hash = await asyncio.to_thread(hash_password, password)
            user.updated_at = utc_now()
            logger.info("Upgraded password hash parameters for user %s", user.id)

        logger.info("User %s logged in successfully", email)
        return self._auth_response(user)

    def refresh(self, refresh_token: str) -> TokenPairResponse:
        """
        Exchange a valid refresh token for a new access/refresh pair.

        Raises:
            UnauthorizedError: Token invalid, expired or not a refresh token
        """
        payload = token_service.decode(refresh_token, expected_type=REFRESH)
        user_id = token_service.user_id_from(payload)
        email = payload.get("email") or ""

        logger.info("Token refreshed for user %s", user_id)
        return TokenPairResponse(
            token=token_service.create_access_token(user_id, email),
            refresh_token=token_service.create_refresh_token(user_id, email),
            expires_in=token_service.access_token_ttl_seconds,
        )


auth_service = AuthService()
