"""
Auth routes: the only endpoints reachable without a bearer token.

    POST /auth/register  → 201 account + tokens | 409 email taken
    POST /auth/login     → 200 account + tokens | 401
    POST /auth/refresh   → 200 new token pair   | 401
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from notetaking.database import get_db_session
from notetaking.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
)
from notetaking.schemas.common import ErrorResponse
from notetaking.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
    summary="Register a new user",
    description="Creates a new user account and returns authentication tokens",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(
        db=db, email=body.email, password=body.password, full_name=body.full_name
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Login user",
    description="Authenticates user and returns authentication tokens",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db=db, email=body.email, password=body.password)


@router.post(
    "/refresh",
    response_model=TokenPairResponse,
    responses={401: {"description": "Invalid refresh token", "model": ErrorResponse}},
    summary="Refresh authentication token",
    description="Exchanges a refresh token for a new access/refresh token pair",
)
async def refresh(body: RefreshRequest) -> TokenPairResponse:
    return auth_service.refresh(body.refresh_token)
