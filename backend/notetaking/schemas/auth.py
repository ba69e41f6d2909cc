"""
Auth request/response schemas.

Emails are lower-cased on the way in so that "A@x.com" and "a@x.com" are the
same account; the unique index on users.email then enforces one row per address.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

PASSWORD_MIN_LENGTH = 6
FULL_NAME_MAX_LENGTH = 100


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    full_name: str = Field(max_length=FULL_NAME_MAX_LENGTH)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: EmailStr) -> str:
        return str(v).lower()

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: EmailStr) -> str:
        return str(v).lower()


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenPairResponse(BaseModel):
    token: str = Field(description="Bearer access token")
    refresh_token: str = Field(description="Token accepted by POST /auth/refresh")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(description="Access token lifetime in seconds")


class AuthResponse(TokenPairResponse):
    """Returned by register (201) and login (200)."""

    id: int
    email: str
    full_name: str
