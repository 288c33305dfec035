"""Pydantic schemas for the signup/login endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.security import BCRYPT_MAX_BYTES
from app.models.user import UserRecord


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class SignUpRequest(BaseModel):
    """Registration payload."""

    name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Display name (2-100 characters).",
    )
    email: EmailStr = Field(..., description="Email address; unique across users.")
    password: str = Field(
        ...,
        min_length=6,
        description="Plaintext password (at least 6 characters, at most 72 bytes).",
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"must be at most {BCRYPT_MAX_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Credentials payload."""

    email: EmailStr = Field(..., description="Registered email address.")
    password: str = Field(..., min_length=1, description="Plaintext password.")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class UserPublic(BaseModel):
    """Public projection of a user.

    There is deliberately no password field: the only constructor path from
    a stored record is ``from_record``, which copies the safe fields.
    """

    id: str = Field(..., description="Opaque unique user id.")
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserPublic":
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class TokenResponse(BaseModel):
    """Successful login payload."""

    token: str = Field(..., description="Signed bearer token (HS256 JWT, valid for 24h).")
