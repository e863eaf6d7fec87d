"""Pydantic schemas for account resources (users, toko) and login."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt only hashes the first 72 bytes and newer releases refuse longer input.
PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return value


class AccountCreateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100, description="Display name.")
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN, description="Unique email.")
    password: str = Field(..., min_length=6, max_length=32, description="Plain password.")
    password_confirm: str = Field(
        ..., min_length=6, max_length=32, description="Must equal password."
    )

    @field_validator("password", "password_confirm")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


class AccountUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)


class PasswordChangeRequest(BaseModel):
    password_old: str = Field(..., min_length=1, max_length=32)
    password_new: str = Field(..., min_length=6, max_length=32)
    password_confirm: str = Field(..., min_length=6, max_length=32)

    @field_validator("password_new", "password_confirm")
    @classmethod
    def check_password_bytes(cls, value: str) -> str:
        return _check_password_bytes(value)


class AccountResponse(BaseModel):
    """Public view of an account; the password hash is never included."""

    id: str
    name: str
    email: str


class AccountCreatedResponse(BaseModel):
    name: str
    email: str


class AccountIdResponse(BaseModel):
    id: str


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1, max_length=32)


class LoginResponse(BaseModel):
    email: str
    name: str
    user_id: str
    token: str = Field(..., description="Bearer token for the Authorization header.")
