"""Pydantic schemas for the auth endpoints.

Learn: The frontend posts camelCase ``confirmPassword``; the alias maps
it onto a snake_case field. Validation failures here never reach the
service; FastAPI turns them into 400 responses with per-field messages.
"""

from pydantic import BaseModel, Field, ValidationInfo, field_validator

# One "@", something on both sides, a dot in the domain. Stored as typed.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class RegisterRequest(BaseModel):
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8)
    confirm_password: str = Field(alias="confirmPassword")

    model_config = {"populate_by_name": True}

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and value != password:
            raise ValueError("Passwords do not match")
        return value


class LoginRequest(BaseModel):
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8)


class UserSummary(BaseModel):
    id: int
    email: str
    role: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 3600
    user: UserSummary


class OkResponse(BaseModel):
    ok: bool = True
