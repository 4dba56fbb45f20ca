from pydantic import EmailStr, Field, field_validator

from app.core.schemas import CamelModel
from app.modules.users.schemas import UserResponse


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    display_name: str = Field(max_length=80)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Display name is required")
        return value


class ExternalLoginRequest(CamelModel):
    id_token: str = Field(min_length=1)


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserResponse
