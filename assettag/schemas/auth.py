from typing import Optional

from pydantic import EmailStr, Field, field_validator

from .common import CamelModel
from .users import UserResponse, UserRole


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Optional[UserRole] = None
    department: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class LoginRequest(CamelModel):
    email: str
    password: str


class AuthResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    token: str
    user: UserResponse


class UpdatePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ForgotPasswordRequest(CamelModel):
    email: str


class ForgotPasswordResponse(CamelModel):
    success: bool = True
    message: str
    reset_token: Optional[str] = None  # dev environments only


class ResetPasswordRequest(CamelModel):
    password: str = Field(min_length=6)


class SuccessResponse(CamelModel):
    success: bool = True
    message: str
