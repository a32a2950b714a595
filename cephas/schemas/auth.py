from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List

from .records import User
from .views import View


class LoginRequest(BaseModel):
    identifier: str  # username or email
    password: str


class LoginData(View):
    token: str
    token_type: str = "bearer"
    user: User


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(min_length=8)


class MeResponse(View):
    user: User
    role_name: str
    permissions: List[str] = []
    modules: List[str] = []
    dashboard: Optional[str] = None
