from pydantic import BaseModel
from typing import Optional

class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class CurrentUser(BaseModel):
    """Identity resolved from a session token, passed explicitly into handlers."""

    userId: str
    email: str
    username: str

class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: CurrentUser
