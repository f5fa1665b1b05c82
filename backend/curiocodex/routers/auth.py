from typing import Optional
from fastapi import APIRouter, Depends
from ..dependencies import bearer_token, get_auth_service, get_current_user
from ..schemas.auth import AuthResponse, CurrentUser, LoginRequest, RegisterRequest
from ..services.auth_service import AuthService

router = APIRouter(prefix="/api", tags=["auth"])

@router.post("/auth/register", response_model=AuthResponse)
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    token, user = auth.register(payload)
    return AuthResponse(token=token, user=user)

@router.post("/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    token, user = auth.login(payload)
    return AuthResponse(token=token, user=user)

@router.post("/auth/logout")
def logout(token: Optional[str] = Depends(bearer_token), auth: AuthService = Depends(get_auth_service)):
    auth.logout(token)
    return {"success": True}

@router.get("/user/profile")
def profile(user: CurrentUser = Depends(get_current_user), auth: AuthService = Depends(get_auth_service)):
    return {"user": auth.profile(user)}
