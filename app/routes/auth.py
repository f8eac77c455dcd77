from fastapi import APIRouter, Depends, Request, status

from app.dependencies import get_auth_service, get_current_user
from app.models import Identity, Role, User
from app.rate_limiter import limiter
from app.schemas import (
    AdminCheckResponse,
    AdminExistsResponse,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/check-admin-exists", response_model=AdminExistsResponse)
def check_admin_exists(auth: AuthService = Depends(get_auth_service)):
    exists = auth.admin_exists()
    return AdminExistsResponse(
        admin_exists=exists,
        message="Admin exists" if exists else "No admin found",
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def register(request: Request, body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    token, user = auth.register(body.username, body.password, body.name, body.email)
    return AuthResponse(message="Registration successful", token=token, user=user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    token, user = auth.login(body.username, body.password)
    return AuthResponse(message="Login successful", token=token, user=user)


@router.get("/check-admin", response_model=AdminCheckResponse)
def check_admin(
    identity: Identity = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    user = auth.get_user(identity.user_id)
    return AdminCheckResponse(is_admin=user.role == Role.ADMIN, user=user)


@router.get("/me", response_model=User)
def me(identity: Identity = Depends(get_current_user), auth: AuthService = Depends(get_auth_service)):
    return auth.get_user(identity.user_id)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(identity.user_id, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")
