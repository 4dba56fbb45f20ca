from fastapi import APIRouter, Depends, Request
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import LoginRequest, RegisterRequest, ExternalLoginRequest, AuthResponse
from app.modules.auth.service import AuthService
from app.modules.auth.identity import GoogleIdentityVerifier, get_identity_verifier
from app.modules.users.schemas import UserProfileResponse
from app.core.dependencies import get_current_user
from app.core.rate_limit import limiter
from app.core.security import SessionUser
from app.config import settings
from supabase import AsyncClient

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(supabase: AsyncClient = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user and return a session token"""
    return await service.register(register_data)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login with email and password"""
    return await service.login(login_data)


@router.post("/external", response_model=AuthResponse)
@limiter.limit(settings.auth_rate_limit)
async def external_login(
    request: Request,
    login_data: ExternalLoginRequest,
    service: AuthService = Depends(get_auth_service),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier)
):
    """Exchange a third-party identity token for a session token"""
    return await service.external_login(login_data.id_token, verifier)


@router.get("/me", response_model=UserProfileResponse)
async def get_current_user_profile(
    current_user: SessionUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Get the current user's profile"""
    return await service.get_profile(current_user)
