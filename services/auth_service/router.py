from fastapi import APIRouter, Depends, Request, status
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.config.settings import LOGIN_RATE_LIMIT
from shared.security import CurrentUser, get_current_user, limiter

from .schemas import (
    MessageResponse,
    PasswordChange,
    ProfileUpdate,
    RegisterResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from .service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])
public_router = APIRouter()  # For any public endpoints (e.g. health check)


@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "souq", "status": "running"}


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account with one of the self-service roles",
)
async def register(payload: UserCreate, db: AsyncSession = Depends(get_db)):
    return await AuthService.register(db, payload)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and receive a JWT plus the role's landing page",
)
@limiter.limit(LOGIN_RATE_LIMIT, key_func=get_remote_address)
async def login(request: Request, payload: UserLogin, db: AsyncSession = Depends(get_db)):
    return await AuthService.login(db, payload)


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_user_by_id(db, user.id)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.update_profile(db, user.id, payload)


@router.put("/password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AuthService.change_password(db, user.id, payload)
    return MessageResponse(message="Password changed successfully")
