import structlog
from fastapi import HTTPException, status
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import Conflict, NotFound, ValidationFailed
from shared.security import dashboard_path, issue_token, onboarding_path

from .models import User
from .repository import UserRepository
from .schemas import (
    PasswordChange,
    ProfileUpdate,
    RegisterResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)

logger = structlog.get_logger(__name__)

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _token_for(user: User) -> str:
    return issue_token(user.id, user.role)


class AuthService:

    @staticmethod
    def _hash_password(password: str) -> str:
        return _pwd_context.hash(password)

    @staticmethod
    def _verify_password(plain: str, hashed: str) -> bool:
        return _pwd_context.verify(plain, hashed)

    @staticmethod
    async def register(db: AsyncSession, data: UserCreate) -> RegisterResponse:
        existing = await UserRepository.get_by_email(db, data.email)
        if existing:
            raise Conflict("Email already registered")
        user = User(
            name=data.name,
            email=data.email,
            phone=data.phone,
            role=data.role,
            hashed_password=AuthService._hash_password(data.password),
            is_active=True,
        )
        user = await UserRepository.create(db, user)
        logger.info("user_registered", user_id=user.id, role=user.role)
        return RegisterResponse(
            access_token=_token_for(user),
            role=user.role,
            redirect_to=onboarding_path(user.role),
            user=UserResponse.model_validate(user),
        )

    @staticmethod
    async def login(db: AsyncSession, data: UserLogin) -> TokenResponse:
        user = await UserRepository.get_by_email(db, data.email)
        if not user or not AuthService._verify_password(data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is disabled",
            )
        await UserRepository.touch_login(db, user)
        logger.info("user_logged_in", user_id=user.id, role=user.role)
        return TokenResponse(
            access_token=_token_for(user),
            role=user.role,
            redirect_to=dashboard_path(user.role),
        )

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
        user = await UserRepository.get_by_id(db, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    async def update_profile(db: AsyncSession, user_id: int, data: ProfileUpdate) -> User:
        user = await AuthService.get_user_by_id(db, user_id)
        for field, value in data.model_dump().items():
            setattr(user, field, value)
        return await UserRepository.save(db, user)

    @staticmethod
    async def change_password(db: AsyncSession, user_id: int, data: PasswordChange) -> None:
        user = await AuthService.get_user_by_id(db, user_id)
        if not AuthService._verify_password(data.current_password, user.hashed_password):
            raise ValidationFailed(
                "Current password is incorrect",
                errors=[{"field": "current_password", "message": "Current password is incorrect"}],
            )
        user.hashed_password = AuthService._hash_password(data.password)
        await UserRepository.save(db, user)
        logger.info("password_changed", user_id=user.id)
