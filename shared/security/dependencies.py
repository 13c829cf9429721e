from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from .permissions import Role, has_permission
from .tokens import CurrentUser, read_token

# Defines the expected header format (Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


async def get_current_user(request: Request, token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Dependency to validate the JWT and return the caller's id and role."""
    user = read_token(token) if token else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Rate limiting keys off the caller once the token has been read
    request.state.user = user
    return user


async def get_optional_user(request: Request, token: str = Depends(oauth2_scheme)) -> Optional[CurrentUser]:
    """Like get_current_user, but anonymous callers get None instead of a 401."""
    user = read_token(token) if token else None
    if user is not None:
        request.state.user = user
    return user


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold one of the given roles."""
    allowed = {r.value for r in roles}

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="This area is restricted to: " + ", ".join(sorted(allowed)),
            )
        return user

    return checker


def require_permission(permission: str):
    """Dependency factory: the caller's role must grant the permission."""

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_permission(user.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )
        return user

    return checker
