"""
Access tokens.

A token carries the account id in `sub` and its role in `role`. Permissions
are looked up from the role on every request, so nothing else is embedded.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from shared.config.settings import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from .permissions import Role

if not JWT_SECRET_KEY:
    raise ValueError("FATAL ERROR: JWT_SECRET_KEY is not set in the environment!")


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


def issue_token(user_id: int, role: str, expires_in: Optional[timedelta] = None) -> str:
    """Signs a token for the account, expiring after ACCESS_TOKEN_EXPIRE_MINUTES by default."""
    expire = datetime.now(timezone.utc) + (expires_in or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(claims, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def read_token(token: str) -> Optional[CurrentUser]:
    """Returns None for a token that fails verification or lacks one of the claims."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None

    sub, role = payload.get("sub"), payload.get("role")
    if sub is None or role is None:
        return None
    try:
        return CurrentUser(id=int(sub), role=role)
    except ValueError:
        return None
