from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config.settings import RATE_LIMIT_ENABLED
from .tokens import read_token


def client_key(request: Request) -> str:
    """
    Key function for SlowAPI.
    Signed-in callers share one bucket per account whatever address they use;
    anonymous callers are bucketed by client address.
    """
    user = getattr(request.state, "user", None)
    if user is None:
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() == "bearer" and token:
            user = read_token(token)

    if user is not None:
        return f"{user.role}:{user.id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=client_key, enabled=RATE_LIMIT_ENABLED)
