from .tokens import CurrentUser, issue_token, read_token
from .dependencies import get_current_user, get_optional_user, require_permission, require_roles
from .permissions import Role, dashboard_path, has_permission, onboarding_path
from .rate_limiter import client_key, limiter

__all__ = [
    "CurrentUser",
    "issue_token",
    "read_token",
    "get_current_user",
    "get_optional_user",
    "require_permission",
    "require_roles",
    "Role",
    "dashboard_path",
    "has_permission",
    "onboarding_path",
    "client_key",
    "limiter",
]
