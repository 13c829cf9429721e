"""
Role and permission table.

Every account carries exactly one role. Permissions are resolved from the
role at request time, so changing this table changes access for existing
tokens too.
"""
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    BUYER = "buyer"
    SHOP = "shop"
    DRIVER = "driver"
    TECHNICIAN = "technician"


# Roles a visitor may pick when registering; admins are provisioned directly.
SELF_REGISTER_ROLES = (Role.BUYER, Role.SHOP, Role.DRIVER, Role.TECHNICIAN)

PERMISSIONS = (
    "view_products",
    "create_products",
    "edit_products",
    "delete_products",
    "view_orders",
    "create_orders",
    "edit_orders",
    "delete_orders",
    "view_users",
    "create_users",
    "edit_users",
    "delete_users",
    "view_reviews",
    "create_reviews",
    "edit_reviews",
    "delete_reviews",
    "manage_system",
)

ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.ADMIN: frozenset(PERMISSIONS),
    Role.BUYER: frozenset({
        "view_products",
        "create_orders",
        "view_orders",
        "create_reviews",
        "view_reviews",
    }),
    Role.SHOP: frozenset({
        "view_products",
        "create_products",
        "edit_products",
        "view_orders",
        "edit_orders",
        "view_reviews",
    }),
    Role.DRIVER: frozenset({"view_orders", "edit_orders", "view_reviews"}),
    Role.TECHNICIAN: frozenset({"view_orders", "edit_orders", "view_reviews"}),
}

DASHBOARD_PATHS = {
    Role.ADMIN: "/admin/dashboard",
    Role.SHOP: "/shop/dashboard",
    Role.DRIVER: "/driver/dashboard",
    Role.TECHNICIAN: "/technician/dashboard",
    Role.BUYER: "/buyer/dashboard",
}

# Where a freshly registered account continues; provider roles finish a profile first.
ONBOARDING_PATHS = {
    Role.SHOP: "/shop/setup",
    Role.DRIVER: "/driver/setup",
    Role.TECHNICIAN: "/technician/setup",
    Role.BUYER: "/buyer/dashboard",
}


def has_permission(role: str, permission: str) -> bool:
    try:
        return permission in ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return False


def dashboard_path(role: str) -> str:
    return DASHBOARD_PATHS.get(Role(role), DASHBOARD_PATHS[Role.BUYER])


def onboarding_path(role: str) -> str:
    return ONBOARDING_PATHS.get(Role(role), DASHBOARD_PATHS[Role.BUYER])
