"""
Roles: every identity has at most one role row
"""
from enum import Enum


class Role(str, Enum):
    USER = "user"
    PVZ = "pvz"      # pickup point operator
    ADMIN = "admin"


ROLE_LABELS = {
    Role.USER: "Пользователь",
    Role.PVZ: "Админ ПВЗ",
    Role.ADMIN: "Администратор",
}

ADMIN_HOME = "/admin/users"
USER_HOME = "/dashboard"


def parse_role(value: str | None) -> Role | None:
    """'admin' -> Role.ADMIN; unknown or missing -> None"""
    try:
        return Role(value)
    except ValueError:
        return None


def home_path(role: Role | None) -> str:
    """Landing page after login: admins go to the console, everyone else to the dashboard"""
    return ADMIN_HOME if role == Role.ADMIN else USER_HOME
