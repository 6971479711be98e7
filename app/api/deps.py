"""
FastAPI dependencies (DB session, authentication)
"""
import logging

from fastapi import Request
from sqlalchemy.orm import Session

from app.application.errors import UnauthenticatedError
from app.application.impersonation import SessionStack, impersonation_is_active
from app.application.roles import require_admin, require_role
from app.domain.role import Role
from app.infrastructure.db.session import get_db as _get_db
from app.infrastructure.db.models import Profile, User

logger = logging.getLogger(__name__)

# Re-export get_db для удобства
get_db = _get_db


def get_current_user_optional(request: Request, db: Session) -> User | None:
    """
    Пользователь из session, или None если не залогинен.

    Истёкший или закрытый вход от имени пользователя сбрасывается обратно
    на администратора.
    """
    stack = SessionStack(request.session)
    if stack.is_impersonating and not impersonation_is_active(db, stack.frame):
        admin_id = stack.pop()
        logger.info("Impersonation expired, session returned to admin %s", admin_id)

    user_id = stack.user_id
    if not user_id:
        return None
    return db.query(User).filter(User.id == user_id).first()


def get_current_user(request: Request, db: Session) -> User:
    """
    Получить текущего пользователя из session (для API endpoints)

    Raises:
        UnauthenticatedError(401): если не залогинен
    """
    user = get_current_user_optional(request, db)
    if not user:
        raise UnauthenticatedError()
    return user


def require_admin_user(request: Request, db: Session) -> User:
    """
    Текущий пользователь с ролью admin.

    Raises:
        UnauthenticatedError(401): нет сессии
        ForbiddenError(403): роль не admin (или роли нет)
    """
    user = get_current_user_optional(request, db)
    require_admin(db, user)
    return user


def require_operator(request: Request, db: Session) -> tuple[User, Role, str | None]:
    """
    admin или pvz. Для pvz возвращает его ПВЗ (из профиля): область видимости.
    """
    user = get_current_user_optional(request, db)
    role = require_role(db, user, Role.ADMIN, Role.PVZ)
    pvz_location = None
    if role == Role.PVZ:
        profile = db.query(Profile).filter(Profile.user_id == user.id).first()
        pvz_location = profile.pvz_location if profile else ""
    return user, role, pvz_location
