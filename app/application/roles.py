"""
Role store: resolve, gate, change and delete role assignments.
"""
from sqlalchemy.orm import Session

from app.application.errors import ForbiddenError, NotFoundError, UnauthenticatedError, ValidationError
from app.domain.role import Role, parse_role
from app.infrastructure.db.models import Profile, User, UserRole
from app.infrastructure.eventlog.repository import EventLogRepository


def resolve_role(db: Session, user_id: int) -> Role | None:
    """
    Role of an identity. No row (or an unknown value) means no privilege.
    """
    row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    return parse_role(row.role) if row else None


def require_role(db: Session, user: User | None, *allowed: Role) -> Role:
    """
    Raises:
        UnauthenticatedError: no session user
        ForbiddenError: role missing or not in allowed
    """
    if user is None:
        raise UnauthenticatedError()
    role = resolve_role(db, user.id)
    if role is None or role not in allowed:
        raise ForbiddenError()
    return role


def require_admin(db: Session, user: User | None) -> Role:
    return require_role(db, user, Role.ADMIN)


def assign_role(db: Session, user_id: int, role: Role) -> UserRole:
    """Create or overwrite the single role row of user_id (no commit)"""
    row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    if row is None:
        row = UserRole(user_id=user_id, role=role.value)
        db.add(row)
    else:
        row.role = role.value
    db.flush()
    return row


class ListRolesUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self) -> list[dict]:
        rows = (
            self.db.query(UserRole, Profile)
            .outerjoin(Profile, Profile.user_id == UserRole.user_id)
            .order_by(UserRole.role, UserRole.id)
            .all()
        )
        return [
            {
                "id": role_row.id,
                "user_id": role_row.user_id,
                "role": role_row.role,
                "client_code": profile.client_code if profile else None,
                "full_name": profile.full_name if profile else None,
            }
            for role_row, profile in rows
        ]


class ChangeRoleUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, role_id: int, new_role: str, actor_user_id: int) -> None:
        role = parse_role(new_role)
        if role is None:
            raise ValidationError(f"Неизвестная роль: {new_role}")

        row = self.db.query(UserRole).filter(UserRole.id == role_id).first()
        if not row:
            raise NotFoundError("Роль не найдена")

        old_role = row.role
        row.role = role.value
        EventLogRepository(self.db).append_event(
            event_type="role_changed",
            payload={"from": old_role, "to": role.value},
            actor_user_id=actor_user_id,
            subject_user_id=row.user_id,
        )
        self.db.commit()


class DeleteRoleUseCase:
    """Remove the role row; the identity stays, without privileges"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, role_id: int, actor_user_id: int) -> None:
        row = self.db.query(UserRole).filter(UserRole.id == role_id).first()
        if not row:
            raise NotFoundError("Роль не найдена")

        EventLogRepository(self.db).append_event(
            event_type="role_deleted",
            payload={"role": row.role},
            actor_user_id=actor_user_id,
            subject_user_id=row.user_id,
        )
        self.db.delete(row)
        self.db.commit()
