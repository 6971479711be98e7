"""
Admin user management: privileged create-user, edit, delete, list/search.
"""
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth import MIN_PASSWORD_LENGTH
from app.application.accounts import provision_account
from app.application.errors import ConflictError, NotFoundError, ValidationError
from app.application.identity import IdentityGateway
from app.application.roles import assign_role, resolve_role
from app.domain.client_code import (
    PVZ_LOCATIONS,
    derive_pvz_location,
    normalize_client_code,
    pvz_label,
)
from app.domain.role import parse_role
from app.infrastructure.db.models import Profile
from app.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)


class CreateUserUseCase:
    """
    Use case: администратор создаёт клиента с выбранным паролем

    Код клиента задаёт администратор; его префикс должен совпадать с ПВЗ.
    Повторный вызов с тем же кодом: конфликт, второй профиль не создаётся.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        client_code: str,
        full_name: str,
        phone: str,
        pvz_location: str,
        password: str,
        actor_user_id: int | None = None,
    ) -> int:
        """
        Returns:
            user_id созданной identity
        """
        client_code = normalize_client_code(client_code)
        full_name = (full_name or "").strip()
        phone = (phone or "").strip()
        pvz_location = (pvz_location or "").strip()

        if not client_code or not full_name or not phone or not pvz_location or not password:
            raise ValidationError("Все поля обязательны")
        if pvz_location not in PVZ_LOCATIONS:
            raise ValidationError("Выберите ПВЗ")

        derived = derive_pvz_location(client_code)
        if derived is None:
            raise ValidationError("ID должен начинаться с YQ, YX или JL")
        if derived != pvz_location:
            raise ValidationError("Префикс ID не соответствует выбранному ПВЗ")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Пароль должен содержать минимум 6 символов")

        user, profile = provision_account(
            self.db,
            phone=phone,
            password=password,
            full_name=full_name,
            pvz_location=pvz_location,
            client_code=client_code,
        )
        EventLogRepository(self.db).append_event(
            event_type="user_created_by_admin",
            payload={"client_code": client_code, "pvz_location": pvz_location},
            actor_user_id=actor_user_id,
            subject_user_id=user.id,
        )
        try:
            self.db.commit()
        except IntegrityError:
            # concurrent create with the same code or phone
            self.db.rollback()
            raise ConflictError("Пользователь с таким ID уже существует")
        logger.info("User created: %s (%s)", user.id, client_code)
        return user.id


class CreateStaffAccountUseCase:
    """
    Use case: администратор заводит сотрудника (админ, оператор ПВЗ) или клиента

    Роль выбирается сразу, код клиента генерируется для ПВЗ как при регистрации.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        full_name: str,
        phone: str,
        password: str,
        pvz_location: str,
        role: str,
        actor_user_id: int | None = None,
    ) -> Profile:
        full_name = (full_name or "").strip()
        phone = (phone or "").strip()

        if len(full_name) < 2:
            raise ValidationError("Введите имя и фамилию")
        if len(phone) < 10:
            raise ValidationError("Введите корректный номер телефона")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError("Пароль должен содержать минимум 6 символов")
        if pvz_location not in PVZ_LOCATIONS:
            raise ValidationError("Выберите ПВЗ")
        parsed_role = parse_role(role)
        if parsed_role is None:
            raise ValidationError(f"Неизвестная роль: {role}")

        user, profile = provision_account(
            self.db,
            phone=phone,
            password=password,
            full_name=full_name,
            pvz_location=pvz_location,
            role=parsed_role,
        )
        EventLogRepository(self.db).append_event(
            event_type="staff_account_created",
            payload={"client_code": profile.client_code, "role": parsed_role.value},
            actor_user_id=actor_user_id,
            subject_user_id=user.id,
        )
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Пользователь с таким номером уже зарегистрирован")
        logger.info("Staff account %s created with role %s", user.id, parsed_role.value)
        return profile


class UpdateUserUseCase:
    """Admin edits a profile: name, phone, role and optionally the password"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, profile_id: int, actor_user_id: int, **changes) -> None:
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise NotFoundError("Пользователь не найден")

        if "full_name" in changes and changes["full_name"] is not None:
            full_name = changes["full_name"].strip()
            if len(full_name) < 2:
                raise ValidationError("Введите имя и фамилию")
            profile.full_name = full_name
        if "phone" in changes and changes["phone"] is not None:
            phone = changes["phone"].strip()
            if not phone:
                raise ValidationError("Введите корректный номер телефона")
            profile.phone = phone
        if changes.get("role"):
            role = parse_role(changes["role"])
            if role is None:
                raise ValidationError(f"Неизвестная роль: {changes['role']}")
            assign_role(self.db, profile.user_id, role)
        if changes.get("password"):
            IdentityGateway(self.db).update_password(profile.user_id, changes["password"])

        EventLogRepository(self.db).append_event(
            event_type="user_updated_by_admin",
            payload={"fields": sorted(k for k, v in changes.items() if v)},
            actor_user_id=actor_user_id,
            subject_user_id=profile.user_id,
        )
        self.db.commit()


class DeleteUserUseCase:
    """Deletes the profile. The identity and its role row are kept"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, profile_id: int, actor_user_id: int) -> None:
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise NotFoundError("Пользователь не найден")

        EventLogRepository(self.db).append_event(
            event_type="user_deleted_by_admin",
            payload={"client_code": profile.client_code},
            actor_user_id=actor_user_id,
            subject_user_id=profile.user_id,
        )
        self.db.delete(profile)
        self.db.commit()


def profile_to_dict(profile: Profile) -> dict:
    return {
        "id": profile.id,
        "user_id": profile.user_id,
        "client_code": profile.client_code,
        "full_name": profile.full_name,
        "phone": profile.phone,
        "pvz_location": profile.pvz_location,
        "pvz_label": pvz_label(profile.pvz_location),
        "telegram_id": profile.telegram_id,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
    }


def list_profiles(db: Session, pvz_location: str | None = None, search: str | None = None) -> list[Profile]:
    """
    Profiles newest first; optional pickup point filter and case-insensitive
    substring search over client code, name and phone.
    """
    query = db.query(Profile)
    if pvz_location and pvz_location != "all":
        query = query.filter(Profile.pvz_location == pvz_location)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Profile.client_code).like(pattern),
            func.lower(Profile.full_name).like(pattern),
            func.lower(Profile.phone).like(pattern),
        ))
    return query.order_by(Profile.created_at.desc(), Profile.id.desc()).all()


def get_user_detail(db: Session, profile_id: int) -> dict:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFoundError("Пользователь не найден")
    data = profile_to_dict(profile)
    role = resolve_role(db, profile.user_id)
    data["role"] = role.value if role else None
    return data
