"""
Self-registration and password sign-in.
"""
import logging

from sqlalchemy.orm import Session

from app.auth import MIN_PASSWORD_LENGTH, synthetic_email
from app.application.accounts import provision_account
from app.application.errors import ValidationError
from app.application.identity import IdentityGateway
from app.application.roles import resolve_role
from app.domain.client_code import PVZ_LOCATIONS
from app.domain.role import Role, home_path
from app.infrastructure.db.models import Profile, User
from app.infrastructure.eventlog.repository import EventLogRepository
from app.infrastructure.notify.bot_webhook import notify_registration
from app.utils.validation import phone_digits

logger = logging.getLogger(__name__)


class RegisterUserUseCase:
    """
    Use case: клиент регистрируется сам

    1. Валидация полей
    2. Identity по синтетическому e-mail из телефона
    3. Профиль с новым кодом клиента для выбранного ПВЗ, роль "user"
    4. Если пришёл из Telegram: уведомить бота (best effort)
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        full_name: str,
        phone: str,
        password: str,
        pvz_location: str,
        telegram_id: str | None = None,
    ) -> Profile:
        full_name = (full_name or "").strip()
        phone = (phone or "").strip()
        telegram_id = (telegram_id or "").strip() or None

        if len(full_name) < 2:
            raise ValidationError("Введите имя и фамилию")
        if len(phone) < 10:
            raise ValidationError("Введите корректный номер телефона")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError("Пароль должен содержать минимум 6 символов")
        if pvz_location not in PVZ_LOCATIONS:
            raise ValidationError("Выберите ПВЗ")

        user, profile = provision_account(
            self.db,
            phone=phone,
            password=password,
            full_name=full_name,
            pvz_location=pvz_location,
            telegram_id=telegram_id,
        )
        EventLogRepository(self.db).append_event(
            event_type="user_registered",
            payload={"client_code": profile.client_code, "pvz_location": pvz_location},
            actor_user_id=user.id,
            subject_user_id=user.id,
        )
        self.db.commit()
        logger.info("User %s registered with code %s", user.id, profile.client_code)

        if telegram_id:
            notify_registration(
                telegram_id=telegram_id,
                full_name=full_name,
                client_code=profile.client_code,
                phone=phone_digits(phone),
                pvz=pvz_location,
            )

        return profile


class LoginUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, phone: str, password: str) -> tuple[User, Role | None, str]:
        """
        Returns:
            (user, role, landing path for the role)
        """
        if len((phone or "").strip()) < 10:
            raise ValidationError("Введите корректный номер телефона")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError("Пароль должен содержать минимум 6 символов")

        user = IdentityGateway(self.db).authenticate(synthetic_email(phone), password)
        role = resolve_role(self.db, user.id)
        EventLogRepository(self.db).append_event(
            event_type="user_logged_in",
            payload={"email": user.email},
            actor_user_id=user.id,
            subject_user_id=user.id,
        )
        self.db.commit()
        return user, role, home_path(role)


class ChangePasswordUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, new_password: str, confirm_password: str) -> None:
        if new_password != confirm_password:
            raise ValidationError("Пароли не совпадают")
        IdentityGateway(self.db).update_password(user_id, new_password)
        self.db.commit()
