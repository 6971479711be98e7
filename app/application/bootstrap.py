"""
create-admin: provision the first administrator from environment credentials.
"""
import logging

from sqlalchemy.orm import Session

from app.auth import get_user_by_email, synthetic_email
from app.application.accounts import provision_account
from app.application.errors import ConflictError, ValidationError
from app.application.roles import resolve_role
from app.config import Settings, get_settings
from app.domain.role import Role
from app.infrastructure.db.models import Profile
from app.infrastructure.eventlog.repository import EventLogRepository
from app.utils.validation import phone_digits

logger = logging.getLogger(__name__)


def bootstrap_client_code(phone: str) -> str:
    """The bootstrap admin's code is its phone: '+996558105551'"""
    return f"+{phone_digits(phone)}"


class CreateAdminUseCase:
    """
    Idempotent: the second and later calls report that the admin exists.
    """

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()

    def execute(self) -> dict:
        phone = self.settings.BOOTSTRAP_ADMIN_PHONE.strip()
        password = self.settings.BOOTSTRAP_ADMIN_PASSWORD
        if not phone or not password:
            raise ValidationError("BOOTSTRAP_ADMIN_PHONE и BOOTSTRAP_ADMIN_PASSWORD не заданы")

        client_code = bootstrap_client_code(phone)
        taken_by = [
            user_id
            for user_id in (self._profile_owner(client_code), self._identity_id(phone))
            if user_id is not None
        ]
        if any(resolve_role(self.db, user_id) == Role.ADMIN for user_id in taken_by):
            return {"message": "Admin already exists"}
        if taken_by:
            raise ConflictError(f"Телефон {phone} занят учётной записью без прав администратора")

        user, _ = provision_account(
            self.db,
            phone=phone,
            password=password,
            full_name=self.settings.BOOTSTRAP_ADMIN_NAME,
            pvz_location=self.settings.BOOTSTRAP_ADMIN_PVZ,
            client_code=client_code,
            role=Role.ADMIN,
        )
        EventLogRepository(self.db).append_event(
            event_type="admin_bootstrapped",
            payload={"client_code": client_code},
            subject_user_id=user.id,
        )
        self.db.commit()
        logger.info("Admin user created: %s", user.id)

        return {"message": "Admin created successfully", "phone": phone, "user_id": user.id}

    def _profile_owner(self, client_code: str) -> int | None:
        row = self.db.query(Profile.user_id).filter(Profile.client_code == client_code).first()
        return row[0] if row else None

    def _identity_id(self, phone: str) -> int | None:
        user = get_user_by_email(self.db, synthetic_email(phone))
        return user.id if user else None
