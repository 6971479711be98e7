"""
Account provisioning: identity + profile + default role in one transaction.

Shared by self-registration, admin user creation and the admin bootstrap.
"""
from sqlalchemy.orm import Session

from app.auth import synthetic_email
from app.application.errors import ConflictError, ValidationError
from app.application.identity import IdentityGateway
from app.application.roles import assign_role
from app.domain.client_code import (
    PVZ_LOCATIONS,
    PVZ_TO_PREFIX,
    format_client_code,
    parse_code_number,
)
from app.domain.role import Role
from app.infrastructure.db.models import Profile, User


def generate_client_code(db: Session, pvz_location: str) -> str:
    """
    Next free code for a pickup point: prefix + (highest issued number + 1).

    >>> generate_client_code(db, "nariman")   # with YQ1..YQ7 issued
    'YQ8'
    """
    if pvz_location not in PVZ_TO_PREFIX:
        raise ValidationError("Выберите ПВЗ")
    prefix = PVZ_TO_PREFIX[pvz_location]

    codes = (
        db.query(Profile.client_code)
        .filter(Profile.client_code.like(f"{prefix}%"))
        .all()
    )
    numbers = [parse_code_number(code, prefix) for (code,) in codes]
    highest = max((n for n in numbers if n is not None), default=0)
    return format_client_code(prefix, highest + 1)


def client_code_taken(db: Session, client_code: str) -> bool:
    return db.query(Profile.id).filter(Profile.client_code == client_code).first() is not None


def telegram_linked(db: Session, telegram_id: str) -> bool:
    return db.query(Profile.id).filter(Profile.telegram_id == telegram_id).first() is not None


def provision_account(
    db: Session,
    phone: str,
    password: str,
    full_name: str,
    pvz_location: str,
    client_code: str | None = None,
    telegram_id: str | None = None,
    role: Role = Role.USER,
) -> tuple[User, Profile]:
    """
    Create identity, profile and role row. Flushes, does not commit.

    client_code=None generates the next code for the pickup point.

    Raises:
        ValidationError: unknown pickup point
        ConflictError: client code, phone or Telegram id already registered
        GatewayError: identity store failure
    """
    if pvz_location not in PVZ_LOCATIONS:
        raise ValidationError("Выберите ПВЗ")

    if client_code is None:
        client_code = generate_client_code(db, pvz_location)
    elif client_code_taken(db, client_code):
        raise ConflictError("Пользователь с таким ID уже существует")
    if telegram_id and telegram_linked(db, telegram_id):
        raise ConflictError("Этот Telegram уже привязан к другому аккаунту")

    user = IdentityGateway(db).create_account(synthetic_email(phone), password)

    profile = Profile(
        user_id=user.id,
        client_code=client_code,
        full_name=full_name,
        phone=phone,
        pvz_location=pvz_location,
        telegram_id=telegram_id or None,
    )
    db.add(profile)
    db.flush()

    assign_role(db, user.id, role)
    return user, profile
