"""
Identity gateway: accounts, password sign-in, one-time login tokens.
"""
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.auth import (
    MIN_PASSWORD_LENGTH,
    get_user_by_email,
    hash_password,
    hash_token,
    new_token,
    verify_password,
)
from app.application.errors import (
    ConflictError,
    GatewayError,
    UnauthenticatedError,
    ValidationError,
)
from app.config import get_settings
from app.infrastructure.db.models import LoginToken, User
from app.utils.clock import ensure_aware, now_utc

logger = logging.getLogger(__name__)

TOKEN_PURPOSE_MAGICLINK = "magiclink"
TOKEN_PURPOSE_TELEGRAM = "telegram"


class IdentityGateway:
    def __init__(self, db: Session):
        self.db = db

    def create_account(self, email: str, password: str) -> User:
        """
        Create an identity. Does not commit: the caller provisions the
        profile and role in the same transaction.

        Raises:
            ConflictError: e-mail already registered
            GatewayError: store failure
        """
        if get_user_by_email(self.db, email):
            raise ConflictError("Пользователь с таким номером уже зарегистрирован")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Пароль должен содержать минимум 6 символов")

        user = User(email=email, password_hash=hash_password(password))
        try:
            self.db.add(user)
            self.db.flush()
        except SQLAlchemyError:
            logger.exception("Account creation failed for %s", email)
            self.db.rollback()
            raise GatewayError("Ошибка создания пользователя")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = get_user_by_email(self.db, email)
        if not user or not verify_password(password, user.password_hash):
            raise UnauthenticatedError("Неверный номер или пароль")
        user.last_seen_at = now_utc()
        return user

    def update_password(self, user_id: int, new_password: str) -> None:
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Пароль должен содержать минимум 6 символов")
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UnauthenticatedError("Пользователь не найден")
        user.password_hash = hash_password(new_password)

    def issue_login_token(self, user_id: int, purpose: str = TOKEN_PURPOSE_MAGICLINK) -> str:
        """
        One-time login token for user_id. Returns the raw token; only its
        hash is stored.
        """
        ttl = get_settings().LOGIN_TOKEN_TTL_MINUTES
        raw = new_token()
        self.db.add(LoginToken(
            user_id=user_id,
            token_hash=hash_token(raw),
            purpose=purpose,
            expires_at=now_utc() + timedelta(minutes=ttl),
        ))
        self.db.flush()
        return raw

    def redeem_login_token(self, raw: str) -> User:
        """
        Exchange a one-time token for its identity. A token works once.

        Raises:
            UnauthenticatedError: unknown, used or expired token
        """
        token = (
            self.db.query(LoginToken)
            .filter(LoginToken.token_hash == hash_token(raw or ""))
            .first()
        )
        now = now_utc()
        if token is None or token.used_at is not None or ensure_aware(token.expires_at) <= now:
            raise UnauthenticatedError("Ссылка для входа недействительна")

        user = self.db.query(User).filter(User.id == token.user_id).first()
        if user is None:
            raise UnauthenticatedError("Пользователь не найден")

        token.used_at = now
        user.last_seen_at = now
        return user
