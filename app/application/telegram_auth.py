"""
Telegram login: resolve a Telegram id to a one-time login token.
"""
from sqlalchemy.orm import Session

from app.application.errors import NotFoundError, ValidationError
from app.application.identity import TOKEN_PURPOSE_TELEGRAM, IdentityGateway
from app.infrastructure.db.models import Profile, User


class TelegramAuthUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, telegram_id: str | int | None) -> dict:
        """
        Raises:
            ValidationError: telegram_id missing
            NotFoundError: no profile with this Telegram id; the client sends
                the user to registration with the id prefilled
        """
        telegram_id = str(telegram_id).strip() if telegram_id is not None else ""
        if not telegram_id:
            raise ValidationError("telegram_id is required")

        profile = self.db.query(Profile).filter(Profile.telegram_id == telegram_id).first()
        if not profile:
            raise NotFoundError("User not found")

        user = self.db.query(User).filter(User.id == profile.user_id).first()
        if not user:
            raise NotFoundError("User not found")

        token = IdentityGateway(self.db).issue_login_token(user.id, purpose=TOKEN_PURPOSE_TELEGRAM)
        self.db.commit()

        return {
            "token": token,
            "user": {
                "client_code": profile.client_code,
                "full_name": profile.full_name,
            },
        }
