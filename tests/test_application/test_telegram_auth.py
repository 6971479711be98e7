"""
Tests for telegram-auth: Telegram id -> one-time login token
"""
import pytest

from app.application.errors import NotFoundError, ValidationError
from app.application.identity import IdentityGateway
from app.application.telegram_auth import TelegramAuthUseCase
from app.infrastructure.db.models import LoginToken


class TestTelegramAuth:
    def test_known_telegram_id(self, db_session, make_account):
        user, _ = make_account(client_code="YQ12", telegram_id="555001")

        result = TelegramAuthUseCase(db_session).execute(555001)

        assert result["user"] == {"client_code": "YQ12", "full_name": "Айбек Мамытов"}
        token = db_session.query(LoginToken).one()
        assert token.purpose == "telegram"
        assert IdentityGateway(db_session).redeem_login_token(result["token"]).id == user.id

    def test_unknown_telegram_id(self, db_session, make_account):
        make_account(telegram_id="555001")
        with pytest.raises(NotFoundError, match="User not found"):
            TelegramAuthUseCase(db_session).execute("999")

    @pytest.mark.parametrize("telegram_id", [None, "", "  "])
    def test_missing_id(self, db_session, telegram_id):
        with pytest.raises(ValidationError, match="telegram_id is required"):
            TelegramAuthUseCase(db_session).execute(telegram_id)
