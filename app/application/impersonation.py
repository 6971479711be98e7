"""
Admin "login as user".

The grant lives on the server: admin-login-as-user issues a ticket bound to
both identities, the admin redeems it once to switch the session, and the
return to the admin account is checked against the same ticket.

The browser session holds a two-state stack:

    normal:         {"user_id": admin_id}
    impersonating:  {"user_id": target_id,
                     "impersonation": {"ticket_id", "admin_id", "target_name"}}
"""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.auth import hash_token, new_token
from app.application.errors import ForbiddenError, NotFoundError, UnauthenticatedError, ValidationError
from app.application.roles import resolve_role
from app.config import get_settings
from app.domain.role import Role
from app.infrastructure.db.models import ImpersonationTicket, Profile
from app.infrastructure.eventlog.repository import EventLogRepository
from app.utils.clock import ensure_aware, now_utc

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"
SESSION_IMPERSONATION_KEY = "impersonation"


class SessionStack:
    """Wraps request.session: push switches to the target, pop returns to the admin"""

    def __init__(self, session: dict):
        self.session = session

    @property
    def user_id(self) -> int | None:
        return self.session.get(SESSION_USER_KEY)

    @property
    def frame(self) -> dict | None:
        return self.session.get(SESSION_IMPERSONATION_KEY)

    @property
    def is_impersonating(self) -> bool:
        return self.frame is not None

    def login(self, user_id: int) -> None:
        """Plain login: drops any impersonation frame"""
        self.session.pop(SESSION_IMPERSONATION_KEY, None)
        self.session[SESSION_USER_KEY] = user_id

    def push(self, ticket: ImpersonationTicket, target_name: str) -> None:
        if self.is_impersonating:
            raise ValidationError("Сначала вернитесь в аккаунт администратора")
        self.session[SESSION_IMPERSONATION_KEY] = {
            "ticket_id": ticket.id,
            "admin_id": ticket.admin_user_id,
            "target_name": target_name,
        }
        self.session[SESSION_USER_KEY] = ticket.target_user_id

    def pop(self) -> int:
        frame = self.session.pop(SESSION_IMPERSONATION_KEY, None)
        if frame is None:
            raise ValidationError("Нет активного входа от имени пользователя")
        self.session[SESSION_USER_KEY] = frame["admin_id"]
        return frame["admin_id"]

    def clear(self) -> None:
        self.session.clear()


class StartImpersonationUseCase:
    """admin-login-as-user: issue a one-time ticket for target_user_id"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, admin_user_id: int, target_user_id: int | None) -> dict:
        if not target_user_id:
            raise ValidationError("Не указан ID пользователя")

        target = self.db.query(Profile).filter(Profile.user_id == target_user_id).first()
        if not target:
            raise NotFoundError("Пользователь не найден")

        ttl = get_settings().IMPERSONATION_TICKET_TTL_MINUTES
        raw = new_token()
        ticket = ImpersonationTicket(
            admin_user_id=admin_user_id,
            target_user_id=target_user_id,
            token_hash=hash_token(raw),
            expires_at=now_utc() + timedelta(minutes=ttl),
        )
        self.db.add(ticket)
        self.db.flush()

        EventLogRepository(self.db).append_event(
            event_type="impersonation_issued",
            payload={"ticket_id": ticket.id},
            actor_user_id=admin_user_id,
            subject_user_id=target_user_id,
        )
        self.db.commit()
        logger.info("Admin %s issued impersonation ticket for user %s", admin_user_id, target_user_id)

        return {
            "success": True,
            "token": raw,
            "user_name": target.full_name,
            "admin_id": admin_user_id,
        }


class RedeemImpersonationUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, raw_token: str, caller_user_id: int) -> tuple[ImpersonationTicket, str]:
        """
        Returns:
            (ticket, target display name)

        Raises:
            UnauthenticatedError: unknown, used or expired ticket
            ForbiddenError: caller is not the admin the ticket was issued to,
                or is no longer an admin
        """
        ticket = (
            self.db.query(ImpersonationTicket)
            .filter(ImpersonationTicket.token_hash == hash_token(raw_token or ""))
            .first()
        )
        now = now_utc()
        if ticket is None or ticket.redeemed_at is not None or ensure_aware(ticket.expires_at) <= now:
            raise UnauthenticatedError("Ссылка для входа недействительна")
        if ticket.admin_user_id != caller_user_id:
            raise ForbiddenError()
        if resolve_role(self.db, caller_user_id) != Role.ADMIN:
            raise ForbiddenError()

        target = self.db.query(Profile).filter(Profile.user_id == ticket.target_user_id).first()
        if not target:
            raise NotFoundError("Пользователь не найден")

        session_minutes = get_settings().IMPERSONATION_SESSION_MINUTES
        ticket.redeemed_at = now
        ticket.session_expires_at = now + timedelta(minutes=session_minutes)

        EventLogRepository(self.db).append_event(
            event_type="impersonation_started",
            payload={"ticket_id": ticket.id},
            actor_user_id=caller_user_id,
            subject_user_id=ticket.target_user_id,
        )
        self.db.commit()
        return ticket, target.full_name


class RestoreAdminSessionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, ticket_id: int, admin_user_id: int) -> None:
        """
        Close the ticket. Raises ForbiddenError if the session frame does not
        match a redeemed, still open ticket of this admin.
        """
        ticket = self.db.query(ImpersonationTicket).filter(ImpersonationTicket.id == ticket_id).first()
        if (
            ticket is None
            or ticket.admin_user_id != admin_user_id
            or ticket.redeemed_at is None
            or ticket.restored_at is not None
        ):
            raise ForbiddenError("Не удалось восстановить сессию администратора")

        ticket.restored_at = now_utc()
        EventLogRepository(self.db).append_event(
            event_type="impersonation_ended",
            payload={"ticket_id": ticket.id},
            actor_user_id=admin_user_id,
            subject_user_id=ticket.target_user_id,
        )
        self.db.commit()


def impersonation_is_active(db: Session, frame: dict) -> bool:
    """An impersonated session is valid while its ticket is redeemed, open and unexpired"""
    ticket = db.query(ImpersonationTicket).filter(ImpersonationTicket.id == frame.get("ticket_id")).first()
    if ticket is None or ticket.redeemed_at is None or ticket.restored_at is not None:
        return False
    expires = ensure_aware(ticket.session_expires_at)
    return expires is not None and expires > now_utc()
