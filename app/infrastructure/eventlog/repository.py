"""
Event Log Repository - audit trail of privileged actions

Каждое привилегированное действие (создание пользователя, вход от имени,
смена роли, импорт) записывается как неизменяемое событие.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from app.infrastructure.db.models import EventLog
from app.utils.clock import now_utc


class EventLogRepository:
    """
    Repository для работы с event log
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        event_type: str,
        payload: Dict[str, Any],
        actor_user_id: Optional[int] = None,
        subject_user_id: Optional[int] = None,
        occurred_at: Optional[datetime] = None,
    ) -> int:
        """
        Добавить событие в event log

        Args:
            event_type: Тип события (например, "user_created_by_admin")
            payload: Данные события (будут сохранены как JSONB)
            actor_user_id: Кто совершил действие
            subject_user_id: Над кем совершено действие
            occurred_at: Когда произошло событие (default: now)

        Returns:
            event_id: ID созданного события

        Example:
            >>> repo = EventLogRepository(db)
            >>> repo.append_event(
            ...     event_type="role_changed",
            ...     payload={"role": "admin"},
            ...     actor_user_id=1,
            ...     subject_user_id=42,
            ... )
        """
        if occurred_at is None:
            occurred_at = now_utc()

        event = EventLog(
            actor_user_id=actor_user_id,
            subject_user_id=subject_user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
        )

        self.db.add(event)
        self.db.flush()  # Получить ID без commit

        return event.id

    def list_events(
        self,
        subject_user_id: Optional[int] = None,
        event_types: Optional[List[str]] = None,
        limit: int = 200,
    ) -> List[EventLog]:
        """
        Последние события (новые первыми), с фильтрами по пользователю и типу
        """
        query = self.db.query(EventLog)

        if subject_user_id is not None:
            query = query.filter(EventLog.subject_user_id == subject_user_id)
        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.order_by(EventLog.id.desc()).limit(limit).all()
