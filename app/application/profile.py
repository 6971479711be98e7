"""
Profile service - the client's own card: code, pickup point, China address.
"""
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from app.application.errors import NotFoundError, ValidationError
from app.application.roles import resolve_role
from app.domain.client_code import pvz_label, warehouse_address
from app.infrastructure.db.models import Package, Profile, PvzLocation


def compute_days_in_system(registration_date: date, today: date) -> int:
    """Return whole days elapsed since registration_date."""
    delta = today - registration_date
    return max(delta.days, 0)


class ProfileService:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, user_id: int) -> Profile:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if not profile:
            raise NotFoundError("Профиль не найден")
        return profile

    def get_profile_data(self, user_id: int) -> dict:
        """Return all data needed to render the dashboard."""
        profile = self._get(user_id)
        role = resolve_role(self.db, user_id)
        today = datetime.now(timezone.utc).date()

        if profile.created_at:
            reg_date = profile.created_at.date()
            reg_date_str = reg_date.strftime("%d.%m.%Y")
            days_in_system = compute_days_in_system(reg_date, today)
        else:
            reg_date_str = "—"
            days_in_system = 0

        pvz = self.db.query(PvzLocation).filter(PvzLocation.id == profile.client_code[:2]).first()
        package_count = self.db.query(Package).filter(Package.user_id == user_id).count()

        return {
            "client_code": profile.client_code,
            "full_name": profile.full_name,
            "phone": profile.phone,
            "pvz_location": profile.pvz_location,
            "pvz_label": pvz_label(profile.pvz_location),
            "pvz_address": pvz.address if pvz else None,
            "warehouse_address": warehouse_address(profile.client_code),
            "telegram_id": profile.telegram_id,
            "role": role.value if role else None,
            "registration_date": reg_date_str,
            "days_in_system": days_in_system,
            "package_count": package_count,
        }

    def update_own_profile(self, user_id: int, full_name: str | None = None, phone: str | None = None) -> None:
        profile = self._get(user_id)
        if full_name is not None:
            full_name = full_name.strip()
            if len(full_name) < 2:
                raise ValidationError("Введите имя и фамилию")
            profile.full_name = full_name
        if phone is not None:
            phone = phone.strip()
            if len(phone) < 10:
                raise ValidationError("Введите корректный номер телефона")
            profile.phone = phone
        self.db.commit()
