"""
App settings singleton and the contacts list stored inside it.
"""
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session

from app.application.errors import NotFoundError, ValidationError
from app.config import get_settings
from app.infrastructure.db.models import AppSettings
from app.utils.validation import is_hex_color, parse_price

DEFAULT_PRIMARY_COLOR = "#10b981"

_CONTACT_FIELDS = ("contact_phone", "contact_email", "contact_telegram", "contact_whatsapp")


def get_settings_row(db: Session) -> AppSettings | None:
    return db.query(AppSettings).order_by(AppSettings.id).first()


def current_price_per_kg(db: Session) -> Decimal:
    """Price from app_settings, else DEFAULT_PRICE_PER_KG from config"""
    row = get_settings_row(db)
    if row and row.price_per_kg is not None:
        return Decimal(row.price_per_kg)
    return get_settings().DEFAULT_PRICE_PER_KG


def settings_to_dict(db: Session) -> dict:
    row = get_settings_row(db)
    return {
        "logo_url": row.logo_url if row else None,
        "primary_color": (row.primary_color if row else None) or DEFAULT_PRIMARY_COLOR,
        "price_per_kg": str(current_price_per_kg(db)),
        "contact_phone": row.contact_phone if row else None,
        "contact_email": row.contact_email if row else None,
        "contact_telegram": row.contact_telegram if row else None,
        "contact_whatsapp": row.contact_whatsapp if row else None,
        "contacts": list(row.contact_info or []) if row else [],
    }


class SaveSettingsUseCase:
    """Created on first save, updated in place afterwards. Only passed fields change"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, **changes) -> None:
        row = get_settings_row(self.db)
        if row is None:
            row = AppSettings()
            self.db.add(row)

        if changes.get("price_per_kg") is not None:
            try:
                row.price_per_kg = parse_price(changes["price_per_kg"])
            except ValueError as exc:
                raise ValidationError(str(exc))
        if changes.get("primary_color") is not None:
            if not is_hex_color(changes["primary_color"]):
                raise ValidationError("Цвет должен быть в формате #rrggbb")
            row.primary_color = changes["primary_color"]
        if "logo_url" in changes and changes["logo_url"] is not None:
            row.logo_url = changes["logo_url"].strip() or None
        for field in _CONTACT_FIELDS:
            if changes.get(field) is not None:
                setattr(row, field, changes[field].strip() or None)

        self.db.commit()


class AddContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, name: str, phone: str, note: str = "") -> dict:
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name or not phone:
            raise ValidationError("Заполните имя и телефон")

        row = get_settings_row(self.db)
        if row is None:
            row = AppSettings()
            self.db.add(row)

        contact = {"id": str(uuid.uuid4()), "name": name, "phone": phone, "note": (note or "").strip()}
        # reassign: JSON columns do not track in-place mutation
        row.contact_info = list(row.contact_info or []) + [contact]
        self.db.commit()
        return contact


class DeleteContactUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, contact_id: str) -> None:
        row = get_settings_row(self.db)
        contacts = list(row.contact_info or []) if row else []
        remaining = [c for c in contacts if c.get("id") != contact_id]
        if len(remaining) == len(contacts):
            raise NotFoundError("Контакт не найден")
        row.contact_info = remaining
        self.db.commit()
