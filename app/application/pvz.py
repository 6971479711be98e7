"""
Pickup points (PVZ) CRUD. The id is the client-code prefix.
"""
import re

from sqlalchemy.orm import Session

from app.application.errors import ConflictError, NotFoundError, ValidationError
from app.infrastructure.db.models import PvzLocation

_PVZ_ID_RE = re.compile(r"^[A-Z]{2}$")


def pvz_to_dict(pvz: PvzLocation) -> dict:
    return {
        "id": pvz.id,
        "name": pvz.name,
        "address": pvz.address,
        "china_warehouse_address": pvz.china_warehouse_address,
    }


def list_pvz(db: Session) -> list[PvzLocation]:
    return db.query(PvzLocation).order_by(PvzLocation.id).all()


def _require_text(value: str | None, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


class CreatePvzUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, pvz_id: str, name: str, address: str, china_warehouse_address: str) -> str:
        pvz_id = (pvz_id or "").strip().upper()
        if not _PVZ_ID_RE.match(pvz_id):
            raise ValidationError("Код ПВЗ: две латинские буквы (например YQ)")
        if self.db.query(PvzLocation).filter(PvzLocation.id == pvz_id).first():
            raise ConflictError(f"ПВЗ {pvz_id} уже существует")

        self.db.add(PvzLocation(
            id=pvz_id,
            name=_require_text(name, "Укажите название ПВЗ"),
            address=_require_text(address, "Укажите адрес ПВЗ"),
            china_warehouse_address=_require_text(china_warehouse_address, "Укажите адрес склада в Китае"),
        ))
        self.db.commit()
        return pvz_id


class UpdatePvzUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, pvz_id: str, **changes) -> None:
        pvz = self.db.query(PvzLocation).filter(PvzLocation.id == pvz_id).first()
        if not pvz:
            raise NotFoundError("ПВЗ не найден")

        if changes.get("name") is not None:
            pvz.name = _require_text(changes["name"], "Укажите название ПВЗ")
        if changes.get("address") is not None:
            pvz.address = _require_text(changes["address"], "Укажите адрес ПВЗ")
        if changes.get("china_warehouse_address") is not None:
            pvz.china_warehouse_address = _require_text(
                changes["china_warehouse_address"], "Укажите адрес склада в Китае"
            )
        self.db.commit()


class DeletePvzUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, pvz_id: str) -> None:
        pvz = self.db.query(PvzLocation).filter(PvzLocation.id == pvz_id).first()
        if not pvz:
            raise NotFoundError("ПВЗ не найден")
        self.db.delete(pvz)
        self.db.commit()
