"""
Package use cases: self-service tracking numbers, status changes, lists.
"""
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.application.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.domain.package import (
    STATUS_IN_TRANSIT,
    STATUS_WAITING_ARRIVAL,
    apply_status,
    is_valid_status,
    status_label,
)
from app.domain.role import Role
from app.infrastructure.db.models import Package, Profile
from app.utils.clock import now_utc


def _money(value) -> str | None:
    return str(value) if value is not None else None


def package_to_dict(pkg: Package, owner: Profile | None = None) -> dict:
    data = {
        "id": pkg.id,
        "track_number": pkg.track_number,
        "weight": str(pkg.weight) if pkg.weight is not None else "0",
        "price_per_kg": _money(pkg.price_per_kg),
        "total_price": _money(pkg.total_price),
        "status": pkg.status,
        "status_label": status_label(pkg.status),
        "client_code": pkg.client_code,
        "arrived_at": pkg.arrived_at.isoformat() if pkg.arrived_at else None,
        "delivered_at": pkg.delivered_at.isoformat() if pkg.delivered_at else None,
        "created_at": pkg.created_at.isoformat() if pkg.created_at else None,
    }
    if owner is not None:
        data["owner"] = {"full_name": owner.full_name, "client_code": owner.client_code}
    return data


def resolve_owner(db: Session, pkg: Package) -> Profile | None:
    """Owner by identity first, then by client code"""
    profile = None
    if pkg.user_id:
        profile = db.query(Profile).filter(Profile.user_id == pkg.user_id).first()
    if profile is None and pkg.client_code:
        profile = db.query(Profile).filter(Profile.client_code == pkg.client_code).first()
    return profile


def _search(query, search: str | None):
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(func.lower(Package.track_number).like(pattern))
    return query


class AddTrackNumberUseCase:
    """
    Use case: клиент добавляет трек-код

    Новый трек-код: вес 0, статус waiting_arrival.
    Уже загруженный администратором без владельца: привязывается к клиенту.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, track_number: str) -> int:
        track_number = (track_number or "").strip()
        if not track_number:
            raise ValidationError("Введите трек-код")

        existing = self.db.query(Package).filter(Package.track_number == track_number).first()
        if existing:
            if existing.user_id == user_id:
                raise ConflictError("Трек-код уже добавлен")
            if existing.user_id is not None:
                raise ConflictError("Трек-код принадлежит другому клиенту")
            existing.user_id = user_id
            existing.updated_at = now_utc()
            self.db.commit()
            return existing.id

        now = now_utc()
        pkg = Package(
            track_number=track_number,
            user_id=user_id,
            status=STATUS_WAITING_ARRIVAL,
            weight=0,
            updated_at=now,
        )
        self.db.add(pkg)
        self.db.commit()
        return pkg.id


def list_own_packages(db: Session, user_id: int, search: str | None = None) -> list[Package]:
    query = db.query(Package).filter(Package.user_id == user_id)
    query = _search(query, search)
    return query.order_by(Package.created_at.desc(), Package.id.desc()).all()


def list_in_transit(
    db: Session,
    search: str | None = None,
    pvz_location: str | None = None,
) -> list[tuple[Package, Profile | None]]:
    """
    In-transit packages with resolved owners, newest first.

    pvz_location narrows the list to packages whose owner belongs to that
    pickup point (the pvz operator view).
    """
    query = _search(db.query(Package).filter(Package.status == STATUS_IN_TRANSIT), search)
    packages = query.order_by(Package.created_at.desc(), Package.id.desc()).all()

    rows = [(pkg, resolve_owner(db, pkg)) for pkg in packages]
    if pvz_location is not None:
        rows = [(pkg, owner) for pkg, owner in rows if owner and owner.pvz_location == pvz_location]
    return rows


class ChangePackageStatusUseCase:
    """
    Any status can be set from any status; the value must be a known one.

    A pvz operator may only change packages owned by clients of its own
    pickup point.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, package_id: int, new_status: str, actor_role: Role, actor_pvz: str | None = None) -> None:
        if not is_valid_status(new_status):
            raise ValidationError(f"Неизвестный статус: {new_status}")

        pkg = self.db.query(Package).filter(Package.id == package_id).first()
        if not pkg:
            raise NotFoundError("Посылка не найдена")

        if actor_role == Role.PVZ:
            owner = resolve_owner(self.db, pkg)
            if owner is None or owner.pvz_location != actor_pvz:
                raise ForbiddenError()

        apply_status(pkg, new_status, now_utc())
        self.db.commit()
