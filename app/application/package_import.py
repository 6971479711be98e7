"""
Package import from a spreadsheet.

Rows are processed one by one, each committed on its own: a failing row is
rolled back and counted as skipped, the rest of the file still goes in.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.application.errors import ValidationError
from app.domain.client_code import normalize_client_code
from app.domain.package import STATUS_IN_TRANSIT, compute_total_price
from app.infrastructure.db.models import Package
from app.infrastructure.eventlog.repository import EventLogRepository
from app.utils.clock import now_utc
from app.utils.validation import parse_weight

logger = logging.getLogger(__name__)

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y-%m-%d %H:%M:%S", "%d.%m.%Y %H:%M")


@dataclass
class ColumnMapping:
    """1-based column numbers. Only the tracking number column is required"""
    track_column: int
    weight_column: int | None = None
    date_column: int | None = None
    client_code_column: int | None = None

    def validate(self) -> None:
        if not self.track_column or self.track_column < 1:
            raise ValidationError("Выберите столбец с трек-кодами")
        for col in (self.weight_column, self.date_column, self.client_code_column):
            if col is not None and col < 1:
                raise ValidationError("Номер столбца начинается с 1")


@dataclass
class PackageImportResult:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.inserted + self.updated

    def as_dict(self) -> dict:
        return {"inserted": self.inserted, "updated": self.updated, "skipped": self.skipped}


def _cell(row: list, column: int | None) -> Any:
    if column is None or column > len(row):
        return None
    return row[column - 1]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_arrival_date(value: Any) -> datetime | None:
    """
    Date cell -> aware datetime. None for an empty cell.

    Raises:
        ValueError: text that is not a recognised date
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    text = str(value).strip()
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    raise ValueError(f"Некорректная дата: {text}")


class ImportPackagesUseCase:
    """
    Use case: приём посылок из Excel

    Для каждой строки:
    1. Пустой трек-код: пропуск
    2. Есть в базе: статус in_transit, дата прибытия, вес/цена если вес > 0
    3. Нет в базе: новая посылка in_transit
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        rows: Iterable[list],
        mapping: ColumnMapping,
        price_per_kg: Decimal,
        arrival_date: datetime | None = None,
        actor_user_id: int | None = None,
    ) -> PackageImportResult:
        """
        Args:
            rows: data rows, header excluded
            mapping: 1-based column numbers
            price_per_kg: used for rows with a positive weight
            arrival_date: applied to every row when given; otherwise the
                row's date column, otherwise now

        Returns:
            inserted / updated / skipped counters
        """
        mapping.validate()
        result = PackageImportResult()

        for row in rows:
            track_number = _cell(row, mapping.track_column)
            track_number = str(track_number).strip() if track_number is not None else ""
            if not track_number:
                result.skipped += 1
                continue

            try:
                created = self._import_row(row, track_number, mapping, price_per_kg, arrival_date)
                self.db.commit()
            except Exception:
                logger.exception("Package import: row %s failed", track_number)
                self.db.rollback()
                result.skipped += 1
                continue

            if created:
                result.inserted += 1
            else:
                result.updated += 1

        EventLogRepository(self.db).append_event(
            event_type="packages_imported",
            payload=result.as_dict(),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        logger.info(
            "Package import: inserted=%d updated=%d skipped=%d",
            result.inserted, result.updated, result.skipped,
        )
        return result

    def _import_row(
        self,
        row: list,
        track_number: str,
        mapping: ColumnMapping,
        price_per_kg: Decimal,
        arrival_date: datetime | None,
    ) -> bool:
        """Insert or update one package. Returns True if inserted"""
        weight = parse_weight(_cell(row, mapping.weight_column))
        raw_code = _cell(row, mapping.client_code_column)
        client_code = normalize_client_code(str(raw_code)) if raw_code is not None else ""

        now = now_utc()
        arrived_at = arrival_date or parse_arrival_date(_cell(row, mapping.date_column)) or now

        pkg = self.db.query(Package).filter(Package.track_number == track_number).first()
        created = pkg is None
        if created:
            pkg = Package(track_number=track_number, weight=weight)
            self.db.add(pkg)

        pkg.status = STATUS_IN_TRANSIT
        pkg.arrived_at = arrived_at
        pkg.updated_at = now
        if client_code:
            pkg.client_code = client_code

        if weight > 0:
            pkg.weight = weight
            pkg.price_per_kg = price_per_kg
            pkg.total_price = compute_total_price(weight, price_per_kg)

        self.db.flush()
        return created
