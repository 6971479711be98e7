"""
Package routes: client's own tracking numbers, in-transit list, status
changes and the spreadsheet import.
"""
import logging

from fastapi import APIRouter, Request, Depends, Form, UploadFile, File
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, require_admin_user, require_operator
from app.application.app_settings import current_price_per_kg
from app.application.errors import ValidationError
from app.application.package_import import ColumnMapping, ImportPackagesUseCase, parse_arrival_date
from app.application.packages import (
    AddTrackNumberUseCase,
    ChangePackageStatusUseCase,
    list_in_transit,
    list_own_packages,
    package_to_dict,
)
from app.infrastructure.spreadsheet.reader import SpreadsheetError, read_rows, split_header
from app.utils.validation import parse_price

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/packages", tags=["packages"])

PREVIEW_ROWS = 5


class AddTrackRequest(BaseModel):
    track_number: str


class ChangeStatusRequest(BaseModel):
    status: str


def _read_upload(file: UploadFile) -> list[list]:
    content = file.file.read()
    try:
        return read_rows(file.filename, content)
    except SpreadsheetError as exc:
        raise ValidationError(str(exc))


@router.get("")
def get_own_packages(request: Request, search: str | None = None, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    packages = list_own_packages(db, user.id, search)
    return [package_to_dict(pkg) for pkg in packages]


@router.post("", status_code=201)
def add_track_number(request: Request, req: AddTrackRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    package_id = AddTrackNumberUseCase(db).execute(user.id, req.track_number)
    return {"id": package_id}


@router.get("/in-transit")
def get_in_transit(request: Request, search: str | None = None, db: Session = Depends(get_db)):
    """Посылки в пути; оператор ПВЗ видит только клиентов своего ПВЗ"""
    _, _, pvz_location = require_operator(request, db)
    rows = list_in_transit(db, search=search, pvz_location=pvz_location)
    return [package_to_dict(pkg, owner) for pkg, owner in rows]


@router.patch("/{package_id}/status")
def change_status(
    request: Request,
    package_id: int,
    req: ChangeStatusRequest,
    db: Session = Depends(get_db),
):
    _, role, pvz_location = require_operator(request, db)
    ChangePackageStatusUseCase(db).execute(package_id, req.status, role, pvz_location)
    return {"status": "ok"}


@router.post("/import/preview")
def preview_import(request: Request, file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Заголовок и первые строки файла: для выбора столбцов"""
    require_admin_user(request, db)
    header, data = split_header(_read_upload(file))
    return {"header": header, "rows": data[:PREVIEW_ROWS], "total_rows": len(data)}


@router.post("/import")
def import_packages(
    request: Request,
    file: UploadFile = File(...),
    track_column: int = Form(...),
    weight_column: int | None = Form(None),
    date_column: int | None = Form(None),
    client_code_column: int | None = Form(None),
    price_per_kg: str | None = Form(None),
    arrival_date: str | None = Form(None),
    skip_header: bool = Form(True),
    db: Session = Depends(get_db),
):
    """
    Приём посылок из Excel.

    Номера столбцов с 1. Цена за кг по умолчанию из настроек.
    """
    admin = require_admin_user(request, db)

    mapping = ColumnMapping(
        track_column=track_column,
        weight_column=weight_column,
        date_column=date_column,
        client_code_column=client_code_column,
    )
    mapping.validate()

    if price_per_kg and price_per_kg.strip():
        try:
            price = parse_price(price_per_kg)
        except ValueError as exc:
            raise ValidationError(str(exc))
    else:
        price = current_price_per_kg(db)

    try:
        arrived_at = parse_arrival_date(arrival_date.strip()) if arrival_date and arrival_date.strip() else None
    except ValueError as exc:
        raise ValidationError(str(exc))

    rows = _read_upload(file)
    if skip_header:
        _, rows = split_header(rows)

    logger.info("Package import by admin %s: %s, %d rows", admin.id, file.filename, len(rows))
    result = ImportPackagesUseCase(db).execute(
        rows,
        mapping,
        price_per_kg=price,
        arrival_date=arrived_at,
        actor_user_id=admin.id,
    )
    return result.as_dict()
