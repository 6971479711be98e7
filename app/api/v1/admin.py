"""
Admin console API.

Access: only users with role admin (checked per request via user_roles).
"""
import logging

from fastapi import APIRouter, Request, Depends, UploadFile, File
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_admin_user
from app.application.app_settings import (
    AddContactUseCase,
    DeleteContactUseCase,
    SaveSettingsUseCase,
    settings_to_dict,
)
from app.application.errors import ValidationError
from app.application.pvz import (
    CreatePvzUseCase,
    DeletePvzUseCase,
    UpdatePvzUseCase,
    list_pvz,
    pvz_to_dict,
)
from app.application.roles import ChangeRoleUseCase, DeleteRoleUseCase, ListRolesUseCase
from app.application.user_import import ImportUsersUseCase
from app.application.users import (
    CreateStaffAccountUseCase,
    DeleteUserUseCase,
    UpdateUserUseCase,
    get_user_detail,
    list_profiles,
    profile_to_dict,
)
from app.infrastructure.eventlog.repository import EventLogRepository
from app.infrastructure.spreadsheet.reader import SpreadsheetError, read_rows, rows_as_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


# === Request models ===

class UpdateUserRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    role: str | None = None
    password: str | None = None


class StaffAccountRequest(BaseModel):
    full_name: str = ""
    phone: str = ""
    password: str = ""
    pvz_location: str = ""
    role: str = "admin"


class ChangeRoleRequest(BaseModel):
    role: str


class PvzCreateRequest(BaseModel):
    id: str
    name: str
    address: str
    china_warehouse_address: str


class PvzUpdateRequest(BaseModel):
    name: str | None = None
    address: str | None = None
    china_warehouse_address: str | None = None


class SettingsRequest(BaseModel):
    logo_url: str | None = None
    primary_color: str | None = None
    price_per_kg: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    contact_telegram: str | None = None
    contact_whatsapp: str | None = None


class ContactRequest(BaseModel):
    name: str = ""
    phone: str = ""
    note: str = ""


# === Users ===

@router.get("/users")
def admin_users(
    request: Request,
    pvz: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    """Список клиентов: новые сверху, фильтр по ПВЗ и поиск по коду/имени/телефону"""
    require_admin_user(request, db)
    return [profile_to_dict(p) for p in list_profiles(db, pvz_location=pvz, search=search)]


@router.get("/users/{profile_id}")
def admin_user_detail(request: Request, profile_id: int, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    return get_user_detail(db, profile_id)


@router.get("/users/{profile_id}/events")
def admin_user_events(request: Request, profile_id: int, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    detail = get_user_detail(db, profile_id)
    events = EventLogRepository(db).list_events(subject_user_id=detail["user_id"])
    return [
        {
            "id": e.id,
            "event_type": e.event_type,
            "payload": e.payload_json,
            "actor_user_id": e.actor_user_id,
            "occurred_at": e.occurred_at.isoformat() if e.occurred_at else None,
        }
        for e in events
    ]


@router.put("/users/{profile_id}")
def admin_user_update(
    request: Request,
    profile_id: int,
    req: UpdateUserRequest,
    db: Session = Depends(get_db),
):
    admin = require_admin_user(request, db)
    UpdateUserUseCase(db).execute(profile_id, admin.id, **req.model_dump())
    return get_user_detail(db, profile_id)


@router.delete("/users/{profile_id}")
def admin_user_delete(request: Request, profile_id: int, db: Session = Depends(get_db)):
    admin = require_admin_user(request, db)
    DeleteUserUseCase(db).execute(profile_id, admin.id)
    return {"status": "deleted"}


@router.post("/users/import")
def admin_users_import(request: Request, file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Импорт клиентов из Excel: по одному create-user на строку"""
    admin = require_admin_user(request, db)
    content = file.file.read()
    try:
        records = rows_as_records(read_rows(file.filename, content))
    except SpreadsheetError as exc:
        raise ValidationError(str(exc))

    logger.info("User import by admin %s: %s, %d rows", admin.id, file.filename, len(records))
    return ImportUsersUseCase(db).execute(records, actor_user_id=admin.id).as_dict()


@router.post("/staff", status_code=201)
def admin_staff_create(request: Request, req: StaffAccountRequest, db: Session = Depends(get_db)):
    """Сотрудник или клиент с выбранной ролью; код клиента генерируется"""
    admin = require_admin_user(request, db)
    profile = CreateStaffAccountUseCase(db).execute(
        full_name=req.full_name,
        phone=req.phone,
        password=req.password,
        pvz_location=req.pvz_location,
        role=req.role,
        actor_user_id=admin.id,
    )
    return {
        "success": True,
        "user_id": profile.user_id,
        "client_code": profile.client_code,
        "role": req.role,
    }


# === Roles ===

@router.get("/roles")
def admin_roles(request: Request, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    return ListRolesUseCase(db).execute()


@router.patch("/roles/{role_id}")
def admin_role_change(request: Request, role_id: int, req: ChangeRoleRequest, db: Session = Depends(get_db)):
    admin = require_admin_user(request, db)
    ChangeRoleUseCase(db).execute(role_id, req.role, admin.id)
    return {"status": "ok"}


@router.delete("/roles/{role_id}")
def admin_role_delete(request: Request, role_id: int, db: Session = Depends(get_db)):
    admin = require_admin_user(request, db)
    DeleteRoleUseCase(db).execute(role_id, admin.id)
    return {"status": "deleted"}


# === Pickup points ===

@router.get("/pvz")
def admin_pvz_list(request: Request, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    return [pvz_to_dict(p) for p in list_pvz(db)]


@router.post("/pvz", status_code=201)
def admin_pvz_create(request: Request, req: PvzCreateRequest, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    pvz_id = CreatePvzUseCase(db).execute(req.id, req.name, req.address, req.china_warehouse_address)
    return {"id": pvz_id}


@router.put("/pvz/{pvz_id}")
def admin_pvz_update(request: Request, pvz_id: str, req: PvzUpdateRequest, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    UpdatePvzUseCase(db).execute(pvz_id, **req.model_dump())
    return {"status": "ok"}


@router.delete("/pvz/{pvz_id}")
def admin_pvz_delete(request: Request, pvz_id: str, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    DeletePvzUseCase(db).execute(pvz_id)
    return {"status": "deleted"}


# === Settings and contacts ===

@router.get("/settings")
def admin_settings(request: Request, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    return settings_to_dict(db)


@router.put("/settings")
def admin_settings_save(request: Request, req: SettingsRequest, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    SaveSettingsUseCase(db).execute(**req.model_dump())
    return settings_to_dict(db)


@router.get("/contacts")
def admin_contacts(request: Request, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    return settings_to_dict(db)["contacts"]


@router.post("/contacts", status_code=201)
def admin_contact_add(request: Request, req: ContactRequest, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    return AddContactUseCase(db).execute(req.name, req.phone, req.note)


@router.delete("/contacts/{contact_id}")
def admin_contact_delete(request: Request, contact_id: str, db: Session = Depends(get_db)):
    require_admin_user(request, db)
    DeleteContactUseCase(db).execute(contact_id)
    return {"status": "deleted"}
