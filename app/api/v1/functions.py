"""
Privileged functions: create-user, admin-login-as-user, telegram-auth, create-admin.

Each is a JSON endpoint; failures come back as {"error", "kind"}.
"""
from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_admin_user
from app.application.bootstrap import CreateAdminUseCase
from app.application.impersonation import StartImpersonationUseCase
from app.application.telegram_auth import TelegramAuthUseCase
from app.application.users import CreateUserUseCase


router = APIRouter(prefix="/functions/v1", tags=["functions"])


class CreateUserRequest(BaseModel):
    client_code: str = ""
    full_name: str = ""
    phone: str = ""
    pvz_location: str = ""
    password: str = ""


class LoginAsUserRequest(BaseModel):
    target_user_id: int | None = None


class TelegramAuthRequest(BaseModel):
    telegram_id: str | int | None = None


@router.post("/create-user")
def create_user(request: Request, req: CreateUserRequest, db: Session = Depends(get_db)):
    admin = require_admin_user(request, db)
    user_id = CreateUserUseCase(db).execute(
        client_code=req.client_code,
        full_name=req.full_name,
        phone=req.phone,
        pvz_location=req.pvz_location,
        password=req.password,
        actor_user_id=admin.id,
    )
    return {"success": True, "user_id": user_id}


@router.post("/admin-login-as-user")
def admin_login_as_user(request: Request, req: LoginAsUserRequest, db: Session = Depends(get_db)):
    """Билет для входа от имени пользователя; погашается через /auth/impersonation/redeem"""
    admin = require_admin_user(request, db)
    return StartImpersonationUseCase(db).execute(admin.id, req.target_user_id)


@router.post("/telegram-auth")
def telegram_auth(req: TelegramAuthRequest, db: Session = Depends(get_db)):
    return TelegramAuthUseCase(db).execute(req.telegram_id)


@router.post("/create-admin")
def create_admin(db: Session = Depends(get_db)):
    return CreateAdminUseCase(db).execute()
