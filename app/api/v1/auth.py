"""
Authentication routes: register, login, one-time token login, logout,
impersonation redeem/restore, password change.
"""
from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user, get_current_user_optional
from app.application.errors import UnauthenticatedError
from app.application.identity import IdentityGateway
from app.application.impersonation import (
    RedeemImpersonationUseCase,
    RestoreAdminSessionUseCase,
    SessionStack,
)
from app.application.registration import ChangePasswordUseCase, LoginUseCase, RegisterUserUseCase
from app.application.roles import resolve_role
from app.domain.role import home_path


router = APIRouter(prefix="/auth", tags=["auth"])


# === Request models ===

class RegisterRequest(BaseModel):
    full_name: str
    phone: str
    password: str
    pvz_location: str
    telegram_id: str | None = None


class LoginRequest(BaseModel):
    phone: str
    password: str


class TokenRequest(BaseModel):
    token: str


class ChangePasswordRequest(BaseModel):
    new_password: str
    confirm_password: str


# === Endpoints ===

@router.post("/register")
def register(request: Request, req: RegisterRequest, db: Session = Depends(get_db)):
    """Регистрация клиента; после успеха пользователь сразу залогинен"""
    profile = RegisterUserUseCase(db).execute(
        full_name=req.full_name,
        phone=req.phone,
        password=req.password,
        pvz_location=req.pvz_location,
        telegram_id=req.telegram_id,
    )
    SessionStack(request.session).login(profile.user_id)
    return {
        "user_id": profile.user_id,
        "client_code": profile.client_code,
        "role": "user",
        "redirect": "/dashboard",
    }


@router.post("/login")
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    user, role, redirect = LoginUseCase(db).execute(req.phone, req.password)
    SessionStack(request.session).login(user.id)
    return {"user_id": user.id, "role": role.value if role else None, "redirect": redirect}


@router.post("/redeem")
def redeem_login_token(request: Request, req: TokenRequest, db: Session = Depends(get_db)):
    """Вход по одноразовому токену (например, из telegram-auth)"""
    user = IdentityGateway(db).redeem_login_token(req.token)
    db.commit()
    role = resolve_role(db, user.id)
    SessionStack(request.session).login(user.id)
    return {"user_id": user.id, "role": role.value if role else None, "redirect": home_path(role)}


@router.post("/logout")
def logout(request: Request):
    SessionStack(request.session).clear()
    return {"status": "logged_out"}


@router.get("/me")
def me(request: Request, db: Session = Depends(get_db)):
    """Текущий пользователь, роль и баннер входа от имени пользователя"""
    user = get_current_user_optional(request, db)
    if user is None:
        raise UnauthenticatedError()
    role = resolve_role(db, user.id)
    frame = SessionStack(request.session).frame
    return {
        "user_id": user.id,
        "email": user.email,
        "role": role.value if role else None,
        "home": home_path(role),
        "impersonating": {"user_name": frame["target_name"], "admin_id": frame["admin_id"]} if frame else None,
    }


@router.post("/impersonation/redeem")
def redeem_impersonation(request: Request, req: TokenRequest, db: Session = Depends(get_db)):
    """Администратор переключается в аккаунт пользователя по билету из admin-login-as-user"""
    admin = get_current_user(request, db)
    ticket, target_name = RedeemImpersonationUseCase(db).execute(req.token, admin.id)
    SessionStack(request.session).push(ticket, target_name)
    return {"user_id": ticket.target_user_id, "user_name": target_name, "redirect": "/dashboard"}


@router.post("/impersonation/restore")
def restore_admin_session(request: Request, db: Session = Depends(get_db)):
    """Вернуться в аккаунт администратора"""
    stack = SessionStack(request.session)
    frame = stack.frame
    if frame is None:
        raise UnauthenticatedError("Нет активного входа от имени пользователя")
    RestoreAdminSessionUseCase(db).execute(frame["ticket_id"], frame["admin_id"])
    admin_id = stack.pop()
    return {"user_id": admin_id, "redirect": "/admin/users"}


@router.post("/change-password")
def change_password(request: Request, req: ChangePasswordRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    ChangePasswordUseCase(db).execute(user.id, req.new_password, req.confirm_password)
    return {"status": "password_changed"}
