"""
Client profile: own card with client code, pickup point and China warehouse address.
"""
from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.application.app_settings import settings_to_dict
from app.application.profile import ProfileService


router = APIRouter(prefix="/api/v1/profile", tags=["profile"])


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None


@router.get("")
def get_profile(request: Request, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    return ProfileService(db).get_profile_data(user.id)


@router.put("")
def update_profile(request: Request, req: ProfileUpdateRequest, db: Session = Depends(get_db)):
    user = get_current_user(request, db)
    service = ProfileService(db)
    service.update_own_profile(user.id, full_name=req.full_name, phone=req.phone)
    return service.get_profile_data(user.id)


@router.get("/contacts")
def get_contacts(request: Request, db: Session = Depends(get_db)):
    """Контакты компании для клиента"""
    get_current_user(request, db)
    data = settings_to_dict(db)
    return {
        "contact_phone": data["contact_phone"],
        "contact_email": data["contact_email"],
        "contact_telegram": data["contact_telegram"],
        "contact_whatsapp": data["contact_whatsapp"],
        "contacts": data["contacts"],
    }
