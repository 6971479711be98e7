import hashlib
import secrets

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import get_settings
from app.infrastructure.db.models import User
from app.utils.validation import phone_digits

# pbkdf2_sha256: primary (no native deps, works on Windows)
# bcrypt: legacy support for existing hashes
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated=["bcrypt"])

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def synthetic_email(phone: str, domain: str | None = None) -> str:
    """Login e-mail derived from the phone: '+996 555 000111' -> '996555000111@abucargo.app'"""
    domain = domain or get_settings().EMAIL_DOMAIN
    return f"{phone_digits(phone)}@{domain}"


def new_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(raw: str) -> str:
    """One-time tokens are stored as SHA-256 only"""
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()
