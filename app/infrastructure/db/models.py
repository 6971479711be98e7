"""
SQLAlchemy ORM models
"""
from decimal import Decimal
from sqlalchemy import String, DateTime, Integer, Text, TIMESTAMP, func, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


class User(Base):
    """
    Identity: synthetic e-mail + password hash.

    Profile and role live in their own tables (profiles, user_roles).
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    last_seen_at: Mapped[DateTime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )


class UserRole(Base):
    """Exactly one role per identity: user | pvz | admin"""
    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, server_default="user")

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Profile(Base):
    """Client card: code, name, phone, pickup point, optional Telegram id"""
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)

    # YQ… / YX… / JL…: prefix encodes the pickup point
    client_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    pvz_location: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    telegram_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True, index=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Package(Base):
    """Tracked shipment"""
    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(primary_key=True)
    track_number: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)

    weight: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False, default=Decimal("0"), server_default="0")
    price_per_kg: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, server_default="waiting_arrival", index=True)

    # Owner: by identity, or by client code when imported without one
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    client_code: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)

    arrived_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    delivered_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class PvzLocation(Base):
    """Pickup point. id is the 2-letter client-code prefix (YQ, YX, JL)"""
    __tablename__ = "pvz_locations"

    id: Mapped[str] = mapped_column(String(2), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    china_warehouse_address: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class AppSettings(Base):
    """Singleton row: branding, price per kg, contact channels"""
    __tablename__ = "app_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    logo_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    primary_color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    price_per_kg: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_telegram: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_whatsapp: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # [{"id": uuid, "name": ..., "phone": ..., "note": ...}]
    contact_info: Mapped[list | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class LoginToken(Base):
    """One-time login artifact (magic-link style). Only the hash is stored"""
    __tablename__ = "login_tokens"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    purpose: Mapped[str] = mapped_column(String(32), nullable=False)

    expires_at: Mapped[DateTime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    used_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class ImpersonationTicket(Base):
    """
    Server-side record of "admin acts as user".

    issued -> redeemed (session switched) -> restored (back to admin)
    """
    __tablename__ = "impersonation_tickets"

    id: Mapped[int] = mapped_column(primary_key=True)
    admin_user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    target_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)

    expires_at: Mapped[DateTime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    redeemed_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    session_expires_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    restored_at: Mapped[DateTime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class EventLog(Base):
    """
    Audit trail: privileged actions as immutable events
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    subject_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)  # PostgreSQL JSONB

    occurred_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
