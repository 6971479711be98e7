"""
User import from a spreadsheet: one create-user call per row.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from app.application.errors import AppError
from app.application.users import CreateUserUseCase
from app.domain.client_code import derive_pvz_location, normalize_client_code

logger = logging.getLogger(__name__)

# Accepted header spellings per field (compared case-insensitively)
HEADER_ALIASES = {
    "client_code": ("ID", "Код", "Код_пользователя", "client_code"),
    "full_name": ("Имя", "ФИО", "Name", "FullName"),
    "phone": ("Телефон", "Номер", "Phone", "Number"),
    "password": ("Пароль", "Password", "Pwd"),
}


@dataclass
class UserImportResult:
    created: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"created": self.created, "failed": self.failed, "errors": self.errors}


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def extract_user_fields(record: dict[str, Any]) -> dict[str, str]:
    """
    Pick client_code/full_name/phone/password from a row keyed by header.
    Missing fields come back as empty strings.
    """
    lowered = {str(k).strip().lower(): v for k, v in record.items()}
    fields = {}
    for name, aliases in HEADER_ALIASES.items():
        value = ""
        for alias in aliases:
            value = _text(lowered.get(alias.lower()))
            if value:
                break
        fields[name] = value
    return fields


class ImportUsersUseCase:
    """
    Rows are validated locally, then created through CreateUserUseCase.
    Counts are reported once the whole file is processed; created users stay.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, records: list[dict[str, Any]], actor_user_id: int) -> UserImportResult:
        result = UserImportResult()
        create_user = CreateUserUseCase(self.db)

        for record in records:
            fields = extract_user_fields(record)
            client_code = normalize_client_code(fields["client_code"])

            if not all(fields.values()):
                result.failed += 1
                result.errors.append("Строка пропущена: отсутствуют обязательные поля")
                continue

            pvz_location = derive_pvz_location(client_code)
            if pvz_location is None:
                result.failed += 1
                result.errors.append(f"{client_code}: ID должен начинаться с YQ, YX или JL")
                continue

            try:
                create_user.execute(
                    client_code=client_code,
                    full_name=fields["full_name"],
                    phone=fields["phone"],
                    pvz_location=pvz_location,
                    password=fields["password"],
                    actor_user_id=actor_user_id,
                )
            except AppError as exc:
                self.db.rollback()
                result.failed += 1
                result.errors.append(f"{client_code}: {exc.message}")
                continue

            result.created += 1

        logger.info("User import: created=%d failed=%d", result.created, result.failed)
        return result
