"""
Application error taxonomy.

Use cases raise AppError subclasses; the API layer maps ErrorKind to an HTTP
status and renders {"error": message, "kind": kind}.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    GATEWAY = "gateway"


HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.GATEWAY: 500,
}


class AppError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION
    default_message = "Произошла ошибка"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]


class ValidationError(AppError):
    """Missing or malformed input"""
    kind = ErrorKind.VALIDATION
    default_message = "Некорректные данные"


class UnauthenticatedError(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Требуется авторизация"


class ForbiddenError(AppError):
    """Authenticated, but the role does not allow the action"""
    kind = ErrorKind.FORBIDDEN
    default_message = "Доступ запрещён"


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Не найдено"


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Запись уже существует"


class GatewayError(AppError):
    """Store/identity failure. Details go to the log, never to the caller"""
    kind = ErrorKind.GATEWAY
    default_message = "Произошла ошибка"
