"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.config import get_settings
from app.application.errors import AppError, ErrorKind
from app.infrastructure.db.session import check_db_connection
from app.api.v1 import admin, auth, functions, packages, profile

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not, including sync routes"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse(
                {"error": "Произошла ошибка", "kind": ErrorKind.GATEWAY.value},
                status_code=500,
            )


def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.kind == ErrorKind.GATEWAY:
        logger.warning("Gateway error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        {"error": exc.message, "kind": exc.kind.value},
        status_code=exc.status_code,
    )


def create_app() -> FastAPI:
    """
    Application factory - создаёт и настраивает FastAPI приложение

    Returns:
        Настроенный FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Cargo",
        debug=settings.DEBUG,
    )

    app.add_exception_handler(AppError, app_error_handler)

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    app.include_router(auth.router)
    app.include_router(functions.router)
    app.include_router(profile.router)
    app.include_router(packages.router)
    app.include_router(admin.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (проверяет доступность БД)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
