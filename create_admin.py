"""
Create the first administrator from BOOTSTRAP_ADMIN_PHONE / BOOTSTRAP_ADMIN_PASSWORD

Usage:
    BOOTSTRAP_ADMIN_PHONE=+996555000111 BOOTSTRAP_ADMIN_PASSWORD=... python create_admin.py
"""
from app.application.bootstrap import CreateAdminUseCase
from app.application.errors import AppError
from app.infrastructure.db.session import get_db

db = next(get_db())

try:
    result = CreateAdminUseCase(db).execute()
    print(result["message"])
    if "user_id" in result:
        print(f"  Phone: {result['phone']}")
        print(f"  User ID: {result['user_id']}")
except AppError as exc:
    print(f"Error: {exc.message}")
    raise SystemExit(1)
finally:
    db.close()
