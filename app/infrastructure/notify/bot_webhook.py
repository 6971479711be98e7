"""
Telegram bot webhook: tells the bot a Telegram user finished registration.

Best effort: failures are logged and never reach the registering user.
"""
import logging

import requests

from app.config import get_settings

logger = logging.getLogger(__name__)


def notify_registration(telegram_id: str, full_name: str, client_code: str, phone: str, pvz: str) -> bool:
    """POST {telegramId, fio, code, phone, pvz} to BOT_NOTIFY_URL. Returns True on HTTP 2xx."""
    cfg = get_settings()
    if not cfg.BOT_NOTIFY_URL:
        logger.warning("BOT_NOTIFY_URL not configured, skipping registration notify")
        return False
    try:
        resp = requests.post(
            cfg.BOT_NOTIFY_URL,
            json={
                "telegramId": telegram_id,
                "fio": full_name,
                "code": client_code,
                "phone": phone,
                "pvz": pvz,
            },
            timeout=cfg.BOT_NOTIFY_TIMEOUT,
        )
        if not resp.ok:
            logger.warning("Bot notify returned HTTP %d for telegram_id=%s", resp.status_code, telegram_id)
        return resp.ok
    except Exception:
        logger.exception("Bot notify failed for telegram_id=%s", telegram_id)
        return False
