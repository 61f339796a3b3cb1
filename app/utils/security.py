"""
Security utilities for the Telegram relay.
Handles: webhook secret verification, user id masking and log-safe previews.
"""
import hmac
from typing import Hashable, Optional

from app.utils.logger import logger


def verify_webhook_secret(received: Optional[str], expected: Optional[str]) -> bool:
    """Verifies that a webhook request genuinely comes from Telegram.

    Telegram echoes the secret passed to setWebhook in the
    X-Telegram-Bot-Api-Secret-Token header. If no secret is configured,
    skip verification (dev mode).
    """
    if not expected:
        return True
    if not received:
        return False

    try:
        return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))
    except Exception as e:
        logger.error(f"Webhook secret verification error: {str(e)}")
        return False


def mask_user(user_id: Hashable) -> str:
    """Masks a user id for safe logging.
    Example: 123456789 → 12****789
    """
    raw = str(user_id)
    if len(raw) <= 5:
        return "****"
    return raw[:2] + "****" + raw[-3:]


def preview(text: Optional[str], length: int = 100) -> str:
    """First `length` characters of a message, single-lined for logs."""
    if not text:
        return ""
    flat = " ".join(text.split())
    if len(flat) > length:
        return flat[:length] + "..."
    return flat

