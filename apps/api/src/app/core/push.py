"""
Push Messaging using Firebase Cloud Messaging

Thin async wrapper over firebase-admin. When no service account is
configured the message is logged instead of sent, mirroring how the
email client behaves without an API key.
"""

import asyncio
import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials, messaging

from app.core.config import settings

logger = logging.getLogger(__name__)

_app: firebase_admin.App | None = None


class PushDeliveryError(Exception):
    """Raised when FCM rejects or fails to deliver a message."""


def init_push() -> bool:
    """
    Initialize the Firebase app from settings.firebase_credentials_file.

    Returns:
        True if push delivery is enabled
    """
    global _app

    if _app is not None:
        return True

    if not settings.firebase_credentials_file:
        logger.warning("FIREBASE_CREDENTIALS_FILE not set - push messages will be logged only")
        return False

    cred = credentials.Certificate(settings.firebase_credentials_file)
    _app = firebase_admin.initialize_app(cred)
    logger.info("Firebase push messaging initialized")
    return True


def is_push_enabled() -> bool:
    return _app is not None


async def send_push(
    token: str,
    title: str,
    body: str,
    data: dict[str, Any] | None = None,
) -> str | None:
    """
    Send a single push message.

    FCM data payloads must be string-to-string, so values are stringified.

    Returns:
        The FCM message id, or None when push is disabled

    Raises:
        PushDeliveryError: If FCM rejects the message
    """
    string_data = {k: str(v) for k, v in (data or {}).items()}

    if _app is None:
        logger.info(f"PUSH (disabled) | TITLE: {title} | DATA: {string_data}")
        return None

    message = messaging.Message(
        notification=messaging.Notification(title=title, body=body),
        data=string_data,
        token=token,
    )

    try:
        # firebase-admin is synchronous
        return await asyncio.to_thread(messaging.send, message, app=_app)
    except Exception as e:
        raise PushDeliveryError(str(e)) from e
