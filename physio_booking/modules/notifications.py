# physio_booking/modules/notifications.py
from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class PatientNotifier(Protocol):
    async def notify(self, phone: str, message: str) -> None: ...


class LoggingNotifier:
    """
    Default sink: records the message in the application log. SMS/email
    delivery is plugged in by replacing the get_notifier dependency.
    """

    async def notify(self, phone: str, message: str) -> None:
        logger.info("Patient notification to %s: %s", phone, message)


_default_notifier = LoggingNotifier()


def get_notifier() -> PatientNotifier:
    return _default_notifier


async def notify_quietly(notifier: PatientNotifier | None, phone: str, message: str) -> None:
    """
    Fire-and-forget: a failing sink never affects the booking flow.
    """
    if notifier is None:
        return
    try:
        await notifier.notify(phone, message)
    except Exception:
        logger.exception("Notification to %s failed", phone)
