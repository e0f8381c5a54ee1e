from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from sqlalchemy.orm import Session

from quotedesk import models

logger = logging.getLogger("quotedesk.notifications")


@dataclass(frozen=True)
class NotificationMessage:
    user_id: str
    title: str
    body: str
    event_key: str
    data: dict[str, Any] = field(default_factory=dict)
    topic: str = "quotes"


class NotificationDispatcher(Protocol):
    def dispatch(self, message: NotificationMessage) -> None: ...


class SqlNotificationDispatcher:
    """Persist in-app notifications using a dedicated session.

    Runs outside the caller's transaction so a failed insert cannot roll back
    the quote change that triggered it.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def dispatch(self, message: NotificationMessage) -> None:
        session = self.session_factory()
        try:
            session.add(
                models.Notification(
                    user_id=message.user_id,
                    topic=message.topic,
                    event_key=message.event_key,
                    title=message.title,
                    body=message.body,
                    data=message.data or None,
                )
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class NullNotificationDispatcher:
    def dispatch(self, message: NotificationMessage) -> None:
        logger.debug(
            "notification.skipped",
            extra={"user_id": message.user_id, "event_key": message.event_key},
        )


def notify_safely(dispatcher: NotificationDispatcher, message: NotificationMessage) -> bool:
    """Best-effort delivery: failures are logged and never reach the caller."""

    if not message.user_id:
        return False
    try:
        dispatcher.dispatch(message)
        return True
    except Exception as exc:
        logger.warning(
            "quote.notification_failed",
            extra={
                "user_id": message.user_id,
                "event_key": message.event_key,
                "error": str(exc),
            },
        )
        return False
