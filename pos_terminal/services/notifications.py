"""
Notification sink

Records user-visible notifications in a capped in-memory log and mirrors
each one to a durable store in the background. The in-memory write always
happens first and is never undone: a failed mirror write is logged and
dropped.
"""

import asyncio
import itertools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

from ..models.notification import (
    Notification,
    NotificationPriority,
    NotificationType,
)

logger = logging.getLogger(__name__)

CUE_TYPES = {NotificationType.ERROR, NotificationType.SUCCESS}

PRIORITY_BY_TYPE = {
    NotificationType.ERROR: NotificationPriority.CRITICAL,
    NotificationType.WARNING: NotificationPriority.HIGH,
}


class NotificationStore(Protocol):
    """Durable notification store"""

    async def persist(self, notification: Notification) -> None:
        ...


def log_cue(notification_type: NotificationType) -> None:
    """Default cue: log the notification type"""
    logger.debug(f"Cue: {notification_type.value}")


class NotificationSink:
    """Session notification log with best-effort persistence"""

    def __init__(
        self,
        store: Optional[NotificationStore] = None,
        cue: Optional[Callable[[NotificationType], None]] = None,
        capacity: int = 20,
        default_category: str = "inventory",
    ):
        self.store = store
        self.cue = cue or log_cue
        self.capacity = capacity
        self.default_category = default_category
        self._log: list[Notification] = []
        self._ids = itertools.count(1)
        self._pending: set[asyncio.Task] = set()

    @property
    def notifications(self) -> list[Notification]:
        """Logged notifications, newest first"""
        return list(self._log)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._log if not n.read)

    def emit(
        self,
        type: NotificationType,
        title: str,
        message: str,
        action: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Notification:
        """Record a notification, cue it, and schedule the durable write"""
        metadata = dict(metadata or {})
        notification = Notification(
            id=next(self._ids),
            type=type,
            title=title,
            message=message,
            action=action,
            metadata=metadata,
            priority=PRIORITY_BY_TYPE.get(type, NotificationPriority.NORMAL),
            category=metadata.get("action") or self.default_category,
            timestamp=datetime.now(timezone.utc),
        )

        self._log.insert(0, notification)
        del self._log[self.capacity:]

        if type in CUE_TYPES:
            try:
                self.cue(type)
            except Exception as e:
                logger.warning(f"Notification cue failed: {e}")

        self._schedule_persist(notification)
        return notification

    def _schedule_persist(self, notification: Notification) -> None:
        if self.store is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; notification {notification.id} not persisted")
            return

        task = loop.create_task(self._persist(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, notification: Notification) -> None:
        try:
            await self.store.persist(notification)
        except Exception as e:
            logger.warning(
                f"Database persistence failed (local notification still shown): {e}"
            )

    async def drain(self) -> None:
        """Wait for pending durable writes to finish"""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending)
            self._pending.difference_update(pending)

    def mark_read(self, notification_id: int) -> bool:
        """Mark one notification as read"""
        for i, n in enumerate(self._log):
            if n.id == notification_id:
                if not n.read:
                    self._log[i] = n.model_copy(update={"read": True})
                return True
        return False

    def mark_all_read(self) -> None:
        """Mark every notification as read"""
        self._log = [n if n.read else n.model_copy(update={"read": True}) for n in self._log]

    def clear(self) -> None:
        """Empty the notification log"""
        self._log.clear()
