"""Notification models"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


class NotificationPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class Notification(BaseModel):
    """User-visible notification held in the session log"""
    id: int
    type: NotificationType
    title: str
    message: str
    action: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: str = "general"
    timestamp: datetime
    read: bool = False

    def to_persist_body(self) -> dict[str, Any]:
        """Body for the back-office notification store"""
        body: dict[str, Any] = {
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "category": self.category,
            "is_persistent": True,
            "priority": self.priority.value,
        }
        if self.action:
            body["action"] = self.action
        if self.metadata:
            body["metadata"] = self.model_dump(mode="json")["metadata"]
        return body


class Banner(BaseModel):
    """Inline status message, auto-dismissed after a few seconds"""
    type: NotificationType
    title: str
    message: str


class NotificationListResponse(BaseModel):
    """Notification log API response"""
    notifications: list[Notification]
    unread_count: int
