"""Inventory alert models"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class AlertType(str, Enum):
    STOCK = "stock"
    EXPIRY = "expiry"


class AlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


PRIORITY_RANK = {
    AlertPriority.CRITICAL: 4,
    AlertPriority.HIGH: 3,
    AlertPriority.MEDIUM: 2,
    AlertPriority.LOW: 1,
}


class Alert(BaseModel):
    """Stock or expiry alert derived from a product snapshot"""
    id: str
    type: AlertType
    priority: AlertPriority
    product_id: int
    product_name: str
    message: str
    action_required: str
    timestamp: datetime

    class Config:
        frozen = True
