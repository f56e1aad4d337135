"""
Inventory alert engine

Derives stock and expiry alerts from a product snapshot. A scan is pure
unless an AlertHistory is passed, in which case alerts already raised for
the same product and type within the dedup window are suppressed (unless
the priority went up) and the returned alerts are recorded.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from ..models.alert import Alert, AlertPriority, AlertType
from ..models.product import ProductSnapshot

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def days_until_expiry(expiry_date: datetime, now: datetime) -> int:
    """Whole days until expiry, rounded up (negative once expired)"""
    return math.ceil((expiry_date - now).total_seconds() / SECONDS_PER_DAY)


class AlertHistory:
    """
    Last alert raised per (product_id, alert type).

    An equivalent alert inside the type's window is suppressed; one of
    strictly higher priority (low stock running out, expiring becoming
    expired) goes through and restarts the window.
    """

    def __init__(
        self,
        stock_window: timedelta = timedelta(minutes=5),
        expiry_window: timedelta = timedelta(hours=24),
    ):
        self.windows = {
            AlertType.STOCK: stock_window,
            AlertType.EXPIRY: expiry_window,
        }
        self._last_alerted: dict[tuple[int, AlertType], tuple[datetime, AlertPriority]] = {}

    @classmethod
    def from_settings(cls, settings) -> "AlertHistory":
        return cls(
            stock_window=timedelta(seconds=settings.stock_alert_window_seconds),
            expiry_window=timedelta(seconds=settings.expiry_alert_window_seconds),
        )

    def last_alerted_at(self, product_id: int, alert_type: AlertType) -> Optional[datetime]:
        entry = self._last_alerted.get((product_id, alert_type))
        return entry[0] if entry else None

    def is_suppressed(self, alert: Alert, now: datetime) -> bool:
        entry = self._last_alerted.get((alert.product_id, alert.type))
        if entry is None:
            return False
        last, priority = entry
        if alert.priority.rank > priority.rank:
            return False
        return now - last < self.windows[alert.type]

    def record(self, alert: Alert, now: datetime) -> None:
        self._last_alerted[(alert.product_id, alert.type)] = (now, alert.priority)

    def clear(self) -> None:
        self._last_alerted.clear()


class AlertEngine:
    """Stock and expiry alert classification"""

    def __init__(self, expiring_soon_days: int = 7, expiry_horizon_days: int = 30):
        self.expiring_soon_days = expiring_soon_days
        self.expiry_horizon_days = expiry_horizon_days

    def stock_alert(self, product: ProductSnapshot, now: datetime) -> Optional[Alert]:
        """Alert for a product at or below its minimum stock level"""
        if not product.is_low_stock:
            return None

        empty = product.current_stock <= 0
        if empty:
            message = f"{product.name} stock is empty (out of stock)"
        else:
            message = (
                f"{product.name} stock is low "
                f"({product.current_stock} remaining, minimum: {product.min_stock_level})"
            )

        return Alert(
            id=f"stock-{product.id}",
            type=AlertType.STOCK,
            priority=AlertPriority.CRITICAL if empty else AlertPriority.HIGH,
            product_id=product.id,
            product_name=product.name,
            message=message,
            action_required="Reorder immediately",
            timestamp=now,
        )

    def expiry_alert(self, product: ProductSnapshot, now: datetime) -> Optional[Alert]:
        """Alert for an expired product or one expiring within the horizon"""
        if not product.has_expiry or product.expiry_date is None:
            return None

        days = days_until_expiry(product.expiry_date, now)
        if days > self.expiry_horizon_days:
            return None

        if days < 0:
            priority = AlertPriority.CRITICAL
            message = f"{product.name} has expired ({abs(days)} days ago)"
            action = "Remove from inventory"
        elif days <= self.expiring_soon_days:
            priority = AlertPriority.HIGH
            message = f"{product.name} expires in {days} days"
            action = "Plan clearance sale"
        else:
            priority = AlertPriority.MEDIUM
            message = f"{product.name} expires soon ({days} days)"
            action = "Plan clearance sale"

        return Alert(
            id=f"expiry-{product.id}",
            type=AlertType.EXPIRY,
            priority=priority,
            product_id=product.id,
            product_name=product.name,
            message=message,
            action_required=action,
            timestamp=now,
        )

    def scan(
        self,
        products: Iterable[ProductSnapshot],
        now: Optional[datetime] = None,
        history: Optional[AlertHistory] = None,
        types: Optional[Iterable[AlertType]] = None,
    ) -> list[Alert]:
        """
        Scan products and return alerts ordered by priority.

        Args:
            products: Product snapshot to scan
            now: Scan time (defaults to the current UTC time)
            history: Dedup history to consult and update
            types: Restrict the scan to these alert types

        Returns:
            Alerts sorted by priority, highest first; equal priorities keep
            scan order
        """
        now = now or datetime.now(timezone.utc)
        wanted = set(types) if types is not None else set(AlertType)

        alerts: list[Alert] = []
        for product in products:
            if AlertType.STOCK in wanted:
                alert = self.stock_alert(product, now)
                if alert:
                    alerts.append(alert)
            if AlertType.EXPIRY in wanted:
                alert = self.expiry_alert(product, now)
                if alert:
                    alerts.append(alert)

        alerts.sort(key=lambda a: a.priority.rank, reverse=True)

        if history is None:
            return alerts

        emitted = []
        for alert in alerts:
            if history.is_suppressed(alert, now):
                logger.debug(f"Suppressed repeat alert {alert.id}")
                continue
            history.record(alert, now)
            emitted.append(alert)
        return emitted
