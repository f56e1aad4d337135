"""Session context for a POS terminal"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ..errors import BackOfficeError, UnknownProductError
from ..models.alert import Alert, AlertPriority, AlertType
from ..models.cart import CartLine, CartTotals
from ..models.checkout import PaymentType, Transaction
from ..models.notification import Banner, NotificationType
from ..models.product import ProductSnapshot
from ..services.alerts import AlertEngine, AlertHistory
from ..services.backoffice_client import BackOfficeClient
from ..services.cart_store import CartStore, clamp_percent
from ..services.notifications import NotificationSink
from ..services.pricing import TaxPolicy, compute_totals
from ..services.submitter import TransactionSubmitter
from .config import Settings
from .scheduler import Scheduler

logger = logging.getLogger(__name__)

STOCK_SCAN_JOB = "stock_scan"
EXPIRY_SCAN_JOB = "expiry_scan"
DEVICE_ACTIVITY_JOB = "device_activity"
BANNER_JOB = "banner_dismiss"
IDLE_CLEANUP_JOB = "idle_session_cleanup"

ALERT_TITLES = {
    (AlertType.STOCK, AlertPriority.CRITICAL): ("Critical Stock Alert", "Restock Immediately"),
    (AlertType.STOCK, AlertPriority.HIGH): ("Low Stock Alert", "Restock Now"),
    (AlertType.EXPIRY, AlertPriority.CRITICAL): ("Product Expired", "Remove from Inventory"),
    (AlertType.EXPIRY, AlertPriority.HIGH): ("Expiry Alert", "Plan Clearance Sale"),
    (AlertType.EXPIRY, AlertPriority.MEDIUM): ("Expiry Alert", "Plan Clearance Sale"),
}

NOTIFICATION_TYPE_BY_PRIORITY = {
    AlertPriority.CRITICAL: NotificationType.ERROR,
    AlertPriority.HIGH: NotificationType.WARNING,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PosSession:
    """
    Everything one cashier's session owns: cart, discounts, payment and
    customer selection, the catalog snapshot, notifications, alert history
    and the timers that drive alert scans.
    """

    def __init__(
        self,
        client: BackOfficeClient,
        settings: Settings,
        session_id: Optional[str] = None,
        sink: Optional[NotificationSink] = None,
        alert_engine: Optional[AlertEngine] = None,
    ):
        now = _now()
        self.session_id = session_id or str(uuid.uuid4())
        self.created_at = now
        self.updated_at = now
        self.client = client
        self.settings = settings

        self.cart = CartStore()
        self.global_discount = Decimal("0")
        self.payment_type: Optional[PaymentType] = PaymentType.CASH
        self.payment_reference: Optional[str] = None
        self.customer_id: Optional[int] = None
        self.notes = ""
        self.tax_policy = TaxPolicy.from_settings(settings)

        self.products: dict[int, ProductSnapshot] = {}
        self.sink = sink or NotificationSink(
            store=client,
            capacity=settings.notification_log_size,
            default_category=settings.notification_category,
        )
        self.alert_engine = alert_engine or AlertEngine()
        self.alert_history = AlertHistory.from_settings(settings)
        self.submitter = TransactionSubmitter(client, self.sink, currency=settings.currency)
        self.scheduler = Scheduler()

        self.banner: Optional[Banner] = None
        self.last_transaction: Optional[Transaction] = None
        self._device_online: Optional[dict[int, bool]] = None

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Load tax settings and the catalog, then start the periodic jobs"""
        await self.load_tax_policy()
        await self.refresh_catalog()
        self.scheduler.every(
            STOCK_SCAN_JOB, self.settings.stock_scan_interval, self.run_stock_check,
            run_immediately=False,
        )
        self.scheduler.every(
            EXPIRY_SCAN_JOB, self.settings.expiry_scan_interval, self.run_expiry_check,
            run_immediately=False,
        )
        self.scheduler.every(
            DEVICE_ACTIVITY_JOB, self.settings.device_poll_interval, self.check_device_activity,
        )
        logger.info(f"Session {self.session_id} started with {len(self.products)} products")

    def reset(self) -> None:
        """Drop the sale in progress"""
        self.cart.clear()
        self.global_discount = Decimal("0")
        self.payment_type = PaymentType.CASH
        self.payment_reference = None
        self.customer_id = None
        self.notes = ""
        self.banner = None
        self._touch()

    async def close(self) -> None:
        """Stop every timer and flush pending notification writes"""
        await self.scheduler.stop()
        await self.sink.drain()
        logger.info(f"Session {self.session_id} closed")

    def _touch(self) -> None:
        self.updated_at = _now()

    # ==================== Cart ====================

    @property
    def totals(self) -> CartTotals:
        return compute_totals(
            self.cart.lines,
            self.global_discount,
            self.payment_type,
            self.tax_policy,
        )

    def get_product(self, product_id: int) -> ProductSnapshot:
        product = self.products.get(product_id)
        if product is None:
            raise UnknownProductError(product_id)
        return product

    def add_product(
        self,
        product_id: int,
        quantity: int = 1,
        discount_percent: Optional[Decimal] = None,
    ) -> CartLine:
        """Add a catalog product to the cart"""
        product = self.get_product(product_id)
        line = self.cart.add_line(product, quantity)
        if discount_percent is not None:
            line = self.cart.apply_discount(product_id, discount_percent) or line
        self._touch()
        return line

    def set_global_discount(self, percent) -> Decimal:
        self.global_discount = clamp_percent(percent)
        self._touch()
        return self.global_discount

    def select_payment(self, payment_type: Optional[PaymentType], reference: Optional[str] = None) -> None:
        self.payment_type = payment_type
        self.payment_reference = reference
        self._touch()

    def attach_customer(self, customer_id: Optional[int]) -> None:
        self.customer_id = customer_id
        self._touch()

    # ==================== Checkout ====================

    async def checkout(self) -> Transaction:
        """Submit the cart; see TransactionSubmitter.submit"""
        return await self.submitter.submit(self)

    def complete_sale(self, transaction: Transaction) -> None:
        """Apply a completed sale: empty the cart and clear per-sale choices"""
        self.cart.clear()
        self.global_discount = Decimal("0")
        self.customer_id = None
        self.payment_reference = None
        self.notes = ""
        self.last_transaction = transaction
        self._touch()

    # ==================== Catalog & alerts ====================

    async def load_tax_policy(self) -> None:
        """Apply the tenant's tax settings, keeping the configured policy on failure"""
        try:
            data = await self.client.get_tenant_settings()
        except BackOfficeError as e:
            logger.warning(f"Could not load tenant tax settings: {e}")
            return
        self.tax_policy = TaxPolicy.from_tenant_settings(data, self.tax_policy)

    async def refresh_catalog(self) -> bool:
        """
        Reload the product snapshot.

        A changed snapshot re-runs both alert scans right away. A failed
        fetch keeps the previous snapshot and is reported to the cashier.
        """
        try:
            products = await self.client.list_products()
        except BackOfficeError as e:
            logger.warning(f"Catalog refresh failed for session {self.session_id}: {e}")
            self.sink.emit(
                NotificationType.ERROR,
                "Catalog Refresh Failed",
                f"Could not load products: {e}",
            )
            return False

        snapshot = {p.id: p for p in products}
        changed = snapshot != self.products
        self.products = snapshot

        if changed:
            if not self.scheduler.trigger(STOCK_SCAN_JOB):
                self.run_stock_check()
            if not self.scheduler.trigger(EXPIRY_SCAN_JOB):
                self.run_expiry_check()
        return True

    def current_alerts(self, now: Optional[datetime] = None) -> list[Alert]:
        """All alerts for the current snapshot, without dedup"""
        return self.alert_engine.scan(self.products.values(), now=now)

    def run_stock_check(self, now: Optional[datetime] = None) -> list[Alert]:
        return self._raise_alerts(AlertType.STOCK, now)

    def run_expiry_check(self, now: Optional[datetime] = None) -> list[Alert]:
        return self._raise_alerts(AlertType.EXPIRY, now)

    def _raise_alerts(self, alert_type: AlertType, now: Optional[datetime]) -> list[Alert]:
        alerts = self.alert_engine.scan(
            self.products.values(),
            now=now,
            history=self.alert_history,
            types=[alert_type],
        )
        for alert in alerts:
            title, action = ALERT_TITLES.get(
                (alert.type, alert.priority), ("Inventory Alert", alert.action_required)
            )
            product = self.products.get(alert.product_id)
            metadata = {
                "product_id": alert.product_id,
                "product_name": alert.product_name,
                "priority": alert.priority.value,
                "action": "low_stock" if alert.type == AlertType.STOCK else "expiry",
            }
            if product is not None and alert.type == AlertType.STOCK:
                metadata["stock"] = product.current_stock
                metadata["min_stock"] = product.min_stock_level
            self.sink.emit(
                NOTIFICATION_TYPE_BY_PRIORITY.get(alert.priority, NotificationType.INFO),
                title,
                alert.message,
                action=action,
                metadata=metadata,
            )
        return alerts

    async def check_device_activity(self) -> None:
        """Report paired devices that came online or went offline since the last poll"""
        try:
            devices = await self.client.list_devices()
        except BackOfficeError as e:
            logger.warning(f"Device activity check failed: {e}")
            return

        current = {d.id: d.is_online for d in devices}
        previous = self._device_online
        self._device_online = current
        if previous is None:
            return

        for device in devices:
            was_online = previous.get(device.id, False)
            if device.is_online and not was_online:
                self.sink.emit(
                    NotificationType.SUCCESS,
                    "Mobile Device Connected",
                    f"{device.name} has connected to the inventory system",
                    action="View Devices",
                    metadata={"device_id": device.id, "device_name": device.name, "action": "connected"},
                )
            elif was_online and not device.is_online:
                self.sink.emit(
                    NotificationType.INFO,
                    "Mobile Device Disconnected",
                    f"{device.name} has disconnected from the inventory system",
                    metadata={"device_id": device.id, "device_name": device.name, "action": "disconnected"},
                )

    # ==================== Banner ====================

    def show_banner(self, type: NotificationType, title: str, message: str) -> Banner:
        """Show an inline message that dismisses itself after a few seconds"""
        self.banner = Banner(type=type, title=title, message=message)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return self.banner
        if not self.scheduler.closed:
            self.scheduler.call_later(BANNER_JOB, self.settings.banner_dismiss_seconds, self.dismiss_banner)
        return self.banner

    def dismiss_banner(self) -> None:
        self.banner = None


class SessionManager:
    """Manages POS sessions"""

    def __init__(self):
        self.sessions: dict[str, PosSession] = {}
        self.scheduler: Optional[Scheduler] = None

    def create_session(self, client: BackOfficeClient, settings: Settings) -> PosSession:
        """Create a new session (call `start()` on it to begin polling)"""
        session = PosSession(client=client, settings=settings)
        self.sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[PosSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    async def close_session(self, session_id: str) -> bool:
        """Close and forget a session"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        for session_id in list(self.sessions):
            await self.close_session(session_id)

    async def cleanup_idle_sessions(self, max_age_hours: float = 24) -> int:
        """Close sessions idle for longer than max_age_hours"""
        now = _now()
        idle = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in idle:
            await self.close_session(sid)
        if idle:
            logger.info(f"Closed {len(idle)} idle session(s)")
        return len(idle)

    def start_cleanup(self, interval: float, max_age_hours: float = 24) -> None:
        """Close idle sessions every `interval` seconds until stop_cleanup()"""
        if self.scheduler is None or self.scheduler.closed:
            self.scheduler = Scheduler()
        self.scheduler.every(
            IDLE_CLEANUP_JOB,
            interval,
            lambda: self.cleanup_idle_sessions(max_age_hours),
            run_immediately=False,
        )

    async def stop_cleanup(self) -> None:
        if self.scheduler is not None:
            await self.scheduler.stop()


# Singleton instance
session_manager = SessionManager()
