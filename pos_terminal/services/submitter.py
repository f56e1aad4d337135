"""
Transaction submission

Validates the session's cart and payment selection, posts the sale to the
back office exactly once, and drives the session through the outcome:
a completed sale clears the cart and refreshes the catalog, a failed one
leaves everything as it was so the cashier can retry.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from ..errors import BackOfficeError, CheckoutValidationError
from ..models.cart import CartLine, CartTotals
from ..models.checkout import (
    PaymentMethod,
    PaymentType,
    SubmissionState,
    Transaction,
)
from ..models.notification import NotificationType
from ..models.product import ProductSnapshot
from .backoffice_client import BackOfficeClient
from .notifications import NotificationSink

if TYPE_CHECKING:
    from ..core.session import PosSession

logger = logging.getLogger(__name__)


def _epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def _wire(amount: Decimal) -> float:
    """JSON number for a Decimal amount"""
    return float(amount)


def payment_reference(payment_type: PaymentType, entered: Optional[str], now: datetime) -> str:
    """Mobile money uses the cashier-entered reference; others get a generated one"""
    if payment_type == PaymentType.MOBILE_MONEY:
        return entered or ""
    return f"{payment_type.value.upper()}-{_epoch_ms(now)}"


def build_payload(
    lines: list[CartLine],
    totals: CartTotals,
    payment_methods: list[PaymentMethod],
    customer_id: Optional[int],
    notes: str = "",
) -> dict[str, Any]:
    """Request body for POST /sales/transactions"""
    methods = []
    for method in payment_methods:
        entry = {"type": method.type.value, "amount": _wire(method.amount)}
        if method.reference is not None:
            entry["reference"] = method.reference
        methods.append(entry)

    return {
        "items": [
            {
                "product_id": line.product_id,
                "quantity": line.quantity,
                "unit_price": _wire(line.unit_price),
                "discount_percent": _wire(line.discount_percent),
            }
            for line in lines
        ],
        "customer_id": customer_id,
        "subtotal": _wire(totals.subtotal),
        "discount_total": _wire(totals.discount_total),
        "tax_amount": _wire(totals.tax_amount),
        "total_amount": _wire(totals.total),
        "payment_methods": methods,
        "notes": notes,
    }


def transaction_id_from(response: dict[str, Any], now: datetime) -> str:
    """Label for the transaction: server number, then server id, then a local one"""
    for key in ("transaction_number", "id"):
        if response.get(key) not in (None, ""):
            return str(response[key])
    return f"TXN-{_epoch_ms(now)}"


def low_stock_after_sale(
    lines: list[CartLine],
    snapshot: dict[int, ProductSnapshot],
) -> list[tuple[ProductSnapshot, int]]:
    """
    Products this sale pushed from above their minimum to at or below it.

    Uses the snapshot taken before submission; the server is not asked.
    Returns (product, stock remaining after the sale) pairs.
    """
    crossed = []
    for line in lines:
        product = snapshot.get(line.product_id)
        if product is None or product.is_low_stock:
            continue
        new_stock = product.current_stock - line.quantity
        if product.model_copy(update={"current_stock": new_stock}).is_low_stock:
            crossed.append((product, new_stock))
    return crossed


class TransactionSubmitter:
    """Checkout state machine: idle -> validating -> submitting -> completed | failed"""

    def __init__(self, client: BackOfficeClient, sink: NotificationSink, currency: str = "UGX"):
        self.client = client
        self.sink = sink
        self.currency = currency
        self.state = SubmissionState.IDLE

    @property
    def in_flight(self) -> bool:
        return self.state == SubmissionState.SUBMITTING

    def validate(self, session: "PosSession") -> None:
        """Raise CheckoutValidationError if the session cannot be submitted"""
        if self.in_flight:
            raise CheckoutValidationError(
                "Transaction In Progress",
                "Please wait for the current transaction to finish",
            )
        if session.cart.is_empty:
            raise CheckoutValidationError(
                "Empty Cart",
                "Please add items to cart before checkout",
            )
        if session.payment_type is None:
            raise CheckoutValidationError(
                "Payment Required",
                "Please select a payment method",
            )
        if session.payment_type == PaymentType.CREDIT and session.customer_id is None:
            raise CheckoutValidationError(
                "Customer Required",
                "Please select a customer for credit sales.",
            )

    async def submit(self, session: "PosSession") -> Transaction:
        """
        Submit the session's cart as a sale.

        Raises:
            CheckoutValidationError: Nothing was sent; the session is unchanged
            BackOfficeError: The back office rejected or never received the
                sale; the session is unchanged
        """
        try:
            # An in-flight submission keeps its state; the new one is rejected
            if not self.in_flight:
                self.state = SubmissionState.VALIDATING
            self.validate(session)
        except CheckoutValidationError as e:
            if self.state == SubmissionState.VALIDATING:
                self.state = SubmissionState.IDLE
            session.show_banner(NotificationType.WARNING, e.title, e.message)
            raise

        now = datetime.now(timezone.utc)
        lines = session.cart.lines
        totals = session.totals
        snapshot = dict(session.products)
        customer_id = session.customer_id
        payment = PaymentMethod(
            type=session.payment_type,
            amount=totals.total,
            reference=payment_reference(session.payment_type, session.payment_reference, now),
        )
        payload = build_payload(lines, totals, [payment], customer_id, session.notes)

        self.state = SubmissionState.SUBMITTING
        try:
            response = await self.client.create_transaction(payload)
        except Exception as e:
            self.state = SubmissionState.FAILED
            if isinstance(e, BackOfficeError):
                logger.error(f"Transaction failed for session {session.session_id}: {e}")
                message = str(e) or "Unknown error occurred"
            else:
                logger.exception(f"Unexpected error submitting session {session.session_id}")
                message = "Unknown error occurred"
            self.sink.emit(
                NotificationType.ERROR,
                "Transaction Failed",
                message,
                metadata={"action": "sale", "total_amount": _wire(totals.total)},
            )
            session.show_banner(NotificationType.ERROR, "Transaction Failed", message)
            self.state = SubmissionState.IDLE
            raise
        except BaseException:
            # Cancelled mid-request
            self.state = SubmissionState.IDLE
            raise

        transaction = Transaction.from_cart(
            transaction_id=transaction_id_from(response, now),
            lines=lines,
            totals=totals,
            payment_methods=[payment],
            created_at=now,
            customer_id=customer_id,
        )
        session.complete_sale(transaction)
        self.state = SubmissionState.COMPLETED
        logger.info(
            f"Transaction {transaction.id} completed: {self.currency} {transaction.total_amount} "
            f"({totals.item_count} items)"
        )

        self._notify_completed(transaction, totals)
        for product, new_stock in low_stock_after_sale(lines, snapshot):
            self.sink.emit(
                NotificationType.WARNING,
                "Low Stock After Sale",
                f"{product.name} is now low stock ({new_stock} remaining) after this sale",
                action="Restock Now",
                metadata={
                    "product_id": product.id,
                    "product_name": product.name,
                    "new_stock": new_stock,
                    "min_stock": product.min_stock_level,
                    "caused_by_transaction": transaction.id,
                },
            )

        session.show_banner(
            NotificationType.SUCCESS,
            "Transaction Completed!",
            f"Transaction #: {transaction.id} processed successfully",
        )
        await session.refresh_catalog()
        return transaction

    def _notify_completed(self, transaction: Transaction, totals: CartTotals) -> None:
        customer = (
            f" for customer #{transaction.customer_id}"
            if transaction.customer_id is not None
            else " (Walk-in customer)"
        )
        self.sink.emit(
            NotificationType.SUCCESS,
            "Sale Completed",
            f"Transaction {transaction.id} processed successfully - "
            f"{self.currency} {transaction.total_amount:,.2f}{customer}",
            action="View Receipt",
            metadata={
                "transaction_id": transaction.id,
                "total_amount": _wire(transaction.total_amount),
                "items_count": totals.item_count,
                "payment_method": transaction.payment_methods[0].type.value,
                "discount_applied": totals.discount_total > 0,
                "customer_id": transaction.customer_id,
                "action": "sale",
            },
        )
