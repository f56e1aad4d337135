"""Checkout models for the POS terminal"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .cart import CartLine, CartTotals


class PaymentType(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE_MONEY = "mobile_money"
    BANK_TRANSFER = "bank_transfer"
    CREDIT = "credit"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"


class SubmissionState(str, Enum):
    """Checkout state machine"""
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(BaseModel):
    """Payment applied to a transaction"""
    type: PaymentType
    amount: Decimal
    reference: Optional[str] = None

    class Config:
        frozen = True


class PaymentSelection(BaseModel):
    """Request to choose the active payment method"""
    type: Optional[PaymentType] = None
    reference: Optional[str] = None


class CustomerSelection(BaseModel):
    """Request to attach (or detach with null) a customer"""
    customer_id: Optional[int] = None


class Transaction(BaseModel):
    """Completed sale; immutable once created"""
    id: str
    items: tuple[CartLine, ...]
    subtotal: Decimal
    discount_total: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    payment_methods: tuple[PaymentMethod, ...]
    status: TransactionStatus = TransactionStatus.COMPLETED
    created_at: datetime
    customer_id: Optional[int] = None

    class Config:
        frozen = True

    @classmethod
    def from_cart(
        cls,
        transaction_id: str,
        lines: list[CartLine],
        totals: CartTotals,
        payment_methods: list[PaymentMethod],
        created_at: datetime,
        customer_id: Optional[int] = None,
    ) -> "Transaction":
        """Build a transaction record from the submitted cart snapshot"""
        return cls(
            id=transaction_id,
            items=tuple(lines),
            subtotal=totals.subtotal,
            discount_total=totals.discount_total,
            tax_amount=totals.tax_amount,
            total_amount=totals.total,
            payment_methods=tuple(payment_methods),
            created_at=created_at,
            customer_id=customer_id,
        )
