# POS Terminal Models

from .product import ProductSnapshot, ConnectedDevice
from .cart import (
    CartLine,
    CartTotals,
    AddToCartRequest,
    UpdateCartLineRequest,
    DiscountRequest,
    CartResponse,
)
from .checkout import (
    PaymentType,
    PaymentMethod,
    PaymentSelection,
    CustomerSelection,
    SubmissionState,
    Transaction,
    TransactionStatus,
)
from .alert import Alert, AlertType, AlertPriority, PRIORITY_RANK
from .notification import (
    Banner,
    Notification,
    NotificationType,
    NotificationPriority,
    NotificationListResponse,
)

__all__ = [
    "ProductSnapshot",
    "ConnectedDevice",
    "CartLine",
    "CartTotals",
    "AddToCartRequest",
    "UpdateCartLineRequest",
    "DiscountRequest",
    "CartResponse",
    "PaymentType",
    "PaymentMethod",
    "PaymentSelection",
    "CustomerSelection",
    "SubmissionState",
    "Transaction",
    "TransactionStatus",
    "Alert",
    "AlertType",
    "AlertPriority",
    "PRIORITY_RANK",
    "Banner",
    "Notification",
    "NotificationType",
    "NotificationPriority",
    "NotificationListResponse",
]
