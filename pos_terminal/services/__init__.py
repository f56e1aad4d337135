# POS Terminal Services

from .cart_store import CartStore
from .pricing import TaxPolicy, compute_totals
from .backoffice_client import BackOfficeClient
from .notifications import NotificationSink, NotificationStore
from .alerts import AlertEngine, AlertHistory
from .submitter import TransactionSubmitter

__all__ = [
    "CartStore",
    "TaxPolicy",
    "compute_totals",
    "BackOfficeClient",
    "NotificationSink",
    "NotificationStore",
    "AlertEngine",
    "AlertHistory",
    "TransactionSubmitter",
]
