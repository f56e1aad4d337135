"""Exceptions raised by the POS terminal core"""

from typing import Optional


class PosError(Exception):
    """Base exception for POS terminal errors"""
    pass


class CheckoutValidationError(PosError):
    """Checkout rejected before any network call"""

    def __init__(self, title: str, message: str):
        super().__init__(message)
        self.title = title
        self.message = message


class UnknownProductError(PosError):
    """Product id is not present in the session's catalog snapshot"""

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class BackOfficeError(PosError):
    """Back-office API request failed (transport error or HTTP status >= 400)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotificationPersistenceError(BackOfficeError):
    """Persisting a notification to the back office failed"""
    pass
