"""Product snapshot models"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class ProductSnapshot(BaseModel):
    """Product record as read from the back-office catalog"""
    id: int
    name: str
    sku: str = ""
    current_stock: int = 0
    min_stock_level: int = 0
    selling_price: Decimal = Decimal("0")
    has_expiry: bool = False
    expiry_date: Optional[datetime] = None
    category: str = "General"

    class Config:
        extra = "ignore"
        frozen = True

    @field_validator("current_stock", "min_stock_level", "selling_price", mode="before")
    @classmethod
    def _none_as_zero(cls, value):
        return 0 if value in (None, "") else value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value):
        return value or "General"

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _parse_expiry(cls, value):
        # Date-only values mean midnight UTC
        if value in (None, ""):
            return None
        if isinstance(value, str) and len(value) == 10:
            value = date.fromisoformat(value)
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return value

    @field_validator("expiry_date")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock_level


class ConnectedDevice(BaseModel):
    """Paired mobile device as reported by the back office"""
    id: int
    name: str = "Mobile Device"
    type: str = "mobile"
    is_online: bool = False

    class Config:
        extra = "ignore"
