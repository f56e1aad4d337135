"""Cart models for the POS terminal"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CartLine(BaseModel):
    """One product entry in an in-progress sale"""
    product_id: int
    product_name: str
    sku: str
    unit_price: Decimal
    quantity: int = Field(ge=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    discount_amount: Decimal = Decimal("0")
    line_total: Decimal = Decimal("0")
    available_stock: int = Field(ge=0)
    category: str = "General"

    class Config:
        frozen = True


class CartTotals(BaseModel):
    """Cart-level totals derived from the cart, discounts and payment method"""
    subtotal: Decimal
    discount_total: Decimal
    tax_amount: Decimal
    total: Decimal
    item_count: int

    class Config:
        frozen = True


class AddToCartRequest(BaseModel):
    """Request to add a product to the cart"""
    product_id: int
    quantity: int = Field(default=1, gt=0)
    discount_percent: Optional[Decimal] = None


class UpdateCartLineRequest(BaseModel):
    """Request to change a line's quantity (0 or less removes it)"""
    quantity: int


class DiscountRequest(BaseModel):
    """Request to set a line or cart-wide discount percentage"""
    percent: Decimal


class CartResponse(BaseModel):
    """Cart API response"""
    items: list[CartLine]
    totals: CartTotals
    global_discount: Decimal
    message: Optional[str] = None
