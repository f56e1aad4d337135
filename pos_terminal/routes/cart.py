"""Cart API routes for the POS terminal"""

from fastapi import APIRouter, HTTPException, Depends

from ..core.session import PosSession
from ..errors import UnknownProductError
from ..models.cart import (
    AddToCartRequest,
    CartResponse,
    DiscountRequest,
    UpdateCartLineRequest,
)
from ..models.checkout import CustomerSelection, PaymentSelection
from .deps import get_pos_session

router = APIRouter(prefix="/api/sessions/{session_id}", tags=["Cart"])


def _cart_response(session: PosSession, message: str = None) -> CartResponse:
    return CartResponse(
        items=session.cart.lines,
        totals=session.totals,
        global_discount=session.global_discount,
        message=message,
    )


@router.get("/cart", response_model=CartResponse)
async def get_cart(session: PosSession = Depends(get_pos_session)):
    """Get cart lines and totals"""
    return _cart_response(session)


@router.post("/cart/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    session: PosSession = Depends(get_pos_session),
):
    """Add a product to the cart (quantity is clamped to available stock)"""
    try:
        line = session.add_product(
            request.product_id,
            request.quantity,
            discount_percent=request.discount_percent,
        )
    except UnknownProductError:
        raise HTTPException(status_code=404, detail="Product not found")

    return _cart_response(session, message=f"{line.product_name}: {line.quantity} in cart")


@router.put("/cart/items/{product_id}", response_model=CartResponse)
async def update_cart_line(
    product_id: int,
    request: UpdateCartLineRequest,
    session: PosSession = Depends(get_pos_session),
):
    """Update a line's quantity; zero or less removes it"""
    if not session.cart.get_line(product_id):
        raise HTTPException(status_code=404, detail="Item not in cart")

    session.cart.set_quantity(product_id, request.quantity)
    return _cart_response(session, message="Cart updated")


@router.put("/cart/items/{product_id}/discount", response_model=CartResponse)
async def apply_line_discount(
    product_id: int,
    request: DiscountRequest,
    session: PosSession = Depends(get_pos_session),
):
    """Set a line discount percentage (clamped to 0-100)"""
    if not session.cart.apply_discount(product_id, request.percent):
        raise HTTPException(status_code=404, detail="Item not in cart")
    return _cart_response(session, message="Discount applied")


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: int,
    session: PosSession = Depends(get_pos_session),
):
    """Remove a line from the cart"""
    session.cart.remove_line(product_id)
    return _cart_response(session, message="Item removed")


@router.delete("/cart", response_model=CartResponse)
async def clear_cart(session: PosSession = Depends(get_pos_session)):
    """Clear all lines from the cart"""
    session.cart.clear()
    return _cart_response(session, message="Cart cleared")


@router.put("/cart/discount", response_model=CartResponse)
async def set_global_discount(
    request: DiscountRequest,
    session: PosSession = Depends(get_pos_session),
):
    """Set the cart-wide discount percentage (clamped to 0-100)"""
    session.set_global_discount(request.percent)
    return _cart_response(session, message="Cart discount applied")


@router.put("/payment", response_model=CartResponse)
async def select_payment(
    request: PaymentSelection,
    session: PosSession = Depends(get_pos_session),
):
    """Choose the payment method; totals are re-priced for its tax treatment"""
    session.select_payment(request.type, request.reference)
    return _cart_response(session, message="Payment method updated")


@router.put("/customer", response_model=CartResponse)
async def attach_customer(
    request: CustomerSelection,
    session: PosSession = Depends(get_pos_session),
):
    """Attach a customer to the sale (required for credit sales)"""
    session.attach_customer(request.customer_id)
    return _cart_response(session, message="Customer updated")
