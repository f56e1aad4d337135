"""Cart line storage for a POS session"""

from decimal import Decimal
from typing import Optional

from ..models.cart import CartLine
from ..models.product import ProductSnapshot

HUNDRED = Decimal("100")


def clamp_percent(percent) -> Decimal:
    """Clamp a percentage to [0, 100]"""
    return min(max(Decimal(str(percent)), Decimal("0")), HUNDRED)


def _priced(line: CartLine, quantity: int, discount_percent: Decimal) -> CartLine:
    """Return a copy of the line with quantity, discount and amounts recomputed"""
    quantity = max(0, min(quantity, line.available_stock))
    gross = quantity * line.unit_price
    return line.model_copy(
        update={
            "quantity": quantity,
            "discount_percent": discount_percent,
            "discount_amount": gross * discount_percent / HUNDRED,
            "line_total": gross * (1 - discount_percent / HUNDRED),
        }
    )


class CartStore:
    """
    In-memory cart for one session.

    Lines are keyed by product id and kept in insertion order. Quantities
    are clamped to the product stock seen on the latest add; excess
    requests are never rejected.
    """

    def __init__(self):
        self._lines: dict[int, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def lines(self) -> list[CartLine]:
        """Ordered copy of the cart lines"""
        return list(self._lines.values())

    def get_line(self, product_id: int) -> Optional[CartLine]:
        """Get a line by product ID"""
        return self._lines.get(product_id)

    def add_line(self, product: ProductSnapshot, quantity: int = 1) -> CartLine:
        """Add a product, merging into its existing line if present"""
        existing = self._lines.get(product.id)
        stock = max(product.current_stock, 0)

        if existing:
            line = _priced(
                existing.model_copy(update={"available_stock": stock}),
                existing.quantity + quantity,
                existing.discount_percent,
            )
        else:
            line = _priced(
                CartLine(
                    product_id=product.id,
                    product_name=product.name,
                    sku=product.sku,
                    unit_price=product.selling_price,
                    quantity=0,
                    available_stock=stock,
                    category=product.category,
                ),
                quantity,
                Decimal("0"),
            )

        self._lines[product.id] = line
        return line

    def add_line_with_discount(self, product: ProductSnapshot, percent) -> CartLine:
        """Add one unit of a product and set its line discount"""
        line = self.add_line(product, 1)
        return self.apply_discount(product.id, percent) or line

    def remove_line(self, product_id: int) -> None:
        """Remove a line from the cart"""
        self._lines.pop(product_id, None)

    def set_quantity(self, product_id: int, quantity: int) -> Optional[CartLine]:
        """Set a line's quantity; zero or less removes the line"""
        line = self._lines.get(product_id)
        if not line:
            return None

        if quantity <= 0:
            self.remove_line(product_id)
            return None

        line = _priced(line, quantity, line.discount_percent)
        self._lines[product_id] = line
        return line

    def apply_discount(self, product_id: int, percent) -> Optional[CartLine]:
        """Set a line's discount percentage, clamped to [0, 100]"""
        line = self._lines.get(product_id)
        if not line:
            return None

        line = _priced(line, line.quantity, clamp_percent(percent))
        self._lines[product_id] = line
        return line

    def clear(self) -> None:
        """Clear all lines from the cart"""
        self._lines.clear()
