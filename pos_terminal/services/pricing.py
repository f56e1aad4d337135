"""Cart totals computation"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Optional

from ..models.cart import CartLine, CartTotals
from ..models.checkout import PaymentType

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class TaxPolicy:
    """Tax rate and the payment methods it applies to"""
    rate: Decimal = Decimal("0.18")
    taxable_payment_methods: frozenset[PaymentType] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls, settings) -> "TaxPolicy":
        return cls(
            rate=Decimal(str(settings.tax_rate)),
            taxable_payment_methods=frozenset(
                PaymentType(m) for m in settings.taxable_payment_methods
            ),
        )

    @classmethod
    def from_tenant_settings(cls, data: dict[str, Any], fallback: "TaxPolicy") -> "TaxPolicy":
        """
        Build a policy from back-office tenant settings.

        The tenant stores the rate as a percentage (18 for 18%). Unknown
        payment method names are ignored; missing keys keep the fallback.
        """
        tax_settings = data.get("tax_settings") or {}
        if not tax_settings:
            return fallback

        rate = fallback.rate
        if tax_settings.get("defaultRate") is not None:
            rate = Decimal(str(tax_settings["defaultRate"])) / HUNDRED

        methods = fallback.taxable_payment_methods
        if tax_settings.get("taxablePaymentMethods") is not None:
            known = {p.value for p in PaymentType}
            methods = frozenset(
                PaymentType(m) for m in tax_settings["taxablePaymentMethods"] if m in known
            )

        return cls(rate=rate, taxable_payment_methods=methods)

    def applies_to(self, payment_type: Optional[PaymentType]) -> bool:
        return payment_type is not None and payment_type in self.taxable_payment_methods


def compute_totals(
    lines: Iterable[CartLine],
    global_discount_percent: Decimal,
    payment_type: Optional[PaymentType],
    tax_policy: TaxPolicy,
) -> CartTotals:
    """
    Derive cart totals.

    The order matters: the subtotal ignores line discounts, the global
    discount is taken from the subtotal, and tax is charged on what is
    left only when the payment method is in the taxable set.
    """
    lines = list(lines)
    subtotal = sum((line.quantity * line.unit_price for line in lines), Decimal("0"))
    discount_total = (
        sum((line.discount_amount for line in lines), Decimal("0"))
        + subtotal * Decimal(str(global_discount_percent)) / HUNDRED
    )
    taxable_amount = subtotal - discount_total
    tax_amount = taxable_amount * tax_policy.rate if tax_policy.applies_to(payment_type) else Decimal("0")

    return CartTotals(
        subtotal=subtotal,
        discount_total=discount_total,
        tax_amount=tax_amount,
        total=taxable_amount + tax_amount,
        item_count=sum(line.quantity for line in lines),
    )
