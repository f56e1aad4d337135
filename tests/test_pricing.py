"""Tests for cart totals and the tax policy."""

from decimal import Decimal

import pytest

from conftest import make_product, make_settings
from pos_terminal.models.checkout import PaymentType
from pos_terminal.services.cart_store import CartStore
from pos_terminal.services.pricing import TaxPolicy, compute_totals

NO_TAX = TaxPolicy()
CARD_TAX = TaxPolicy(rate=Decimal("0.18"), taxable_payment_methods=frozenset({PaymentType.CARD}))


def _cart(*entries) -> CartStore:
    cart = CartStore()
    for product, quantity, discount in entries:
        cart.add_line(product, quantity)
        if discount:
            cart.apply_discount(product.id, discount)
    return cart


def test_worked_example():
    cart = _cart((make_product(selling_price="1000"), 3, 10))
    totals = compute_totals(cart.lines, Decimal("5"), PaymentType.CASH, NO_TAX)

    assert totals.subtotal == Decimal("3000")
    assert cart.lines[0].discount_amount == Decimal("300")
    assert totals.discount_total == Decimal("450")
    assert totals.tax_amount == 0
    assert totals.total == Decimal("2550")
    assert totals.item_count == 3


def test_subtotal_ignores_line_discounts():
    cart = _cart(
        (make_product(id=1, selling_price="1000"), 2, 50),
        (make_product(id=2, selling_price="250"), 4, 100),
    )
    totals = compute_totals(cart.lines, Decimal("0"), PaymentType.CASH, NO_TAX)

    assert totals.subtotal == Decimal("3000")
    assert totals.discount_total == Decimal("2000")
    assert totals.total == Decimal("1000")
    assert totals.item_count == 6


def test_global_discount_applies_to_subtotal():
    cart = _cart((make_product(selling_price="2000"), 1, 0))
    totals = compute_totals(cart.lines, Decimal("25"), PaymentType.CASH, NO_TAX)

    assert totals.discount_total == Decimal("500")
    assert totals.total == Decimal("1500")


def test_tax_charged_only_for_taxable_payment():
    cart = _cart((make_product(selling_price="1000"), 3, 10))

    cash = compute_totals(cart.lines, Decimal("5"), PaymentType.CASH, CARD_TAX)
    card = compute_totals(cart.lines, Decimal("5"), PaymentType.CARD, CARD_TAX)

    assert cash.tax_amount == 0
    assert cash.total == Decimal("2550")
    assert card.tax_amount == Decimal("459")
    assert card.total == Decimal("3009")


def test_no_payment_method_means_no_tax():
    cart = _cart((make_product(), 1, 0))
    totals = compute_totals(cart.lines, Decimal("0"), None, CARD_TAX)

    assert totals.tax_amount == 0


@pytest.mark.parametrize("payment_type", list(PaymentType))
def test_tax_disabled_by_default(payment_type):
    cart = _cart((make_product(), 2, 0))
    policy = TaxPolicy.from_settings(make_settings())
    totals = compute_totals(cart.lines, Decimal("0"), payment_type, policy)

    assert totals.tax_amount == 0
    assert totals.total == totals.subtotal


def test_empty_cart():
    totals = compute_totals([], Decimal("10"), PaymentType.CARD, CARD_TAX)

    assert totals.subtotal == 0
    assert totals.discount_total == 0
    assert totals.tax_amount == 0
    assert totals.total == 0
    assert totals.item_count == 0


def test_compute_totals_is_deterministic():
    cart = _cart((make_product(id=1, selling_price="333.33"), 3, 7), (make_product(id=2), 1, 0))

    first = compute_totals(cart.lines, Decimal("2.5"), PaymentType.CARD, CARD_TAX)
    second = compute_totals(cart.lines, Decimal("2.5"), PaymentType.CARD, CARD_TAX)

    assert first == second


class TestTaxPolicy:
    def test_from_settings(self):
        policy = TaxPolicy.from_settings(
            make_settings(tax_rate="0.16", taxable_payment_methods=["card", "mobile_money"])
        )

        assert policy.rate == Decimal("0.16")
        assert policy.applies_to(PaymentType.MOBILE_MONEY)
        assert not policy.applies_to(PaymentType.CASH)

    def test_from_tenant_settings(self):
        data = {
            "tax_settings": {
                "defaultRate": 18,
                "taxablePaymentMethods": ["card", "bank_transfer", "voucher"],
            }
        }
        policy = TaxPolicy.from_tenant_settings(data, NO_TAX)

        assert policy.rate == Decimal("0.18")
        assert policy.taxable_payment_methods == frozenset(
            {PaymentType.CARD, PaymentType.BANK_TRANSFER}
        )

    def test_tenant_settings_without_tax_keep_fallback(self):
        assert TaxPolicy.from_tenant_settings({}, CARD_TAX) is CARD_TAX

    def test_partial_tenant_settings(self):
        policy = TaxPolicy.from_tenant_settings({"tax_settings": {"defaultRate": 12.5}}, CARD_TAX)

        assert policy.rate == Decimal("0.125")
        assert policy.taxable_payment_methods == CARD_TAX.taxable_payment_methods
