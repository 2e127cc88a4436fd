"""
Order pricing and GST engine.

Every function here is pure: the same inputs always give the same
output, nothing is mutated, and no input is rejected. Sanity checks such
as "percentage discount above 100" live in :mod:`orderdesk.validation`
and are the caller's business.

Order of computation for a full order:

1. per-item subtotal and item discount, summed over the items
2. order-level discount on the post-item-discount subtotal
3. taxable amount = post-item-discount subtotal - order discount
4. tax on the taxable amount
5. grand total = taxable + tax + shipping + COD - gift card
6. balance due = grand total - advance paid
"""

import logging
from typing import Iterable

from .errors import InvalidDiscountTypeError, InvalidTaxTypeError
from .models import (
    Address,
    DiscountType,
    ItemTotal,
    ItemsSubtotal,
    OrderItem,
    OrderPricing,
    PricingInputs,
    TaxBreakdown,
    TaxType,
)
from .utils import as_number, round_money

logger = logging.getLogger(__name__)

DEFAULT_CGST_RATE = 9.0
DEFAULT_SGST_RATE = 9.0
DEFAULT_IGST_RATE = 18.0


def _discount_kind(value: object) -> DiscountType | None:
    # Unknown kinds contribute no discount rather than raising.
    try:
        return DiscountType.parse(value)
    except InvalidDiscountTypeError:
        return None


def _tax_regime(value: object) -> TaxType:
    try:
        return TaxType.parse(value)
    except InvalidTaxTypeError:
        return TaxType.NONE


def compute_item_total(item: OrderItem) -> ItemTotal:
    """
    Compute subtotal, discount and total for one line.

    A fixed item discount is a per-unit rebate and is scaled by quantity.
    The total is not clamped at zero.
    """
    cost_price = as_number(item.cost_price)
    quantity = as_number(item.quantity)
    discount_value = as_number(item.discount_value)

    subtotal = cost_price * quantity

    kind = _discount_kind(item.discount_type)
    discount = 0.0
    if kind is DiscountType.PERCENTAGE:
        discount = subtotal * discount_value / 100
    elif kind is DiscountType.FIXED:
        discount = discount_value * quantity

    return ItemTotal(subtotal=subtotal, discount=discount, total=subtotal - discount)


def compute_items_subtotal(items: Iterable[OrderItem]) -> ItemsSubtotal:
    """Sum item subtotals and discounts. An empty list gives all zeros."""
    subtotal = 0.0
    discounts = 0.0
    for item in items:
        item_total = compute_item_total(item)
        subtotal += item_total.subtotal
        discounts += item_total.discount

    return ItemsSubtotal(
        subtotal=subtotal,
        discounts=discounts,
        total_after_discounts=subtotal - discounts,
    )


def compute_order_discount(
    amount: float, discount_type: DiscountType | str | None, discount_value: float | None
) -> float:
    """
    Compute the order-level discount on ``amount``.

    Unlike item discounts, a fixed order discount is a flat one-time
    deduction and is not scaled by anything.
    """
    kind = _discount_kind(discount_type)
    value = as_number(discount_value)
    if kind is DiscountType.PERCENTAGE:
        return as_number(amount) * value / 100
    if kind is DiscountType.FIXED:
        return value
    return 0.0


def _state_of(address: Address | str | None) -> str:
    if address is None:
        return ""
    if isinstance(address, Address):
        return address.state or ""
    return address


def detect_tax_type(
    shipping: Address | str | None,
    billing: Address | str | None,
    is_international: bool,
) -> TaxType:
    """
    Classify the GST regime from the shipping and billing states.

    International orders, or orders missing either address, carry no GST.
    Same state means intra-state CGST + SGST; different states mean IGST.
    """
    shipping_state = _state_of(shipping)
    billing_state = _state_of(billing)

    if is_international or not shipping_state or not billing_state:
        return TaxType.NONE
    if shipping_state == billing_state:
        return TaxType.CGST_SGST
    return TaxType.IGST


def compute_tax(
    taxable_amount: float,
    tax_type: TaxType | str,
    cgst_rate: float = DEFAULT_CGST_RATE,
    sgst_rate: float = DEFAULT_SGST_RATE,
    igst_rate: float = DEFAULT_IGST_RATE,
) -> TaxBreakdown:
    """
    Compute GST on the taxable amount.

    CGST and SGST are rounded independently; ``total_tax`` is the rounded
    unrounded sum, so it can differ from ``cgst + sgst`` by 0.01.
    """
    regime = _tax_regime(tax_type)

    if regime is TaxType.NONE:
        return TaxBreakdown(cgst=0.0, sgst=0.0, igst=0.0, total_tax=0.0)

    amount = as_number(taxable_amount)

    if regime is TaxType.CGST_SGST:
        cgst = amount * as_number(cgst_rate) / 100
        sgst = amount * as_number(sgst_rate) / 100
        return TaxBreakdown(
            cgst=round_money(cgst),
            sgst=round_money(sgst),
            igst=0.0,
            total_tax=round_money(cgst + sgst),
        )

    igst = round_money(amount * as_number(igst_rate) / 100)
    return TaxBreakdown(cgst=0.0, sgst=0.0, igst=igst, total_tax=igst)


def compute_order_pricing(
    items: Iterable[OrderItem],
    order_discount_type: DiscountType | str | None,
    order_discount_value: float,
    tax_type: TaxType | str,
    cgst_rate: float,
    sgst_rate: float,
    igst_rate: float,
    shipping_charge: float,
    cod_charge: float,
    gift_card_amount: float,
    advance_paid: float,
    gift_card_code: str = "",
) -> OrderPricing:
    """
    Recompute the complete pricing breakdown for an order.

    Monetary outputs are rounded to 2 decimal places on return;
    intermediates keep full float precision.
    """
    items_calc = compute_items_subtotal(items)

    order_discount = compute_order_discount(
        items_calc.total_after_discounts, order_discount_type, order_discount_value
    )
    taxable_amount = items_calc.total_after_discounts - order_discount

    gst = compute_tax(taxable_amount, tax_type, cgst_rate, sgst_rate, igst_rate)

    shipping_charge = as_number(shipping_charge)
    cod_charge = as_number(cod_charge)
    gift_card_amount = as_number(gift_card_amount)
    advance_paid = as_number(advance_paid)

    grand_total = taxable_amount + gst.total_tax + shipping_charge + cod_charge - gift_card_amount
    balance_due = grand_total - advance_paid

    discount_kind = _discount_kind(order_discount_type) or DiscountType.NONE
    regime = _tax_regime(tax_type)

    pricing = OrderPricing(
        subtotal=round_money(items_calc.subtotal),
        product_discounts_total=round_money(items_calc.discounts),
        order_discount=round_money(order_discount),
        order_discount_type=discount_kind,
        order_discount_value=as_number(order_discount_value),
        taxable_amount=round_money(taxable_amount),
        tax_type=regime,
        cgst=gst.cgst,
        cgst_rate=as_number(cgst_rate),
        sgst=gst.sgst,
        sgst_rate=as_number(sgst_rate),
        igst=gst.igst,
        igst_rate=as_number(igst_rate),
        total_tax=gst.total_tax,
        shipping_charge=round_money(shipping_charge),
        cod_charge=round_money(cod_charge),
        gift_card_code=gift_card_code or "",
        gift_card_amount=round_money(gift_card_amount),
        grand_total=round_money(grand_total),
        advance_paid=round_money(advance_paid),
        balance_due=round_money(balance_due),
    )
    logger.debug(
        "Recomputed pricing: taxable=%s tax=%s grand_total=%s",
        pricing.taxable_amount,
        pricing.total_tax,
        pricing.grand_total,
    )
    return pricing


def price_order(items: Iterable[OrderItem], inputs: PricingInputs) -> OrderPricing:
    """Recompute pricing from bundled inputs (what the order form does on every edit)."""
    return compute_order_pricing(
        items,
        inputs.order_discount_type,
        inputs.order_discount_value,
        inputs.tax_type,
        inputs.cgst_rate,
        inputs.sgst_rate,
        inputs.igst_rate,
        inputs.shipping_charge,
        inputs.cod_charge,
        inputs.gift_card_amount,
        inputs.advance_paid,
        gift_card_code=inputs.gift_card_code,
    )


def calculate_discount_percentage(original_amount: float, discounted_amount: float) -> float:
    """Percent off between two amounts, rounded to 2dp. Zero original gives 0."""
    if original_amount == 0:
        return 0.0
    return round_money((original_amount - discounted_amount) / original_amount * 100)
