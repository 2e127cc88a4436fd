"""
Input sanity checks for order drafts.

The pricing engine computes whatever the inputs imply; these checks are
what the order form runs before it lets an operator save. Every function
returns a mapping of field path to message, empty when the input is fine.
"""

from typing import Iterable

from .errors import InvalidDiscountTypeError, InvalidTaxTypeError
from .models import DiscountType, OrderItem, OrderPricing, TaxType
from .utils import as_number

MAX_TAX_RATE = 50.0
PAYMENT_METHODS = ("cod", "prepaid", "partial", "credit")


def _is_percentage(value: object) -> bool:
    try:
        return DiscountType.parse(value) is DiscountType.PERCENTAGE
    except InvalidDiscountTypeError:
        return False


def validate_item(item: OrderItem, index: int = 0) -> dict[str, str]:
    """Check one order line. Field paths look like ``items.0.quantity``."""
    errors: dict[str, str] = {}
    prefix = f"items.{index}"
    name = item.product_name or item.product_sku or f"item {index + 1}"
    quantity = as_number(item.quantity)

    if quantity <= 0:
        errors[f"{prefix}.quantity"] = "Quantity must be at least 1"
    elif quantity > as_number(item.available_stock):
        errors[f"{prefix}.quantity"] = (
            f"Quantity ({quantity}) exceeds available stock "
            f"({as_number(item.available_stock)}) for {name}"
        )

    if as_number(item.cost_price) < 0:
        errors[f"{prefix}.cost_price"] = "Price cannot be negative"

    discount_value = as_number(item.discount_value)
    if discount_value < 0:
        errors[f"{prefix}.discount_value"] = "Discount value cannot be negative"
    elif _is_percentage(item.discount_type) and discount_value > 100:
        errors[f"{prefix}.discount_value"] = f"Discount percentage cannot exceed 100% for {name}"

    return errors


def validate_stock_availability(items: Iterable[OrderItem]) -> tuple[bool, list[str]]:
    """
    Check requested quantities against available stock.

    Returns:
        Tuple of (valid, messages).
    """
    messages = []
    for item in items:
        if as_number(item.quantity) > as_number(item.available_stock):
            messages.append(
                f"{item.product_name}: Requested {item.quantity}, "
                f"only {item.available_stock} available"
            )
    return not messages, messages


def validate_pricing(
    pricing: OrderPricing,
    *,
    payment_method: str | None = None,
    is_international: bool = False,
) -> dict[str, str]:
    """Check a computed pricing snapshot against the order's payment and shipping context."""
    errors: dict[str, str] = {}

    if _is_percentage(pricing.order_discount_type) and pricing.order_discount_value > 100:
        errors["pricing.order_discount_value"] = "Order discount percentage cannot exceed 100%"

    for field_name in ("cgst_rate", "sgst_rate", "igst_rate"):
        rate = as_number(getattr(pricing, field_name))
        if rate < 0 or rate > MAX_TAX_RATE:
            errors[f"pricing.{field_name}"] = f"Tax rate must be between 0 and {MAX_TAX_RATE:g}"

    for field_name in ("shipping_charge", "cod_charge", "gift_card_amount", "advance_paid"):
        if as_number(getattr(pricing, field_name)) < 0:
            errors[f"pricing.{field_name}"] = "Amount cannot be negative"

    if payment_method == "cod" and pricing.cod_charge == 0:
        errors["pricing.cod_charge"] = "COD charge is required for Cash on Delivery orders"

    try:
        tax_type = TaxType.parse(pricing.tax_type)
    except InvalidTaxTypeError:
        tax_type = None
    if is_international and tax_type is not TaxType.NONE:
        errors["pricing.tax_type"] = "International orders must have tax type set to 'None'"
    elif not is_international and tax_type in (TaxType.NONE, None):
        errors["pricing.tax_type"] = (
            "Domestic orders must have applicable tax type (CGST+SGST or IGST)"
        )

    if pricing.advance_paid > pricing.grand_total:
        errors["pricing.advance_paid"] = "Advance paid cannot exceed grand total"

    if pricing.gift_card_code and pricing.gift_card_amount == 0:
        errors["pricing.gift_card_amount"] = (
            "Gift card amount is required when gift card code is provided"
        )

    return errors


def validate_order_draft(
    items: list[OrderItem],
    pricing: OrderPricing,
    *,
    payment_method: str | None = None,
    is_international: bool = False,
) -> dict[str, str]:
    """Run every check the order form runs before saving."""
    errors: dict[str, str] = {}

    if not items:
        errors["items"] = "Please add at least one product"

    for index, item in enumerate(items):
        item_errors = validate_item(item, index)
        if f"items.{index}.quantity" in item_errors and "items" not in errors:
            errors["items"] = "Some items have invalid quantities or insufficient stock"
        errors.update(item_errors)

    if payment_method is not None and payment_method not in PAYMENT_METHODS:
        errors["payment_method"] = f"Unknown payment method: {payment_method}"

    errors.update(
        validate_pricing(pricing, payment_method=payment_method, is_international=is_international)
    )
    return errors
