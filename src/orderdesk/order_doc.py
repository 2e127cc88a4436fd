"""Order document reading and pricing result serialization for orderdesk."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import InvalidOrderDocumentError, OrderdeskError
from .models import Address, OrderItem, OrderPricing, PricingDefaults, PricingInputs, TaxType
from .pricing import detect_tax_type, price_order


@dataclass
class OrderDocument:
    """A draft order as saved by the order form: items, pricing inputs and addresses."""

    items: list[OrderItem]
    inputs: PricingInputs
    shipping_address: Address | None = None
    billing_address: Address | None = None
    is_international: bool = False
    payment_method: str | None = None
    currency: str = "INR"

    def price(self) -> OrderPricing:
        return price_order(self.items, self.inputs)


def order_document_from_dict(
    data: dict[str, Any], defaults: PricingDefaults | None = None, source: str = "<dict>"
) -> OrderDocument:
    """
    Build an OrderDocument from its JSON form.

    Rates and charges missing from ``pricing`` come from ``defaults``.
    When ``pricing.tax_type`` is absent it is detected from the addresses.
    Numeric fields may be numbers or numeric strings.

    Raises:
        InvalidOrderDocumentError: If the document is malformed or a numeric
            field holds something that is not a number.
    """
    if not isinstance(data, dict):
        raise InvalidOrderDocumentError(source, "expected a JSON object")

    raw_items = data.get("items", [])
    if not isinstance(raw_items, list):
        raise InvalidOrderDocumentError(source, "'items' must be a list")

    defaults = defaults or PricingDefaults()
    raw_pricing = dict(data.get("pricing") or {})
    raw_pricing.setdefault("cgst_rate", defaults.cgst_rate)
    raw_pricing.setdefault("sgst_rate", defaults.sgst_rate)
    raw_pricing.setdefault("igst_rate", defaults.igst_rate)
    raw_pricing.setdefault("shipping_charge", defaults.shipping_charge)

    payment_method = data.get("payment_method")
    if payment_method == "cod":
        raw_pricing.setdefault("cod_charge", defaults.cod_charge)

    shipping = data.get("shipping_address")
    billing = data.get("billing_address")
    if data.get("billing_same_as_shipping"):
        billing = shipping
    is_international = bool(data.get("is_international", False))

    try:
        shipping_address = Address.from_dict(shipping) if shipping else None
        billing_address = Address.from_dict(billing) if billing else None
        items = [OrderItem.from_dict(item) for item in raw_items]
        if "tax_type" not in raw_pricing:
            raw_pricing["tax_type"] = detect_tax_type(
                shipping_address, billing_address, is_international
            )
        inputs = PricingInputs.from_dict(raw_pricing)
    except (OrderdeskError, AttributeError, TypeError, ValueError) as e:
        raise InvalidOrderDocumentError(source, str(e)) from e

    return OrderDocument(
        items=items,
        inputs=inputs,
        shipping_address=shipping_address,
        billing_address=billing_address,
        is_international=is_international,
        payment_method=payment_method,
        currency=data.get("currency", defaults.currency),
    )


def read_order_document(path: str | Path, defaults: PricingDefaults | None = None) -> OrderDocument:
    """
    Read an order document from a JSON file.

    Raises:
        InvalidOrderDocumentError: If the file is missing, not JSON, or malformed.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise InvalidOrderDocumentError(str(path), "file not found") from None
    except json.JSONDecodeError as e:
        raise InvalidOrderDocumentError(str(path), f"not valid JSON: {e.msg}") from None

    return order_document_from_dict(data, defaults, source=str(path))


def pricing_result_to_dict(
    doc: OrderDocument, pricing: OrderPricing, errors: dict[str, str] | None = None
) -> dict[str, Any]:
    """
    Convert a pricing result to a dictionary for JSON serialization.

    Args:
        doc: The order document that was priced.
        pricing: Its computed pricing.
        errors: Validation errors, if the caller ran validation.
    """
    result: dict[str, Any] = {
        "schema_version": 1,
        "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "currency": doc.currency,
        "item_count": len(doc.items),
        "tax_type": TaxType.parse(pricing.tax_type).value,
        "pricing": pricing.to_dict(),
    }
    if errors is not None:
        result["valid"] = not errors
        result["errors"] = errors
    return result
