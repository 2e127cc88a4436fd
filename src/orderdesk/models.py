"""Data models for orderdesk."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import (
    InvalidDiscountTypeError,
    InvalidStatusError,
    InvalidStatusKindError,
    InvalidTaxTypeError,
)


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _normalize(value: object) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().lower()


def _number(data: dict[str, Any], name: str, default: float = 0.0) -> float:
    """
    Read a numeric field from a JSON-style dict.

    Missing keys give ``default``; null and "" give 0. Numeric strings
    such as "2499" are accepted.

    Raises:
        ValueError: If the value is not a finite number.
    """
    value = data.get(name, default)
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"'{name}' must be a number, got {value!r}")
    try:
        number = float(value)
    except ValueError:
        raise ValueError(f"'{name}' must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"'{name}' must be a finite number, got {value!r}")
    return number


def _count(data: dict[str, Any], name: str) -> int | float:
    number = _number(data, name)
    return int(number) if number.is_integer() else number


# Closed enumerations


class DiscountType(str, Enum):
    """How an item-level or order-level discount value is interpreted."""

    NONE = ""
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    @classmethod
    def parse(cls, value: object) -> "DiscountType":
        """
        Parse a discount kind from its wire string.

        None, "" and "none" all mean no discount.

        Raises:
            InvalidDiscountTypeError: If the value is not a known kind.
        """
        if value is None:
            return cls.NONE
        normalized = _normalize(value)
        if normalized == "none":
            return cls.NONE
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidDiscountTypeError(value) from None


class TaxType(str, Enum):
    """GST regime applied to an order."""

    CGST_SGST = "cgst_sgst"
    IGST = "igst"
    NONE = "none"

    @classmethod
    def parse(cls, value: object) -> "TaxType":
        """
        Parse a tax type from its wire string.

        Raises:
            InvalidTaxTypeError: If the value is not a known tax type.
        """
        try:
            return cls(_normalize(value))
        except ValueError:
            raise InvalidTaxTypeError(value) from None


class StatusKind(str, Enum):
    """The three independent status dimensions of an order."""

    ORDER = "order"
    PAYMENT = "payment"
    FULFILLMENT = "fulfillment"

    @classmethod
    def parse(cls, value: object) -> "StatusKind":
        """
        Parse a status dimension from its wire string.

        Raises:
            InvalidStatusKindError: If the value is not a known dimension.
        """
        try:
            return cls(_normalize(value))
        except ValueError:
            raise InvalidStatusKindError(value) from None


class _StatusEnum(str, Enum):
    @classmethod
    def parse(cls, value: object) -> Any:
        """
        Parse a status case-insensitively.

        Raises:
            InvalidStatusError: If the value is not a member of this enumeration.
        """
        if value is None:
            raise InvalidStatusError(cls.kind().value, value)
        try:
            return cls(_normalize(value))
        except ValueError:
            raise InvalidStatusError(cls.kind().value, value) from None

    @classmethod
    def kind(cls) -> StatusKind:
        raise NotImplementedError


class OrderStatus(_StatusEnum):
    """Primary order lifecycle states."""

    DRAFT = "draft"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    RETURNED = "returned"

    @classmethod
    def kind(cls) -> StatusKind:
        return StatusKind.ORDER


class PaymentStatus(_StatusEnum):
    """Payment states."""

    PENDING = "pending"
    AUTHORIZED = "authorized"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"
    PARTIALLY_REFUNDED = "partially_refunded"

    @classmethod
    def kind(cls) -> StatusKind:
        return StatusKind.PAYMENT


class FulfillmentStatus(_StatusEnum):
    """Fulfillment states."""

    UNFULFILLED = "unfulfilled"
    PARTIAL = "partial"
    FULFILLED = "fulfilled"
    RETURNED = "returned"
    CANCELLED = "cancelled"

    @classmethod
    def kind(cls) -> StatusKind:
        return StatusKind.FULFILLMENT


STATUS_ENUMS: dict[StatusKind, type[_StatusEnum]] = {
    StatusKind.ORDER: OrderStatus,
    StatusKind.PAYMENT: PaymentStatus,
    StatusKind.FULFILLMENT: FulfillmentStatus,
}


class WarningLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class BadgeColor(str, Enum):
    """Semantic color class used for status badges."""

    DEFAULT = "default"
    SECONDARY = "secondary"
    DESTRUCTIVE = "destructive"
    OUTLINE = "outline"
    SUCCESS = "success"
    WARNING = "warning"
    INFO = "info"


# Pricing models


@dataclass
class OrderItem:
    """One line of a draft order."""

    product_id: str = ""
    product_name: str = ""
    product_sku: str = ""
    quantity: int = 0
    cost_price: float = 0.0
    discount_type: DiscountType = DiscountType.NONE
    discount_value: float = 0.0
    available_stock: int = 0  # only checked by validation, never by pricing

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "quantity": self.quantity,
            "cost_price": self.cost_price,
            "discount_type": DiscountType.parse(self.discount_type).value,
            "discount_value": self.discount_value,
            "available_stock": self.available_stock,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            product_id=data.get("product_id", ""),
            product_name=data.get("product_name", ""),
            product_sku=data.get("product_sku", ""),
            quantity=_count(data, "quantity"),
            cost_price=_number(data, "cost_price"),
            discount_type=DiscountType.parse(data.get("discount_type")),
            discount_value=_number(data, "discount_value"),
            available_stock=_count(data, "available_stock"),
        )


@dataclass(frozen=True)
class ItemTotal:
    subtotal: float
    discount: float
    total: float


@dataclass(frozen=True)
class ItemsSubtotal:
    subtotal: float
    discounts: float
    total_after_discounts: float

    def combine(self, other: "ItemsSubtotal") -> "ItemsSubtotal":
        """Sum two partial results (items subtotals are additive)."""
        return ItemsSubtotal(
            subtotal=self.subtotal + other.subtotal,
            discounts=self.discounts + other.discounts,
            total_after_discounts=self.total_after_discounts + other.total_after_discounts,
        )


@dataclass(frozen=True)
class TaxBreakdown:
    cgst: float
    sgst: float
    igst: float
    total_tax: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "cgst": self.cgst,
            "sgst": self.sgst,
            "igst": self.igst,
            "total_tax": self.total_tax,
        }


@dataclass
class PricingInputs:
    """Everything besides the item list that feeds a pricing recomputation."""

    order_discount_type: DiscountType = DiscountType.NONE
    order_discount_value: float = 0.0
    tax_type: TaxType = TaxType.NONE
    cgst_rate: float = 9.0
    sgst_rate: float = 9.0
    igst_rate: float = 18.0
    shipping_charge: float = 0.0
    cod_charge: float = 0.0
    gift_card_code: str = ""
    gift_card_amount: float = 0.0
    advance_paid: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PricingInputs":
        return cls(
            order_discount_type=DiscountType.parse(data.get("order_discount_type")),
            order_discount_value=_number(data, "order_discount_value"),
            tax_type=TaxType.parse(data.get("tax_type", TaxType.NONE)),
            cgst_rate=_number(data, "cgst_rate", 9.0),
            sgst_rate=_number(data, "sgst_rate", 9.0),
            igst_rate=_number(data, "igst_rate", 18.0),
            shipping_charge=_number(data, "shipping_charge"),
            cod_charge=_number(data, "cod_charge"),
            gift_card_code=data.get("gift_card_code") or "",
            gift_card_amount=_number(data, "gift_card_amount"),
            advance_paid=_number(data, "advance_paid"),
        )


@dataclass(frozen=True)
class OrderPricing:
    """A fully recomputed pricing snapshot. Never patched in place."""

    subtotal: float
    product_discounts_total: float
    order_discount: float
    order_discount_type: DiscountType
    order_discount_value: float
    taxable_amount: float
    tax_type: TaxType
    cgst: float
    cgst_rate: float
    sgst: float
    sgst_rate: float
    igst: float
    igst_rate: float
    total_tax: float
    shipping_charge: float
    cod_charge: float
    gift_card_code: str
    gift_card_amount: float
    grand_total: float
    advance_paid: float
    balance_due: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": self.subtotal,
            "product_discounts_total": self.product_discounts_total,
            "order_discount": self.order_discount,
            "order_discount_type": self.order_discount_type.value,
            "order_discount_value": self.order_discount_value,
            "taxable_amount": self.taxable_amount,
            "tax_type": self.tax_type.value,
            "cgst": self.cgst,
            "cgst_rate": self.cgst_rate,
            "sgst": self.sgst,
            "sgst_rate": self.sgst_rate,
            "igst": self.igst,
            "igst_rate": self.igst_rate,
            "total_tax": self.total_tax,
            "shipping_charge": self.shipping_charge,
            "cod_charge": self.cod_charge,
            "gift_card_code": self.gift_card_code,
            "gift_card_amount": self.gift_card_amount,
            "grand_total": self.grand_total,
            "advance_paid": self.advance_paid,
            "balance_due": self.balance_due,
        }


@dataclass(frozen=True)
class Address:
    """Postal address; only the state takes part in tax detection."""

    state: str
    label: str = ""
    city: str = ""
    pincode: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Address":
        return cls(
            state=data.get("state", ""),
            label=data.get("label", ""),
            city=data.get("city", ""),
            pincode=data.get("pincode", ""),
        )


# Status models


@dataclass(frozen=True)
class StatusWarning:
    """Advisory note about an inconsistent status combination."""

    level: WarningLevel
    message: str
    affected: StatusKind

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.level.value,
            "message": self.message,
            "affected_status": self.affected.value,
        }


@dataclass(frozen=True)
class TransitionValidation:
    is_valid: bool
    allowed_transitions: list[str]
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "is_valid": self.is_valid,
            "allowed_transitions": self.allowed_transitions,
        }
        if self.error_message is not None:
            result["error_message"] = self.error_message
        return result


@dataclass
class StatusChange:
    """Local state patch to apply once the backend accepted a transition."""

    order_status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    fulfillment_status: FulfillmentStatus | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.order_status is not None:
            result["order_status"] = self.order_status.value
        if self.payment_status is not None:
            result["payment_status"] = self.payment_status.value
        if self.fulfillment_status is not None:
            result["fulfillment_status"] = self.fulfillment_status.value
        return result


# Configuration models


@dataclass
class PricingDefaults:
    """Store-wide defaults used when a pricing request omits a rate or charge."""

    cgst_rate: float = 9.0
    sgst_rate: float = 9.0
    igst_rate: float = 18.0
    shipping_charge: float = 0.0
    cod_charge: float = 0.0
    currency: str = "INR"
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cgst_rate": self.cgst_rate,
            "sgst_rate": self.sgst_rate,
            "igst_rate": self.igst_rate,
            "shipping_charge": self.shipping_charge,
            "cod_charge": self.cod_charge,
            "currency": self.currency,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PricingDefaults":
        return cls(
            cgst_rate=data.get("cgst_rate", 9.0),
            sgst_rate=data.get("sgst_rate", 9.0),
            igst_rate=data.get("igst_rate", 18.0),
            shipping_charge=data.get("shipping_charge", 0.0),
            cod_charge=data.get("cod_charge", 0.0),
            currency=data.get("currency", "INR"),
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
        )
