"""
Order, payment and fulfillment status transition rules.

The backend is the authority on status changes; these tables exist so the
console can hide illegal actions up front and explain why. Queries never
raise: an unknown status simply has no legal transitions, no warnings, a
humanized label and the default color.
"""

import logging
from typing import Any, Mapping

from .models import (
    STATUS_ENUMS,
    BadgeColor,
    FulfillmentStatus,
    OrderStatus,
    PaymentStatus,
    StatusChange,
    StatusKind,
    StatusWarning,
    TransitionValidation,
    WarningLevel,
)
from .utils import humanize, status_value

logger = logging.getLogger(__name__)


# --- Transition tables ---

ORDER_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "draft": ("pending", "cancelled"),
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("processing", "cancelled", "refunded"),
    "processing": ("shipped", "cancelled", "refunded"),
    "shipped": ("delivered", "cancelled", "returned", "refunded"),
    "delivered": (),
    "cancelled": (),
    "refunded": (),
    "returned": (),
}

# Money has to have been collected before any of it can be refunded.
PAYMENT_COLLECTED = frozenset({"partially_paid", "paid", "partially_refunded"})
PAYMENT_REFUND_TARGETS = frozenset({"refunded", "partially_refunded"})


def _payment_targets(current: str) -> tuple[str, ...]:
    if current == PaymentStatus.REFUNDED.value:
        return ()
    return tuple(
        target.value
        for target in PaymentStatus
        if target.value != current
        and (target.value not in PAYMENT_REFUND_TARGETS or current in PAYMENT_COLLECTED)
    )


PAYMENT_TRANSITIONS: dict[str, tuple[str, ...]] = {
    status.value: _payment_targets(status.value) for status in PaymentStatus
}

FULFILLMENT_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "unfulfilled": ("partial", "fulfilled", "returned", "cancelled"),
    "partial": ("fulfilled", "returned", "cancelled"),
    "fulfilled": ("returned", "cancelled"),
    "returned": (),
    "cancelled": (),
}

TRANSITIONS: dict[StatusKind, dict[str, tuple[str, ...]]] = {
    StatusKind.ORDER: ORDER_TRANSITIONS,
    StatusKind.PAYMENT: PAYMENT_TRANSITIONS,
    StatusKind.FULFILLMENT: FULFILLMENT_TRANSITIONS,
}

ORDER_LIFECYCLE_STEPS: tuple[str, ...] = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
)

# Alternate-branch outcomes that have no position on the progress bar.
OFF_PATH_ORDER_STATUSES = frozenset({"cancelled", "refunded", "returned"})

TERMINAL_ORDER_STATUSES = frozenset({"delivered", "cancelled", "refunded", "returned"})

# Order targets that need extra data captured in a confirmation dialog.
REQUIRED_TRANSITION_FIELDS: dict[str, tuple[str, ...]] = {
    "shipped": ("order_tracking",),
    "cancelled": ("admin_comment",),
}


def _kind(kind: StatusKind | str) -> StatusKind | None:
    try:
        return StatusKind(status_value(kind))
    except ValueError:
        return None


# --- Legality queries ---


def allowed_transitions(kind: StatusKind | str, current: object) -> list[str]:
    """Statuses reachable from ``current`` in one step, in declaration order."""
    status_kind = _kind(kind)
    if status_kind is None:
        return []
    return list(TRANSITIONS[status_kind].get(status_value(current), ()))


def can_transition(kind: StatusKind | str, current: object, target: object) -> bool:
    """
    Whether moving from ``current`` to ``target`` is legal.

    A record with no status yet may take any known status. Moving to the
    same status is not a transition; callers treat it as a no-op.
    """
    status_kind = _kind(kind)
    if status_kind is None:
        return False

    table = TRANSITIONS[status_kind]
    current_value = status_value(current)
    target_value = status_value(target)

    if not current_value:
        return target_value in table
    return target_value in table.get(current_value, ())


def can_transition_order(current: object, target: object) -> bool:
    return can_transition(StatusKind.ORDER, current, target)


def can_transition_payment(current: object, target: object) -> bool:
    return can_transition(StatusKind.PAYMENT, current, target)


def can_transition_fulfillment(current: object, target: object) -> bool:
    return can_transition(StatusKind.FULFILLMENT, current, target)


_KIND_PREFIX = {
    StatusKind.ORDER: "status",
    StatusKind.PAYMENT: "payment",
    StatusKind.FULFILLMENT: "fulfillment",
}


def validate_transition(
    kind: StatusKind | str, current: object, target: object
) -> TransitionValidation:
    """Like :func:`can_transition`, with an operator-facing explanation on failure."""
    status_kind = _kind(kind) or StatusKind.ORDER
    current_value = status_value(current)
    target_value = status_value(target)
    allowed = allowed_transitions(status_kind, current_value)
    noun = "Status" if status_kind is StatusKind.ORDER else f"{status_kind.value.capitalize()} status"

    if current_value == target_value:
        return TransitionValidation(
            is_valid=False,
            allowed_transitions=allowed,
            error_message=f"{noun} is already {status_label(current_value)}",
        )

    if (
        status_kind is StatusKind.PAYMENT
        and target_value == PaymentStatus.REFUNDED.value
        and current_value not in PAYMENT_COLLECTED
    ):
        return TransitionValidation(
            is_valid=False,
            allowed_transitions=allowed,
            error_message="Cannot refund an order that was never paid",
        )

    if can_transition(status_kind, current_value, target_value):
        return TransitionValidation(is_valid=True, allowed_transitions=allowed)

    if allowed:
        options = ", ".join(status_label(s) for s in allowed)
    else:
        options = "None (Terminal State)"
    prefix = _KIND_PREFIX[status_kind]
    return TransitionValidation(
        is_valid=False,
        allowed_transitions=allowed,
        error_message=(
            f'Cannot change {prefix} from "{status_label(current_value)}" to '
            f'"{status_label(target_value)}". Allowed: {options}'
        ),
    )


# --- Confirmation requirements ---


def requires_confirmation(target: object) -> bool:
    """Whether moving an order to ``target`` needs a confirmation dialog."""
    return status_value(target) in REQUIRED_TRANSITION_FIELDS


def required_transition_fields(target: object) -> tuple[str, ...]:
    return REQUIRED_TRANSITION_FIELDS.get(status_value(target), ())


def requires_tracking(target: object, current_tracking_number: str | None = None) -> bool:
    return status_value(target) == OrderStatus.SHIPPED.value and not current_tracking_number


def missing_transition_fields(target: object, data: Mapping[str, Any] | None) -> list[str]:
    """Required confirmation fields that are absent or blank in ``data``."""
    data = data or {}
    missing = []
    for name in required_transition_fields(target):
        value = data.get(name)
        if value is None or not str(value).strip():
            missing.append(name)
    return missing


def build_update_payload(
    kind: StatusKind | str, target: object, extra: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """
    Request body for the external status-update endpoint.

    Raises:
        InvalidStatusKindError: If ``kind`` is not a status dimension.
        InvalidStatusError: If ``target`` is not a valid status of ``kind``.
    """
    status_kind = StatusKind.parse(kind)
    status = STATUS_ENUMS[status_kind].parse(target)
    payload: dict[str, Any] = {f"{status_kind.value}_status": status.value}
    if extra:
        payload.update(extra)
    return payload


def shipping_confirmation(tracking_number: str, courier_name: str = "") -> dict[str, str]:
    """Confirmation data for a move to shipped; the courier is folded into the tracking string."""
    tracking = tracking_number.strip()
    if courier_name.strip():
        tracking = f"{courier_name.strip()} - {tracking}"
    return {"order_tracking": tracking}


# --- Derived state ---


def derive_status_changes(
    kind: StatusKind | str, target: object, current_fulfillment: object = None
) -> StatusChange:
    """
    Local state patch to apply after the backend accepted a transition.

    The backend moves fulfillment along with some order statuses; this
    mirrors that so the console doesn't have to refetch to show it.

    Raises:
        InvalidStatusKindError: If ``kind`` is not a status dimension.
        InvalidStatusError: If ``target`` is not a valid status of ``kind``.
    """
    status_kind = StatusKind.parse(kind)

    if status_kind is StatusKind.PAYMENT:
        return StatusChange(payment_status=PaymentStatus.parse(target))
    if status_kind is StatusKind.FULFILLMENT:
        return StatusChange(fulfillment_status=FulfillmentStatus.parse(target))

    order_status = OrderStatus.parse(target)
    change = StatusChange(order_status=order_status)
    fulfillment = status_value(current_fulfillment)

    if order_status is OrderStatus.SHIPPED and fulfillment == FulfillmentStatus.UNFULFILLED.value:
        change.fulfillment_status = FulfillmentStatus.FULFILLED
    elif order_status is OrderStatus.DELIVERED:
        change.fulfillment_status = FulfillmentStatus.FULFILLED
    elif order_status is OrderStatus.CANCELLED:
        change.fulfillment_status = FulfillmentStatus.CANCELLED
    elif order_status is OrderStatus.RETURNED:
        change.fulfillment_status = FulfillmentStatus.RETURNED

    logger.debug("Derived status changes for %s -> %s: %s", status_kind.value, order_status.value, change)
    return change


# --- Warnings ---


def get_status_warnings(order_status: object, payment_status: object, fulfillment_status: object) -> list[StatusWarning]:
    """
    Advisory warnings for inconsistent status combinations.

    These never block a transition; they point the operator at something
    that probably needs a follow-up action.
    """
    order = status_value(order_status)
    payment = status_value(payment_status)
    fulfillment = status_value(fulfillment_status)
    warnings: list[StatusWarning] = []

    if order == "shipped" and payment == "pending":
        warnings.append(StatusWarning(
            WarningLevel.WARNING,
            "Order shipped but payment is still pending",
            StatusKind.PAYMENT,
        ))

    if order == "delivered" and fulfillment != "fulfilled":
        warnings.append(StatusWarning(
            WarningLevel.ERROR,
            "Order delivered but fulfillment status is not marked as fulfilled",
            StatusKind.FULFILLMENT,
        ))

    if order == "delivered" and payment != "paid":
        warnings.append(StatusWarning(
            WarningLevel.WARNING,
            "Order delivered but payment is not marked as paid",
            StatusKind.PAYMENT,
        ))

    if order == "cancelled" and payment in ("paid", "partially_paid"):
        warnings.append(StatusWarning(
            WarningLevel.WARNING,
            "Order cancelled but payment was received - consider processing a refund",
            StatusKind.PAYMENT,
        ))

    if order == "processing" and payment == "pending":
        warnings.append(StatusWarning(
            WarningLevel.INFO,
            "Order is being processed with pending payment (COD or awaiting confirmation)",
            StatusKind.PAYMENT,
        ))

    if payment == "refunded" and order not in ("cancelled", "returned", "refunded"):
        warnings.append(StatusWarning(
            WarningLevel.WARNING,
            "Payment refunded but order status should be updated accordingly",
            StatusKind.ORDER,
        ))

    if fulfillment == "fulfilled" and order == "pending":
        warnings.append(StatusWarning(
            WarningLevel.INFO,
            "Fulfillment complete but order is still pending - update order status",
            StatusKind.ORDER,
        ))

    return warnings


# --- Lifecycle position ---


def get_order_lifecycle_step(order_status: object) -> int:
    """
    Position of the order on the happy path (0-based).

    Returns -1 for cancelled, refunded and returned orders so the progress
    bar can switch to its alternate rendering. Draft and unknown values
    sit at the start.
    """
    value = status_value(order_status)
    if value in OFF_PATH_ORDER_STATUSES:
        return -1
    if value in ORDER_LIFECYCLE_STEPS:
        return ORDER_LIFECYCLE_STEPS.index(value)
    return 0


def is_terminal_state(order_status: object) -> bool:
    return status_value(order_status) in TERMINAL_ORDER_STATUSES


# --- Labels and colors ---

STATUS_LABELS: dict[str, str] = {
    status.value: humanize(status.value)
    for enum_cls in STATUS_ENUMS.values()
    for status in enum_cls
}

ORDER_COLORS: dict[str, BadgeColor] = {
    "draft": BadgeColor.DEFAULT,
    "pending": BadgeColor.WARNING,
    "confirmed": BadgeColor.INFO,
    "processing": BadgeColor.INFO,
    "shipped": BadgeColor.SECONDARY,
    "delivered": BadgeColor.SUCCESS,
    "cancelled": BadgeColor.DESTRUCTIVE,
    "refunded": BadgeColor.OUTLINE,
    "returned": BadgeColor.WARNING,
}

PAYMENT_COLORS: dict[str, BadgeColor] = {
    "pending": BadgeColor.WARNING,
    "authorized": BadgeColor.INFO,
    "partially_paid": BadgeColor.WARNING,
    "paid": BadgeColor.SUCCESS,
    "refunded": BadgeColor.DESTRUCTIVE,
    "failed": BadgeColor.DESTRUCTIVE,
    "partially_refunded": BadgeColor.WARNING,
}

FULFILLMENT_COLORS: dict[str, BadgeColor] = {
    "unfulfilled": BadgeColor.WARNING,
    "partial": BadgeColor.INFO,
    "fulfilled": BadgeColor.SUCCESS,
    "returned": BadgeColor.DESTRUCTIVE,
    "cancelled": BadgeColor.DESTRUCTIVE,
}

STATUS_COLORS: dict[StatusKind, dict[str, BadgeColor]] = {
    StatusKind.ORDER: ORDER_COLORS,
    StatusKind.PAYMENT: PAYMENT_COLORS,
    StatusKind.FULFILLMENT: FULFILLMENT_COLORS,
}


def status_label(status: object) -> str:
    """Display label, e.g. "partially_refunded" -> "Partially Refunded"."""
    value = status_value(status)
    return STATUS_LABELS.get(value) or humanize(value)


def status_color(kind: StatusKind | str, status: object) -> BadgeColor:
    status_kind = _kind(kind)
    if status_kind is None:
        return BadgeColor.DEFAULT
    return STATUS_COLORS[status_kind].get(status_value(status), BadgeColor.DEFAULT)
