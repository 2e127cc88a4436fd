"""FastAPI REST API exposing orderdesk pricing and status rules to the console."""

import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .config_store import ConfigStore
from .errors import (
    ConfigExistsError,
    ConfigNotFoundError,
    InvalidConfigFieldError,
    InvalidDiscountTypeError,
    InvalidOrderDocumentError,
    InvalidSchemaVersionError,
    InvalidStatusError,
    InvalidStatusKindError,
    InvalidTaxTypeError,
    OrderdeskError,
)
from .models import (
    STATUS_ENUMS,
    DiscountType,
    OrderItem,
    PricingDefaults,
    PricingInputs,
    StatusKind,
    TaxType,
)
from .order_doc import order_document_from_dict
from .pricing import compute_item_total, compute_tax, detect_tax_type, price_order
from .status import (
    ORDER_LIFECYCLE_STEPS,
    allowed_transitions,
    build_update_payload,
    derive_status_changes,
    get_order_lifecycle_step,
    get_status_warnings,
    is_terminal_state,
    missing_transition_fields,
    required_transition_fields,
    status_color,
    status_label,
    validate_transition,
)
from .validation import validate_order_draft

logger = logging.getLogger(__name__)


# --- Pydantic Schemas ---


class OrderItemSchema(BaseModel):
    product_id: str = ""
    product_name: str = ""
    product_sku: str = ""
    quantity: int = 0
    cost_price: float = 0.0
    discount_type: Optional[str] = ""  # "" | "percentage" | "fixed"
    discount_value: float = 0.0
    available_stock: int = 0


class ItemTotalSchema(BaseModel):
    subtotal: float
    discount: float
    total: float


class PricingRequest(BaseModel):
    """Request body for pricing an order draft."""

    items: list[OrderItemSchema] = Field(default_factory=list)
    order_discount_type: Optional[str] = ""
    order_discount_value: float = 0.0
    tax_type: Optional[str] = Field(
        default=None,
        description="'cgst_sgst' | 'igst' | 'none'; detected from the states when omitted",
    )
    shipping_state: Optional[str] = None
    billing_state: Optional[str] = None
    is_international: bool = False
    cgst_rate: Optional[float] = None
    sgst_rate: Optional[float] = None
    igst_rate: Optional[float] = None
    shipping_charge: Optional[float] = None
    cod_charge: float = 0.0
    gift_card_code: str = ""
    gift_card_amount: float = 0.0
    advance_paid: float = 0.0
    payment_method: Optional[str] = None
    validate_order: bool = Field(
        default=False, description="Also run the order form's input sanity checks"
    )


class OrderPricingSchema(BaseModel):
    subtotal: float
    product_discounts_total: float
    order_discount: float
    order_discount_type: str
    order_discount_value: float
    taxable_amount: float
    tax_type: str
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


class PricingResponse(BaseModel):
    pricing: OrderPricingSchema
    errors: Optional[dict[str, str]] = None


class TaxTypeRequest(BaseModel):
    shipping_state: Optional[str] = None
    billing_state: Optional[str] = None
    is_international: bool = False


class TaxTypeResponse(BaseModel):
    tax_type: str


class TaxRequest(BaseModel):
    taxable_amount: float
    tax_type: str
    cgst_rate: Optional[float] = None
    sgst_rate: Optional[float] = None
    igst_rate: Optional[float] = None


class TaxBreakdownSchema(BaseModel):
    cgst: float
    sgst: float
    igst: float
    total_tax: float


class StatusOptionSchema(BaseModel):
    value: str
    label: str
    color: str
    requires: list[str] = Field(default_factory=list)


class StatusListResponse(BaseModel):
    kind: str
    statuses: list[StatusOptionSchema]
    lifecycle_steps: list[str] = Field(default_factory=list)


class TransitionsResponse(BaseModel):
    kind: str
    status: str
    label: str
    color: str
    allowed_transitions: list[StatusOptionSchema]
    terminal: bool
    lifecycle_step: Optional[int] = None


class TransitionValidateRequest(BaseModel):
    kind: StatusKind
    current: str
    target: str
    data: dict[str, Any] = Field(
        default_factory=dict, description="Confirmation fields (order_tracking, admin_comment, ...)"
    )
    current_fulfillment: Optional[str] = None


class TransitionValidateResponse(BaseModel):
    is_valid: bool
    error_message: Optional[str] = None
    allowed_transitions: list[str]
    requires: list[str] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    payload: Optional[dict[str, Any]] = None
    changes: Optional[dict[str, str]] = None


class WarningsRequest(BaseModel):
    order_status: str
    payment_status: str
    fulfillment_status: str


class WarningSchema(BaseModel):
    type: str  # "error" | "warning" | "info"
    message: str
    affected_status: str  # "order" | "payment" | "fulfillment"


class WarningsResponse(BaseModel):
    warnings: list[WarningSchema]
    count: int


class OrderValidateRequest(BaseModel):
    """An order draft as the order form holds it."""

    items: list[OrderItemSchema] = Field(default_factory=list)
    pricing: dict[str, Any] = Field(
        default_factory=dict,
        description="Pricing input fields; missing rates and charges come from the pricing defaults",
    )
    shipping_address: Optional[dict[str, Any]] = None
    billing_address: Optional[dict[str, Any]] = None
    billing_same_as_shipping: bool = False
    is_international: bool = False
    payment_method: Optional[str] = None
    currency: str = "INR"


class OrderValidateResponse(BaseModel):
    valid: bool
    errors: dict[str, str]
    pricing: OrderPricingSchema


class PricingDefaultsSchema(BaseModel):
    cgst_rate: float
    sgst_rate: float
    igst_rate: float
    shipping_charge: float
    cod_charge: float
    currency: str
    created_at: str
    updated_at: str


class PricingDefaultsUpdateRequest(BaseModel):
    cgst_rate: Optional[float] = Field(None, ge=0, le=50)
    sgst_rate: Optional[float] = Field(None, ge=0, le=50)
    igst_rate: Optional[float] = Field(None, ge=0, le=50)
    shipping_charge: Optional[float] = Field(None, ge=0)
    cod_charge: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---


def get_config_store() -> ConfigStore:
    """Get the global ConfigStore."""
    return ConfigStore()


def _item_from_schema(item: OrderItemSchema) -> OrderItem:
    return OrderItem(
        product_id=item.product_id,
        product_name=item.product_name,
        product_sku=item.product_sku,
        quantity=item.quantity,
        cost_price=item.cost_price,
        discount_type=DiscountType.parse(item.discount_type),
        discount_value=item.discount_value,
        available_stock=item.available_stock,
    )


def _rate(value: Optional[float], default: float) -> float:
    return default if value is None else value


def _inputs_from_request(request: PricingRequest, defaults: PricingDefaults) -> PricingInputs:
    if request.tax_type is None:
        tax_type = detect_tax_type(
            request.shipping_state, request.billing_state, request.is_international
        )
    else:
        tax_type = TaxType.parse(request.tax_type)

    return PricingInputs(
        order_discount_type=DiscountType.parse(request.order_discount_type),
        order_discount_value=request.order_discount_value,
        tax_type=tax_type,
        cgst_rate=_rate(request.cgst_rate, defaults.cgst_rate),
        sgst_rate=_rate(request.sgst_rate, defaults.sgst_rate),
        igst_rate=_rate(request.igst_rate, defaults.igst_rate),
        shipping_charge=_rate(request.shipping_charge, defaults.shipping_charge),
        cod_charge=request.cod_charge,
        gift_card_code=request.gift_card_code,
        gift_card_amount=request.gift_card_amount,
        advance_paid=request.advance_paid,
    )


def _status_option(kind: StatusKind, value: str) -> StatusOptionSchema:
    requires = list(required_transition_fields(value)) if kind is StatusKind.ORDER else []
    return StatusOptionSchema(
        value=value,
        label=status_label(value),
        color=status_color(kind, value).value,
        requires=requires,
    )


# --- FastAPI App ---


app = FastAPI(
    title="orderdesk API",
    description="Order pricing, GST and status transition rules for the back-office console",
    version=__version__,
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Global Exception Handler ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ConfigNotFoundError: 409,
    ConfigExistsError: 409,
    InvalidSchemaVersionError: 500,
    InvalidConfigFieldError: 400,
    InvalidStatusError: 400,
    InvalidStatusKindError: 400,
    InvalidDiscountTypeError: 400,
    InvalidTaxTypeError: 400,
    InvalidOrderDocumentError: 400,
}


@app.exception_handler(OrderdeskError)
async def orderdesk_error_handler(request: Request, exc: OrderdeskError) -> JSONResponse:
    """Map OrderdeskError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- Endpoints ---


@app.get("/api/health")
def health_check(store: ConfigStore = Depends(get_config_store)):
    """
    Health check endpoint.

    Returns service status and whether pricing defaults were configured.
    """
    return {
        "status": "ok",
        "version": __version__,
        "config_initialized": store.exists(),
    }


# --- Pricing Endpoints ---


@app.post("/api/pricing", response_model=PricingResponse)
def compute_pricing(request: PricingRequest, store: ConfigStore = Depends(get_config_store)):
    """Recompute the full pricing breakdown for an order draft."""
    defaults = store.load_or_default()
    items = [_item_from_schema(item) for item in request.items]
    inputs = _inputs_from_request(request, defaults)
    pricing = price_order(items, inputs)

    errors = None
    if request.validate_order:
        errors = validate_order_draft(
            items,
            pricing,
            payment_method=request.payment_method,
            is_international=request.is_international,
        )

    return PricingResponse(pricing=OrderPricingSchema(**pricing.to_dict()), errors=errors)


@app.post("/api/pricing/item", response_model=ItemTotalSchema)
def compute_item_pricing(item: OrderItemSchema):
    """Subtotal, discount and total for a single order line."""
    total = compute_item_total(_item_from_schema(item))
    return ItemTotalSchema(subtotal=total.subtotal, discount=total.discount, total=total.total)


@app.post("/api/tax-type", response_model=TaxTypeResponse)
def compute_tax_type(request: TaxTypeRequest):
    """Classify the GST regime from shipping and billing states."""
    tax_type = detect_tax_type(
        request.shipping_state, request.billing_state, request.is_international
    )
    return TaxTypeResponse(tax_type=tax_type.value)


@app.post("/api/tax", response_model=TaxBreakdownSchema)
def compute_tax_breakdown(request: TaxRequest, store: ConfigStore = Depends(get_config_store)):
    """GST components for a taxable amount."""
    defaults = store.load_or_default()
    breakdown = compute_tax(
        request.taxable_amount,
        TaxType.parse(request.tax_type),
        _rate(request.cgst_rate, defaults.cgst_rate),
        _rate(request.sgst_rate, defaults.sgst_rate),
        _rate(request.igst_rate, defaults.igst_rate),
    )
    return TaxBreakdownSchema(**breakdown.to_dict())


@app.post("/api/orders/validate", response_model=OrderValidateResponse)
def validate_order(request: OrderValidateRequest, store: ConfigStore = Depends(get_config_store)):
    """Price an order draft and run the order form's sanity checks on it."""
    doc = order_document_from_dict(
        request.model_dump(), store.load_or_default(), source="request body"
    )
    pricing = doc.price()
    errors = validate_order_draft(
        doc.items,
        pricing,
        payment_method=doc.payment_method,
        is_international=doc.is_international,
    )
    return OrderValidateResponse(
        valid=not errors,
        errors=errors,
        pricing=OrderPricingSchema(**pricing.to_dict()),
    )


# --- Status Endpoints ---


@app.get("/api/statuses/{kind}", response_model=StatusListResponse)
def list_statuses(kind: StatusKind):
    """All statuses of one dimension with their labels and badge colors."""
    statuses = [_status_option(kind, status.value) for status in STATUS_ENUMS[kind]]
    steps = list(ORDER_LIFECYCLE_STEPS) if kind is StatusKind.ORDER else []
    return StatusListResponse(kind=kind.value, statuses=statuses, lifecycle_steps=steps)


@app.get("/api/statuses/{kind}/{status}/transitions", response_model=TransitionsResponse)
def list_transitions(kind: StatusKind, status: str):
    """Statuses reachable from ``status`` in one step."""
    current = STATUS_ENUMS[kind].parse(status)
    allowed = allowed_transitions(kind, current)
    is_order = kind is StatusKind.ORDER
    return TransitionsResponse(
        kind=kind.value,
        status=current.value,
        label=status_label(current),
        color=status_color(kind, current).value,
        allowed_transitions=[_status_option(kind, target) for target in allowed],
        terminal=is_terminal_state(current) if is_order else not allowed,
        lifecycle_step=get_order_lifecycle_step(current) if is_order else None,
    )


@app.post("/api/transitions/validate", response_model=TransitionValidateResponse)
def validate_status_transition(request: TransitionValidateRequest):
    """
    Check a status change before it is sent to the order backend.

    When the change is legal and every required confirmation field is
    present, the response carries the update payload and the local state
    changes to apply once the backend accepts it.
    """
    enum_cls = STATUS_ENUMS[request.kind]
    current = enum_cls.parse(request.current)
    target = enum_cls.parse(request.target)

    validation = validate_transition(request.kind, current, target)
    is_order = request.kind is StatusKind.ORDER
    requires = list(required_transition_fields(target)) if is_order else []
    missing = missing_transition_fields(target, request.data) if is_order else []

    payload = None
    changes = None
    if validation.is_valid and not missing:
        payload = build_update_payload(request.kind, target, request.data)
        changes = derive_status_changes(
            request.kind, target, request.current_fulfillment
        ).to_dict()

    logger.debug(
        "Transition %s %s -> %s valid=%s missing=%s",
        request.kind.value, current.value, target.value, validation.is_valid, missing,
    )
    return TransitionValidateResponse(
        is_valid=validation.is_valid,
        error_message=validation.error_message,
        allowed_transitions=validation.allowed_transitions,
        requires=requires,
        missing_fields=missing,
        payload=payload,
        changes=changes,
    )


@app.post("/api/warnings", response_model=WarningsResponse)
def status_warnings(request: WarningsRequest):
    """Advisory warnings for the current status combination."""
    warnings = get_status_warnings(
        STATUS_ENUMS[StatusKind.ORDER].parse(request.order_status),
        STATUS_ENUMS[StatusKind.PAYMENT].parse(request.payment_status),
        STATUS_ENUMS[StatusKind.FULFILLMENT].parse(request.fulfillment_status),
    )
    return WarningsResponse(
        warnings=[WarningSchema(**w.to_dict()) for w in warnings],
        count=len(warnings),
    )


# --- Config Endpoints ---


@app.get("/api/config", response_model=PricingDefaultsSchema)
def get_pricing_defaults(store: ConfigStore = Depends(get_config_store)):
    """Pricing defaults in effect (built-in values until configured)."""
    return PricingDefaultsSchema(**store.load_or_default().to_dict())


@app.patch("/api/config", response_model=PricingDefaultsSchema)
def update_pricing_defaults(
    request: PricingDefaultsUpdateRequest, store: ConfigStore = Depends(get_config_store)
):
    """Change pricing defaults, creating the defaults file on first use."""
    changes = request.model_dump(exclude_none=True)
    if not store.exists():
        defaults = store.init(**changes)
    else:
        defaults = store.update(**changes)
    return PricingDefaultsSchema(**defaults.to_dict())
