"""Custom exceptions for orderdesk."""


class OrderdeskError(Exception):
    """Base exception for all orderdesk errors."""

    pass


class ConfigNotFoundError(OrderdeskError):
    """Raised when the pricing defaults file doesn't exist."""

    def __init__(self, path: str | None = None):
        self.path = path
        msg = "Config not initialized. Run 'orderdesk config init' first."
        if path:
            msg = f"Config not found at {path}. Run 'orderdesk config init' first."
        super().__init__(msg)


class ConfigExistsError(OrderdeskError):
    """Raised when trying to init but config already exists."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Config already exists at {path}. Use --force to overwrite.")


class InvalidSchemaVersionError(OrderdeskError):
    """Raised when config has an unsupported schema version."""

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported schema version {found}. This tool supports version {supported}."
        )


class InvalidConfigFieldError(OrderdeskError):
    """Raised when updating a pricing default that doesn't exist or with a bad value."""

    def __init__(self, field_name: str, reason: str | None = None):
        self.field_name = field_name
        msg = f"Unknown config field: {field_name}"
        if reason:
            msg = f"Invalid value for config field {field_name} ({reason})"
        super().__init__(msg)


class InvalidStatusError(OrderdeskError):
    """Raised when a status string is not a member of its enumeration."""

    def __init__(self, kind: str, value: object):
        self.kind = kind
        self.value = value
        super().__init__(f"Invalid {kind} status: {value!r}")


class InvalidDiscountTypeError(OrderdeskError):
    """Raised when a discount kind is not '', 'percentage' or 'fixed'."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid discount type: {value!r}")


class InvalidTaxTypeError(OrderdeskError):
    """Raised when a tax type is not 'cgst_sgst', 'igst' or 'none'."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid tax type: {value!r}")


class InvalidOrderDocumentError(OrderdeskError):
    """Raised when an order JSON document can't be read into items and pricing inputs."""

    def __init__(self, source: str, reason: str | None = None):
        self.source = source
        msg = f"Invalid order document: {source}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class InvalidStatusKindError(OrderdeskError):
    """Raised when a status dimension is not 'order', 'payment' or 'fulfillment'."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid status kind: {value!r}")
