"""Command-line interface for orderdesk."""

import argparse
import json
import logging
import sys

from . import __version__
from .config_store import EDITABLE_FIELDS, ConfigStore
from .errors import OrderdeskError
from .models import STATUS_ENUMS, StatusKind
from .order_doc import pricing_result_to_dict, read_order_document
from .pricing import detect_tax_type
from .status import (
    allowed_transitions,
    get_order_lifecycle_step,
    get_status_warnings,
    is_terminal_state,
    required_transition_fields,
    status_label,
    validate_transition,
)
from .utils import format_currency
from .validation import validate_order_draft

logger = logging.getLogger(__name__)

KIND_CHOICES = [k.value for k in StatusKind]


def _parse_assignments(assignments: list[str]) -> dict[str, str]:
    """Turn ['cgst_rate=6', ...] into a dict."""
    changes = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key:
            raise ValueError(f"expected KEY=VALUE, got '{assignment}'")
        changes[key.strip()] = value.strip()
    return changes


def cmd_price(args: argparse.Namespace) -> int:
    """Price an order document."""
    try:
        defaults = ConfigStore().load_or_default()
        doc = read_order_document(args.order, defaults)
        logger.debug("Loaded %s with %d item(s)", args.order, len(doc.items))
        pricing = doc.price()

        errors = None
        if args.validate:
            errors = validate_order_draft(
                doc.items,
                pricing,
                payment_method=doc.payment_method,
                is_international=doc.is_international,
            )

        if args.json:
            print(json.dumps(pricing_result_to_dict(doc, pricing, errors), indent=2))
        else:
            def money(amount: float) -> str:
                return format_currency(amount, doc.currency)

            print(f"Items: {len(doc.items)}")
            print(f"  Subtotal:          {money(pricing.subtotal)}")
            print(f"  Product discounts: -{money(pricing.product_discounts_total)}")
            if pricing.order_discount:
                print(f"  Order discount:    -{money(pricing.order_discount)}")
            print(f"  Taxable amount:    {money(pricing.taxable_amount)}")
            if pricing.cgst or pricing.sgst:
                print(f"  CGST @{pricing.cgst_rate:g}%:        {money(pricing.cgst)}")
                print(f"  SGST @{pricing.sgst_rate:g}%:        {money(pricing.sgst)}")
            elif pricing.igst:
                print(f"  IGST @{pricing.igst_rate:g}%:       {money(pricing.igst)}")
            if pricing.shipping_charge:
                print(f"  Shipping:          {money(pricing.shipping_charge)}")
            if pricing.cod_charge:
                print(f"  COD charge:        {money(pricing.cod_charge)}")
            if pricing.gift_card_amount:
                print(f"  Gift card:         -{money(pricing.gift_card_amount)}")
            print(f"Grand total:         {money(pricing.grand_total)}")
            if pricing.advance_paid:
                print(f"Advance paid:        {money(pricing.advance_paid)}")
            print(f"Balance due:         {money(pricing.balance_due)}")

            if errors:
                print()
                print(f"Validation errors ({len(errors)}):")
                for field_path, message in errors.items():
                    print(f"  {field_path}: {message}")

        if errors and args.fail_on_invalid:
            return 2
        return 0

    except OrderdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_tax_type(args: argparse.Namespace) -> int:
    """Detect the tax type for a shipping/billing state pair."""
    tax_type = detect_tax_type(args.shipping, args.billing, args.international)
    print(tax_type.value)
    return 0


def cmd_transitions(args: argparse.Namespace) -> int:
    """List the statuses reachable from a status."""
    try:
        kind = StatusKind(args.kind)
        status = STATUS_ENUMS[kind].parse(args.status)
        allowed = allowed_transitions(kind, status)

        if args.json:
            result = {
                "kind": kind.value,
                "status": status.value,
                "label": status_label(status),
                "allowed_transitions": allowed,
                "requires_confirmation": {
                    target: list(required_transition_fields(target))
                    for target in allowed
                    if kind is StatusKind.ORDER and required_transition_fields(target)
                },
            }
            if kind is StatusKind.ORDER:
                result["lifecycle_step"] = get_order_lifecycle_step(status)
                result["terminal"] = is_terminal_state(status)
            print(json.dumps(result, indent=2))
            return 0

        print(f"{kind.value.capitalize()} status: {status_label(status)}")
        if not allowed:
            print("  No further transitions (terminal state)")
            return 0
        for target in allowed:
            fields = required_transition_fields(target) if kind is StatusKind.ORDER else ()
            suffix = f"  (requires: {', '.join(fields)})" if fields else ""
            print(f"  -> {target}{suffix}")
        return 0

    except OrderdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Check whether a single transition is legal."""
    try:
        kind = StatusKind(args.kind)
        current = STATUS_ENUMS[kind].parse(args.current)
        target = STATUS_ENUMS[kind].parse(args.target)

        validation = validate_transition(kind, current, target)
        if validation.is_valid:
            print(f"OK: {status_label(current)} -> {status_label(target)}")
            return 0

        print(f"Not allowed: {validation.error_message}")
        return 2

    except OrderdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_warnings(args: argparse.Namespace) -> int:
    """Show advisory warnings for a status combination."""
    try:
        order = STATUS_ENUMS[StatusKind.ORDER].parse(args.order_status)
        payment = STATUS_ENUMS[StatusKind.PAYMENT].parse(args.payment_status)
        fulfillment = STATUS_ENUMS[StatusKind.FULFILLMENT].parse(args.fulfillment_status)

        warnings = get_status_warnings(order, payment, fulfillment)

        if args.json:
            print(json.dumps([w.to_dict() for w in warnings], indent=2))
            return 0

        if not warnings:
            print("No warnings.")
            return 0

        for warning in warnings:
            print(f"[{warning.level.value}] {warning.message} ({warning.affected.value})")
        return 0

    except OrderdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_config_init(args: argparse.Namespace) -> int:
    """Write the pricing defaults file."""
    try:
        store = ConfigStore()
        overrides = _parse_assignments(args.set or [])
        store.init(force=args.force, **overrides)
        print(f"Initialized pricing defaults at {store.config_path}")
        return 0

    except (OrderdeskError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_config_show(args: argparse.Namespace) -> int:
    """Show the pricing defaults in effect."""
    try:
        store = ConfigStore()
        defaults = store.load_or_default()

        if args.json:
            print(json.dumps(defaults.to_dict(), indent=2))
            return 0

        source = str(store.config_path) if store.exists() else "built-in"
        print(f"Pricing defaults ({source}):")
        for name in EDITABLE_FIELDS:
            print(f"  {name}: {getattr(defaults, name)}")
        return 0

    except OrderdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_config_set(args: argparse.Namespace) -> int:
    """Change pricing defaults."""
    try:
        store = ConfigStore()
        changes = _parse_assignments(args.assignments)
        defaults = store.update(**changes)
        for name in changes:
            print(f"Set {name} = {getattr(defaults, name)}")
        return 0

    except (OrderdeskError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        print("Starting orderdesk API server...")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "orderdesk.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="orderdesk",
        description="Price draft orders and check order status transitions.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # price
    price_parser = subparsers.add_parser("price", help="Compute pricing for an order document")
    price_parser.add_argument("order", help="Path to order JSON document")
    price_parser.add_argument("--json", action="store_true", help="Output as JSON")
    price_parser.add_argument(
        "--validate", action="store_true", help="Also run order form validation"
    )
    price_parser.add_argument(
        "--fail-on-invalid", action="store_true",
        help="Exit with code 2 if validation finds errors (implies --validate)"
    )

    # tax-type
    tax_parser = subparsers.add_parser("tax-type", help="Detect GST type from address states")
    tax_parser.add_argument("--shipping", "-s", default="", help="Shipping address state")
    tax_parser.add_argument("--billing", "-b", default="", help="Billing address state")
    tax_parser.add_argument(
        "--international", "-i", action="store_true", help="Order ships internationally"
    )

    # transitions
    transitions_parser = subparsers.add_parser(
        "transitions", help="List statuses reachable from a status"
    )
    transitions_parser.add_argument("kind", choices=KIND_CHOICES, help="Status dimension")
    transitions_parser.add_argument("status", help="Current status")
    transitions_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # check
    check_parser = subparsers.add_parser(
        "check", help="Check a transition (exit 2 if not allowed)"
    )
    check_parser.add_argument("kind", choices=KIND_CHOICES, help="Status dimension")
    check_parser.add_argument("current", help="Current status")
    check_parser.add_argument("target", help="Target status")

    # warnings
    warnings_parser = subparsers.add_parser(
        "warnings", help="Show warnings for a status combination"
    )
    warnings_parser.add_argument("order_status", help="Order status")
    warnings_parser.add_argument("payment_status", help="Payment status")
    warnings_parser.add_argument("fulfillment_status", help="Fulfillment status")
    warnings_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # config (subcommand group)
    config_parser = subparsers.add_parser("config", help="Manage pricing defaults")
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_init_parser = config_subparsers.add_parser("init", help="Create pricing defaults")
    config_init_parser.add_argument(
        "--force", "-f", action="store_true", help="Overwrite existing config"
    )
    config_init_parser.add_argument(
        "--set", action="append", metavar="KEY=VALUE", help="Initial value (repeatable)"
    )

    config_show_parser = config_subparsers.add_parser("show", help="Show pricing defaults")
    config_show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    config_set_parser = config_subparsers.add_parser("set", help="Change pricing defaults")
    config_set_parser.add_argument(
        "assignments", nargs="+", metavar="KEY=VALUE",
        help=f"Fields: {', '.join(EDITABLE_FIELDS)}"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "price" and args.fail_on_invalid:
        args.validate = True

    # Handle config subcommands
    if args.command == "config":
        if not getattr(args, "config_command", None):
            parser.parse_args(["config", "--help"])
            return 0
        config_commands = {
            "init": cmd_config_init,
            "show": cmd_config_show,
            "set": cmd_config_set,
        }
        return config_commands[args.config_command](args)

    commands = {
        "price": cmd_price,
        "tax-type": cmd_tax_type,
        "transitions": cmd_transitions,
        "check": cmd_check,
        "warnings": cmd_warnings,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
