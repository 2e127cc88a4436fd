"""Integration tests for CLI."""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parent.parent / "src"

ORDER = {
    "items": [
        {
            "product_name": "Desk Lamp",
            "quantity": 1,
            "cost_price": 1000,
            "available_stock": 5,
        }
    ],
    "shipping_address": {"state": "Delhi"},
    "billing_address": {"state": "Delhi"},
    "payment_method": "prepaid",
}


@pytest.fixture
def data_dir(temp_dir):
    return temp_dir / "data"


def run_orderdesk(args: list[str], data_dir: Path) -> subprocess.CompletedProcess:
    """Run orderdesk CLI command against an isolated data directory."""
    env = dict(os.environ)
    env["ORDERDESK_DATA_DIR"] = str(data_dir)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))
    env["PYTHONIOENCODING"] = "utf-8"
    return subprocess.run(
        [sys.executable, "-m", "orderdesk.cli"] + args,
        capture_output=True,
        text=True,
        encoding="utf-8",
        env=env,
    )


class TestPriceCommand:
    def test_price_json(self, data_dir, write_order):
        path = write_order(ORDER)
        result = run_orderdesk(["price", str(path), "--json"], data_dir)

        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["tax_type"] == "cgst_sgst"
        assert data["pricing"]["cgst"] == 90.0
        assert data["pricing"]["sgst"] == 90.0
        assert data["pricing"]["grand_total"] == 1180.0

    def test_price_summary(self, data_dir, write_order):
        path = write_order(ORDER)
        result = run_orderdesk(["price", str(path)], data_dir)

        assert result.returncode == 0
        assert "Items: 1" in result.stdout
        assert "CGST @9%" in result.stdout
        assert "₹1,180.00" in result.stdout

    def test_price_uses_configured_cod_charge(self, data_dir, write_order):
        run_orderdesk(["config", "init", "--set", "cod_charge=50"], data_dir)
        path = write_order(dict(ORDER, payment_method="cod"))
        result = run_orderdesk(["price", str(path), "--json", "--validate"], data_dir)

        data = json.loads(result.stdout)
        assert data["pricing"]["cod_charge"] == 50.0
        assert data["pricing"]["grand_total"] == 1230.0
        assert data["valid"] is True

    def test_fail_on_invalid(self, data_dir, write_order):
        path = write_order(dict(ORDER, items=[]))
        result = run_orderdesk(["price", str(path), "--fail-on-invalid"], data_dir)

        assert result.returncode == 2
        assert "Please add at least one product" in result.stdout

    def test_price_numeric_strings(self, data_dir, write_order):
        path = write_order({"items": [{"cost_price": "2499", "quantity": 2}]})
        result = run_orderdesk(["price", str(path), "--json"], data_dir)

        assert result.returncode == 0
        assert json.loads(result.stdout)["pricing"]["subtotal"] == 4998.0

    def test_price_non_numeric_field(self, data_dir, write_order):
        path = write_order({"items": [{"cost_price": "a lot", "quantity": 2}]})
        result = run_orderdesk(["price", str(path)], data_dir)

        assert result.returncode == 1
        assert "Error: Invalid order document" in result.stderr
        assert "'cost_price' must be a number" in result.stderr
        assert "Traceback" not in result.stderr

    def test_missing_order_file(self, data_dir, temp_dir):
        result = run_orderdesk(["price", str(temp_dir / "missing.json")], data_dir)

        assert result.returncode == 1
        assert "Invalid order document" in result.stderr


class TestStatusCommands:
    def test_tax_type(self, data_dir):
        result = run_orderdesk(["tax-type", "-s", "Delhi", "-b", "UP"], data_dir)
        assert result.returncode == 0
        assert result.stdout.strip() == "igst"

        result = run_orderdesk(["tax-type", "-s", "Delhi", "-b", "Delhi", "-i"], data_dir)
        assert result.stdout.strip() == "none"

    def test_check_allowed(self, data_dir):
        result = run_orderdesk(["check", "order", "pending", "confirmed"], data_dir)

        assert result.returncode == 0
        assert "OK: Pending -> Confirmed" in result.stdout

    def test_check_not_allowed(self, data_dir):
        result = run_orderdesk(["check", "order", "pending", "delivered"], data_dir)

        assert result.returncode == 2
        assert "Not allowed" in result.stdout
        assert "Allowed: Confirmed, Cancelled" in result.stdout

    def test_check_unknown_status(self, data_dir):
        result = run_orderdesk(["check", "order", "lost", "pending"], data_dir)

        assert result.returncode == 1
        assert "Invalid order status" in result.stderr

    def test_transitions_json(self, data_dir):
        result = run_orderdesk(["transitions", "order", "processing", "--json"], data_dir)

        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["allowed_transitions"] == ["shipped", "cancelled", "refunded"]
        assert data["requires_confirmation"] == {
            "shipped": ["order_tracking"],
            "cancelled": ["admin_comment"],
        }
        assert data["lifecycle_step"] == 2
        assert data["terminal"] is False

    def test_transitions_terminal(self, data_dir):
        result = run_orderdesk(["transitions", "order", "delivered"], data_dir)

        assert result.returncode == 0
        assert "terminal" in result.stdout

    def test_warnings(self, data_dir):
        result = run_orderdesk(["warnings", "shipped", "pending", "fulfilled"], data_dir)

        assert result.returncode == 0
        assert "[warning] Order shipped but payment is still pending (payment)" in result.stdout

    def test_no_warnings(self, data_dir):
        result = run_orderdesk(["warnings", "delivered", "paid", "fulfilled"], data_dir)
        assert "No warnings." in result.stdout


class TestConfigCommands:
    def test_init_creates_config(self, data_dir):
        result = run_orderdesk(["config", "init"], data_dir)

        assert result.returncode == 0
        assert "Initialized" in result.stdout
        assert (data_dir / "pricing_defaults.json").exists()

    def test_init_force_overwrites(self, data_dir):
        run_orderdesk(["config", "init"], data_dir)

        result = run_orderdesk(["config", "init"], data_dir)
        assert result.returncode == 1
        assert "already exists" in result.stderr

        result = run_orderdesk(["config", "init", "--force"], data_dir)
        assert result.returncode == 0

    def test_set_and_show(self, data_dir):
        run_orderdesk(["config", "init"], data_dir)

        result = run_orderdesk(["config", "set", "cgst_rate=6", "sgst_rate=6"], data_dir)
        assert result.returncode == 0
        assert "Set cgst_rate = 6.0" in result.stdout

        result = run_orderdesk(["config", "show", "--json"], data_dir)
        data = json.loads(result.stdout)
        assert data["cgst_rate"] == 6.0
        assert data["sgst_rate"] == 6.0

    def test_set_without_init_fails(self, data_dir):
        result = run_orderdesk(["config", "set", "cgst_rate=6"], data_dir)

        assert result.returncode == 1
        assert "orderdesk config init" in result.stderr

    def test_set_unknown_field(self, data_dir):
        run_orderdesk(["config", "init"], data_dir)
        result = run_orderdesk(["config", "set", "vat_rate=5"], data_dir)

        assert result.returncode == 1
        assert "Unknown config field" in result.stderr

    def test_set_malformed_assignment(self, data_dir):
        run_orderdesk(["config", "init"], data_dir)
        result = run_orderdesk(["config", "set", "cgst_rate"], data_dir)

        assert result.returncode == 1
        assert "expected KEY=VALUE" in result.stderr

    def test_show_builtin(self, data_dir):
        result = run_orderdesk(["config", "show"], data_dir)

        assert result.returncode == 0
        assert "built-in" in result.stdout
        assert "igst_rate: 18.0" in result.stdout
