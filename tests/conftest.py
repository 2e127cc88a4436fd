"""Pytest fixtures for orderdesk tests."""

import json
import tempfile
from pathlib import Path

import pytest

from orderdesk.models import DiscountType, OrderItem


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_items():
    """Two lines: a discounted pair of shoes and an undiscounted watch."""
    return [
        OrderItem(
            product_id="p-1",
            product_name="Running Shoes",
            product_sku="RS-42",
            quantity=2,
            cost_price=2499,
            discount_type=DiscountType.PERCENTAGE,
            discount_value=10,
            available_stock=10,
        ),
        OrderItem(
            product_id="p-2",
            product_name="Smart Watch",
            product_sku="SW-01",
            quantity=1,
            cost_price=12999,
            discount_type=DiscountType.NONE,
            discount_value=0,
            available_stock=3,
        ),
    ]


@pytest.fixture
def write_order(temp_dir):
    """Return a helper that writes an order document into temp_dir."""

    def _write(data: dict, name: str = "order.json") -> Path:
        path = temp_dir / name
        path.write_text(json.dumps(data, indent=2))
        return path

    return _write
