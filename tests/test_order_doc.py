"""Tests for order document reading and result serialization."""

import pytest

from orderdesk.errors import InvalidOrderDocumentError
from orderdesk.models import DiscountType, PricingDefaults, TaxType
from orderdesk.order_doc import (
    order_document_from_dict,
    pricing_result_to_dict,
    read_order_document,
)

ORDER = {
    "items": [
        {
            "product_id": "p-1",
            "product_name": "Running Shoes",
            "quantity": 2,
            "cost_price": 2499,
            "discount_type": "percentage",
            "discount_value": 10,
            "available_stock": 10,
        }
    ],
    "pricing": {"order_discount_type": "fixed", "order_discount_value": 200},
    "shipping_address": {"label": "Home", "state": "Delhi", "city": "New Delhi"},
    "billing_address": {"label": "Office", "state": "Haryana", "city": "Gurugram"},
    "payment_method": "prepaid",
}


class TestOrderDocumentFromDict:
    def test_basic(self):
        doc = order_document_from_dict(ORDER)

        assert len(doc.items) == 1
        assert doc.items[0].discount_type is DiscountType.PERCENTAGE
        assert doc.inputs.order_discount_type is DiscountType.FIXED
        assert doc.shipping_address.state == "Delhi"
        assert doc.payment_method == "prepaid"
        assert doc.currency == "INR"

    def test_tax_type_detected_from_addresses(self):
        assert order_document_from_dict(ORDER).inputs.tax_type is TaxType.IGST

    def test_explicit_tax_type_wins(self):
        data = dict(ORDER, pricing={"tax_type": "cgst_sgst"})
        assert order_document_from_dict(data).inputs.tax_type is TaxType.CGST_SGST

    def test_billing_same_as_shipping(self):
        data = dict(ORDER, billing_same_as_shipping=True)
        doc = order_document_from_dict(data)

        assert doc.billing_address == doc.shipping_address
        assert doc.inputs.tax_type is TaxType.CGST_SGST

    def test_international(self):
        data = dict(ORDER, is_international=True)
        assert order_document_from_dict(data).inputs.tax_type is TaxType.NONE

    def test_defaults_fill_missing_rates(self):
        defaults = PricingDefaults(igst_rate=12, shipping_charge=75, cod_charge=40)
        doc = order_document_from_dict(ORDER, defaults)

        assert doc.inputs.igst_rate == 12
        assert doc.inputs.shipping_charge == 75
        assert doc.inputs.cod_charge == 0

    def test_cod_charge_default_only_for_cod(self):
        defaults = PricingDefaults(cod_charge=40)
        data = dict(ORDER, payment_method="cod")

        assert order_document_from_dict(data, defaults).inputs.cod_charge == 40

    def test_explicit_pricing_beats_defaults(self):
        defaults = PricingDefaults(shipping_charge=75)
        data = dict(ORDER, pricing={"shipping_charge": 0})

        assert order_document_from_dict(data, defaults).inputs.shipping_charge == 0

    def test_price(self):
        pricing = order_document_from_dict(ORDER).price()

        assert pricing.subtotal == 4998
        assert pricing.order_discount == 200
        assert pricing.taxable_amount == 4298.2
        assert pricing.igst == 773.68
        assert pricing.grand_total == 5071.88

    def test_not_an_object(self):
        with pytest.raises(InvalidOrderDocumentError, match="expected a JSON object"):
            order_document_from_dict(["not", "an", "order"])

    def test_items_not_a_list(self):
        with pytest.raises(InvalidOrderDocumentError, match="'items' must be a list"):
            order_document_from_dict({"items": {"quantity": 1}})

    def test_bad_discount_type(self):
        data = {"items": [{"quantity": 1, "discount_type": "bogo"}]}
        with pytest.raises(InvalidOrderDocumentError, match="Invalid discount type"):
            order_document_from_dict(data, source="order.json")

    def test_numeric_strings_are_converted(self):
        data = {
            "items": [{"cost_price": "2499", "quantity": "2", "discount_value": ""}],
            "pricing": {"tax_type": "none", "shipping_charge": "50", "advance_paid": None},
        }
        doc = order_document_from_dict(data)

        assert doc.items[0].cost_price == 2499.0
        assert doc.items[0].quantity == 2
        assert doc.items[0].discount_value == 0
        assert doc.inputs.shipping_charge == 50.0
        assert doc.price().grand_total == 5048.0

    @pytest.mark.parametrize("bad", ["abc", [1], {"amount": 1}, True, "nan"])
    def test_non_numeric_item_field(self, bad):
        data = {"items": [{"cost_price": bad, "quantity": 1}]}
        with pytest.raises(InvalidOrderDocumentError, match="'cost_price' must be a"):
            order_document_from_dict(data, source="order.json")

    def test_non_numeric_pricing_field(self):
        data = {"items": [], "pricing": {"shipping_charge": "fifty"}}
        with pytest.raises(InvalidOrderDocumentError, match="'shipping_charge' must be a number"):
            order_document_from_dict(data)

    def test_bad_address(self):
        with pytest.raises(InvalidOrderDocumentError):
            order_document_from_dict({"items": [], "shipping_address": "Delhi"})


class TestReadOrderDocument:
    def test_read(self, write_order):
        path = write_order(ORDER)
        doc = read_order_document(path)

        assert doc.items[0].product_name == "Running Shoes"

    def test_missing_file(self, temp_dir):
        with pytest.raises(InvalidOrderDocumentError, match="file not found"):
            read_order_document(temp_dir / "missing.json")

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "order.json"
        path.write_text("{not json")

        with pytest.raises(InvalidOrderDocumentError, match="not valid JSON"):
            read_order_document(path)


class TestPricingResultToDict:
    def test_without_validation(self):
        doc = order_document_from_dict(ORDER)
        result = pricing_result_to_dict(doc, doc.price())

        assert result["schema_version"] == 1
        assert result["item_count"] == 1
        assert result["tax_type"] == "igst"
        assert result["pricing"]["grand_total"] == 5071.88
        assert result["generated_at"].endswith("Z")
        assert "valid" not in result

    def test_with_validation(self):
        doc = order_document_from_dict(ORDER)
        result = pricing_result_to_dict(doc, doc.price(), {"items": "Please add at least one product"})

        assert result["valid"] is False
        assert result["errors"] == {"items": "Please add at least one product"}

        assert pricing_result_to_dict(doc, doc.price(), {})["valid"] is True
