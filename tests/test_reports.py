from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from artisan_ledger.main import create_app
from artisan_ledger.utils.numbers import currency_symbol, format_money, format_unit_cost
from artisan_ledger.utils.pdf_reports import PDFReportGenerator
from tests.conftest import make_settings


@pytest.mark.parametrize("currency,symbol", [
    ("USD", "$"),
    ("eur", "€"),
    ("GBP", "£"),
    ("KES", "KES "),
])
def test_currency_symbol(currency, symbol):
    assert currency_symbol(currency) == symbol


def test_display_formats():
    assert format_money(Decimal("1234.565")) == "$1,234.57"
    assert format_money(Decimal("49"), "€") == "€49.00"
    assert format_unit_cost(Decimal("2.45"), "lbs") == "$2.4500 per lbs"
    assert format_unit_cost(Decimal("0.42499"), "pcs", "KES ") == "KES 0.4250 per pcs"


def test_generator_uses_configured_currency(make_item):
    generator = PDFReportGenerator(currency="GBP")
    assert generator._money(Decimal("86.5")) == "£86.50"

    items = [make_item("FLOUR-001", quantity="20", cost="2.45")]
    assert generator.generate_inventory_report(items).startswith(b"%PDF")


def test_reports_follow_currency_setting():
    with TestClient(create_app(make_settings(CURRENCY="EUR"))) as client:
        assert client.app.state.ledger.settings.CURRENCY == "EUR"
        response = client.get("/api/reports/inventory.pdf")
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")
