"""Tests for totals, price formatting and order messages."""

from dataclasses import replace
from urllib.parse import parse_qs, urlparse

import pytest

from core.models import LineItem, Product
from core.settings import Settings
from core.summary import OrderSummaryBuilder, format_price, summarize, telegram_url


def _line(pid, name, price, quantity):
    return LineItem(Product(id=pid, name=name, price=price, main_image_url="x"), quantity)


@pytest.mark.parametrize(
    "amount,currency,expected",
    [
        (1234.5, "USD", "$1,234.50"),
        (20, "EGP", "E£20.00"),
        (20, "egp", "E£20.00"),
        (99.999, "SAR", "100.00 SAR"),
        (5, "XYZ", "5.00 XYZ"),
        (-3, "USD", "-$3.00"),
        (7, None, "E£7.00"),
    ],
)
def test_format_price(amount, currency, expected):
    assert format_price(amount, currency) == expected


def test_summarize_totals():
    lines = [_line("1", "A", 10, 2), _line("2", "B", 2.5, 4)]
    summary = summarize(lines)

    assert summary.total == 30
    assert summary.quantity == 6
    assert summary.lines == tuple(lines)


def test_summary_is_a_snapshot():
    product = Product(id="1", name="A", price=10, main_image_url="x")
    summary = summarize([LineItem(product, 3)])

    repriced = replace(product, price=99)
    assert repriced.price == 99
    assert summary.total == 30
    assert summary.lines[0].product.price == 10


def test_summarize_empty():
    assert summarize([]).total == 0


def test_render_message():
    builder = OrderSummaryBuilder(Settings(currency="USD"))
    message = builder.render_message([_line("1", "Rose Ring", 80, 2), _line("2", "Pearl", 15, 1)])

    assert message.splitlines() == [
        "My order:",
        "2 × Rose Ring — $160.00",
        "1 × Pearl — $15.00",
        "Total: $175.00",
    ]


def test_render_message_empty():
    builder = OrderSummaryBuilder(Settings(currency="USD"))
    assert builder.render_message([]).splitlines() == ["My order:", "Total: $0.00"]


def test_whatsapp_link_carries_message():
    builder = OrderSummaryBuilder(Settings(currency="USD", whatsapp_number="+20 100 555"))
    lines = [_line("1", "A", 10, 2)]

    url = urlparse(builder.whatsapp_link(lines))
    assert url.netloc == "wa.me"
    assert url.path == "/20100555"
    assert parse_qs(url.query)["text"] == [builder.render_message(lines)]


def test_telegram_link_accepts_full_url_setting():
    assert telegram_url("https://t.me/shop_bot?start=1", "hi") == "https://t.me/shop_bot?text=hi"
    assert telegram_url("@shop_bot", "a b") == "https://t.me/shop_bot?text=a%20b"


def test_product_inquiry():
    builder = OrderSummaryBuilder(Settings(currency="USD"))
    product = Product(id="1", name="Rose Ring", price=80, main_image_url="x")

    assert builder.product_inquiry_message(product) == "I would like to order Rose Ring ($80.00)"
    assert builder.product_telegram_link(product).startswith("https://t.me/roaa_bot?text=I%20would")
