# core/summary.py
from pathlib import Path
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader

from .models import LineItem, OrderSummary, Product
from .settings import DEFAULT_CURRENCY, DEFAULT_SETTINGS, Settings

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)))

ORDER_HEADING = "My order:"

# currency code -> (symbol, symbol goes before the amount)
CURRENCY_FORMATS = {
    "USD": ("$", True),
    "EUR": ("€", True),
    "GBP": ("£", True),
    "EGP": ("E£", True),
    "TRY": ("₺", True),
    "SAR": ("SAR", False),
    "AED": ("AED", False),
    "KWD": ("KWD", False),
}


def format_price(amount: float, currency: Optional[str] = None) -> str:
    """Render an amount in the given currency, e.g. 1234.5/USD -> '$1,234.50'."""
    code = (currency or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY
    sign = "-" if amount < 0 else ""
    number = f"{abs(amount):,.2f}"
    symbol, prefix = CURRENCY_FORMATS.get(code, (code, False))
    if prefix:
        return f"{sign}{symbol}{number}"
    return f"{sign}{number} {symbol}"


def summarize(lines: Iterable[LineItem]) -> OrderSummary:
    lines = tuple(lines)
    total = sum(line.subtotal for line in lines)
    quantity = sum(line.quantity for line in lines)
    return OrderSummary(lines=lines, total=total, quantity=quantity)


class OrderSummaryBuilder:
    """
    Turns materialized line items into totals, an order message and the
    outbound messaging links that carry it.
    """

    def __init__(self, settings: Settings = DEFAULT_SETTINGS):
        self.settings = settings

    def format_price(self, amount: float) -> str:
        return format_price(amount, self.settings.currency)

    def summarize(self, lines: Iterable[LineItem]) -> OrderSummary:
        return summarize(lines)

    def render_message(self, lines: Sequence[LineItem]) -> str:
        summary = summarize(lines)
        template = env.get_template("order_message.txt")
        line_data: List[dict] = [
            {
                "quantity": line.quantity,
                "name": line.name,
                "subtotal_str": self.format_price(line.subtotal),
            }
            for line in summary.lines
        ]
        return template.render(
            heading=ORDER_HEADING,
            lines=line_data,
            total_str=self.format_price(summary.total),
        )

    def product_inquiry_message(self, product: Product) -> str:
        template = env.get_template("product_inquiry.txt")
        return template.render(
            name=product.name,
            price_str=self.format_price(product.price),
        )

    def whatsapp_link(self, lines: Sequence[LineItem]) -> str:
        return whatsapp_url(self.settings.whatsapp_number, self.render_message(lines))

    def telegram_link(self, lines: Sequence[LineItem]) -> str:
        return telegram_url(self.settings.telegram_bot, self.render_message(lines))

    def product_whatsapp_link(self, product: Product) -> str:
        return whatsapp_url(self.settings.whatsapp_number, self.product_inquiry_message(product))

    def product_telegram_link(self, product: Product) -> str:
        return telegram_url(self.settings.telegram_bot, self.product_inquiry_message(product))


def whatsapp_url(number: str, text: str) -> str:
    digits = "".join(ch for ch in str(number) if ch.isdigit())
    return f"https://wa.me/{digits}?text={quote(text, safe='')}"


def telegram_url(bot: str, text: str) -> str:
    handle = str(bot).strip()
    # settings.json sometimes holds a full t.me link instead of a handle
    for prefix in ("https://t.me/", "http://t.me/", "t.me/", "@"):
        if handle.startswith(prefix):
            handle = handle[len(prefix):]
    handle = handle.split("?", 1)[0].strip("/")
    return f"https://t.me/{handle}?text={quote(text, safe='')}"
