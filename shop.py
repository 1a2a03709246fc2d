import os
import sys
from typing import List, Optional

import typer

from core.debounce import Debouncer
from core.logger import get_logger
from core.models import CatalogSnapshot, LineItem, Product
from core.reconcile import apply_filters, find_product, materialize
from core.selection import CartStore, FavoritesStore
from core.settings import CATALOG_SOURCE, DB_PATH
from core.storage import LedgerStorage
from core.summary import OrderSummaryBuilder
from fetchers import CatalogLoader

logger = get_logger(__name__)

SEARCH_DEBOUNCE = float(os.getenv("SEARCH_DEBOUNCE", "0.3"))

app = typer.Typer(name="shop", help="Browse the catalog and manage the cart and favorites.")
cart_app = typer.Typer(help="Manage the cart.", invoke_without_command=True)
favorites_app = typer.Typer(help="Manage the favorites list.", invoke_without_command=True)
app.add_typer(cart_app, name="cart")
app.add_typer(favorites_app, name="favorites")


def notify(message: str) -> None:
    typer.echo(message, err=True)


class Shop:
    """Wires the loader, the two ledgers and the summary builder together."""

    def __init__(self, source: str, db_path: str):
        self.loader = CatalogLoader(source, notify=notify)
        storage = LedgerStorage(db_path)
        self.cart = CartStore(storage, notify=notify)
        self.favorites = FavoritesStore(storage, notify=notify)
        self._builder: Optional[OrderSummaryBuilder] = None

    @property
    def builder(self) -> OrderSummaryBuilder:
        if self._builder is None:
            self._builder = OrderSummaryBuilder(self.loader.load_settings())
        return self._builder

    def products(self) -> CatalogSnapshot:
        return self.loader.load_products()


@app.callback()
def main(
    ctx: typer.Context,
    source: str = typer.Option(CATALOG_SOURCE, "--source", help="Catalog base url or directory."),
    db: str = typer.Option(DB_PATH, "--db", help="Path of the local ledger database."),
) -> None:
    ctx.obj = Shop(source, db)


def _shop(ctx: typer.Context) -> Shop:
    return ctx.find_root().obj


def _echo_products(shop: Shop, products: List[Product]) -> None:
    if not products:
        typer.echo("No products available.")
        return
    for p in products:
        flags = []
        if not p.is_available:
            flags.append("unavailable")
        if shop.favorites.contains(p.id):
            flags.append("♥")
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        typer.echo(f"{p.id}\t{p.name}\t{shop.builder.format_price(p.price)}{suffix}")


def _echo_lines(shop: Shop, lines: List[LineItem], show_total: bool = True) -> None:
    for line in lines:
        typer.echo(
            f"{line.id}\t{line.quantity} × {line.name}\t{shop.builder.format_price(line.subtotal)}"
        )
    if show_total:
        summary = shop.builder.summarize(lines)
        typer.echo(f"Total: {shop.builder.format_price(summary.total)}")


@app.command()
def categories(ctx: typer.Context) -> None:
    """List catalog categories."""
    snapshot = _shop(ctx).loader.load_categories()
    if not snapshot:
        typer.echo("No categories available.")
        raise typer.Exit(code=1)
    for c in snapshot:
        typer.echo(f"{c.id}\t{c.name}")


@app.command()
def products(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, "--category", "-c"),
    search: Optional[str] = typer.Option(None, "--search", "-s"),
) -> None:
    """List products, optionally filtered by category and name."""
    shop = _shop(ctx)
    snapshot = shop.products()
    if not snapshot:
        raise typer.Exit(code=1)
    _echo_products(shop, apply_filters(snapshot, category, search))


@app.command()
def product(ctx: typer.Context, product_id: str) -> None:
    """Show one product with its order links."""
    shop = _shop(ctx)
    p = find_product(shop.products(), product_id)
    if p is None:
        notify("Product not found.")
        raise typer.Exit(code=1)
    typer.echo(p.name)
    typer.echo(shop.builder.format_price(p.price))
    typer.echo(p.description or "No description")
    typer.echo("Colors: " + (", ".join(p.colors) or "—"))
    typer.echo("Available" if p.is_available else "Unavailable")
    for url in p.images:
        typer.echo(f"Image: {url}")
    typer.echo(f"WhatsApp: {shop.builder.product_whatsapp_link(p)}")
    typer.echo(f"Telegram: {shop.builder.product_telegram_link(p)}")


@app.command()
def search(
    ctx: typer.Context,
    category: Optional[str] = typer.Option(None, "--category", "-c"),
) -> None:
    """Interactive name search; one query per input line."""
    shop = _shop(ctx)
    snapshot = shop.products()
    if not snapshot:
        raise typer.Exit(code=1)

    def show(query: str) -> None:
        typer.echo(f"--- {query or '(all)'}")
        _echo_products(shop, apply_filters(snapshot, category, query))

    debounced = Debouncer(show, wait=SEARCH_DEBOUNCE)
    debounced("")
    for line in sys.stdin:
        debounced(line.strip())
    debounced.flush()


# --- cart ------------------------------------------------------------------

@cart_app.callback(invoke_without_command=True)
def cart_main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        cart_show(ctx)


@cart_app.command("show")
def cart_show(ctx: typer.Context) -> None:
    """Show the cart reconciled against the current catalog."""
    shop = _shop(ctx)
    ledger = shop.cart.get_all()
    lines = materialize(ledger, shop.products())
    if not lines:
        typer.echo("Your cart is empty.")
        return
    _echo_lines(shop, lines)


@cart_app.command("add")
def cart_add(ctx: typer.Context, product_id: str) -> None:
    shop = _shop(ctx)
    p = find_product(shop.products(), product_id)
    if p is None:
        notify("Product not found.")
        raise typer.Exit(code=1)
    if not p.is_available:
        notify(f"{p.name} is currently unavailable.")
        raise typer.Exit(code=1)
    shop.cart.add(p.id, p.name)
    typer.echo(f"Cart items: {shop.cart.count()}")


@cart_app.command("remove")
def cart_remove(ctx: typer.Context, product_id: str) -> None:
    shop = _shop(ctx)
    shop.cart.remove(product_id)
    typer.echo(f"Cart items: {shop.cart.count()}")


@cart_app.command("update")
def cart_update(ctx: typer.Context, product_id: str, quantity: int) -> None:
    shop = _shop(ctx)
    shop.cart.update_quantity(product_id, quantity)
    typer.echo(f"Cart items: {shop.cart.count()}")


@cart_app.command("clear")
def cart_clear(ctx: typer.Context) -> None:
    _shop(ctx).cart.clear()


@app.command()
def order(ctx: typer.Context) -> None:
    """Print the order message and the links that send it."""
    shop = _shop(ctx)
    lines = materialize(shop.cart.get_all(), shop.products())
    if not lines:
        typer.echo("Your cart is empty.")
        raise typer.Exit(code=1)
    typer.echo(shop.builder.render_message(lines))
    typer.echo("")
    typer.echo(f"WhatsApp: {shop.builder.whatsapp_link(lines)}")
    typer.echo(f"Telegram: {shop.builder.telegram_link(lines)}")


# --- favorites -------------------------------------------------------------

@favorites_app.callback(invoke_without_command=True)
def favorites_main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        favorites_show(ctx)


@favorites_app.command("show")
def favorites_show(ctx: typer.Context) -> None:
    shop = _shop(ctx)
    lines = materialize(shop.favorites.get_all(), shop.products())
    if not lines:
        typer.echo("No favorites yet.")
        return
    _echo_products(shop, [line.product for line in lines])


@favorites_app.command("add")
def favorites_add(ctx: typer.Context, product_id: str) -> None:
    shop = _shop(ctx)
    p = find_product(shop.products(), product_id)
    if p is None:
        notify("Product not found.")
        raise typer.Exit(code=1)
    shop.favorites.add(p.id, p.name)


@favorites_app.command("remove")
def favorites_remove(ctx: typer.Context, product_id: str) -> None:
    _shop(ctx).favorites.remove(product_id)


@favorites_app.command("toggle")
def favorites_toggle(ctx: typer.Context, product_id: str) -> None:
    shop = _shop(ctx)
    p = find_product(shop.products(), product_id)
    if p is None:
        notify("Product not found.")
        raise typer.Exit(code=1)
    shop.favorites.toggle(p.id, p.name)


if __name__ == "__main__":
    try:
        app()
    except Exception as e:
        logger.exception("Fatal storefront error: %s", e)
        raise SystemExit(2)
