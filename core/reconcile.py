# core/reconcile.py
from typing import Any, Iterable, List, Optional

from .models import CatalogSnapshot, LineItem, Product, SelectionLedger, canonical_id


def materialize(ledger: SelectionLedger, catalog: Optional[CatalogSnapshot]) -> List[LineItem]:
    """
    Join ledger entries with the products they refer to.
    - ledger: entries as read from a SelectionStore
    - catalog: the current products snapshot (None or empty means no data)
    Returns line items in ledger order. Entries whose id is not in the
    catalog are left out of the result; the ledger itself is never touched.
    """
    if not catalog:
        return []

    lines: List[LineItem] = []
    for entry in ledger:
        product = catalog.get(entry.id)
        if not isinstance(product, Product):
            continue
        lines.append(LineItem(product=product, quantity=entry.quantity))
    return lines


def find_product(catalog: Optional[CatalogSnapshot], product_id: Any) -> Optional[Product]:
    if not catalog:
        return None
    product = catalog.get(product_id)
    return product if isinstance(product, Product) else None


def filter_by_category(products: Iterable[Product], category_id: Any) -> List[Product]:
    products = list(products)
    cid = canonical_id(category_id)
    if cid is None:
        return products
    return [p for p in products if p.category_id == cid]


def filter_by_text(products: Iterable[Product], query: Optional[str]) -> List[Product]:
    products = list(products)
    q = (query or "").strip().lower()
    if not q:
        return products
    return [p for p in products if q in p.name.lower()]


def apply_filters(
    products: Iterable[Product],
    category_id: Any = None,
    query: Optional[str] = None,
) -> List[Product]:
    """Category filter first, then name search; always a subsequence of `products`."""
    return filter_by_text(filter_by_category(products, category_id), query)
