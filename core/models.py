# core/models.py
import enum
import math
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Tuple, Union

# Ids arrive as numbers or strings depending on who edited the JSON;
# everything past the document boundary works with the string form.
ProductId = str


def canonical_id(value: Any) -> Optional[ProductId]:
    """
    Convert a raw document id into its canonical string form.
    Returns None for values that cannot act as an id.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Category:
    id: ProductId
    name: str
    image_url: str = ""


@dataclass(frozen=True)
class Product:
    """
    A catalog product as published in products.json, after validation.
    Immutable for the lifetime of the snapshot that holds it.
    """
    id: ProductId
    name: str
    price: float
    main_image_url: str
    category_id: Optional[ProductId] = None
    description: str = ""
    colors: Tuple[str, ...] = ()
    is_available: bool = True
    image2_url: str = ""
    image3_url: str = ""

    @property
    def images(self) -> List[str]:
        return [u for u in (self.main_image_url, self.image2_url, self.image3_url) if u]


Record = Union[Category, Product]


class CatalogSnapshot:
    """
    Ordered, read-only view of one loaded catalog document.

    Lookup by id is first-seen wins; iteration yields every record that
    survived validation, in document order.
    """

    def __init__(self, kind: str, records=()):
        self.kind = kind
        self._records: Tuple[Record, ...] = tuple(records)
        self._index = {}
        for rec in self._records:
            self._index.setdefault(rec.id, rec)

    def get(self, record_id: Any) -> Optional[Record]:
        cid = canonical_id(record_id)
        if cid is None:
            return None
        return self._index.get(cid)

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __repr__(self) -> str:
        return f"CatalogSnapshot(kind={self.kind!r}, records={len(self._records)})"


@dataclass
class SelectionEntry:
    """One row of a cart or favorites ledger. Favorites always hold quantity 1."""
    id: ProductId
    name: str
    quantity: int = 1


SelectionLedger = List[SelectionEntry]


@dataclass(frozen=True)
class LineItem:
    """A ledger entry joined with the catalog product it currently refers to."""
    product: Product
    quantity: int = 1

    @property
    def id(self) -> ProductId:
        return self.product.id

    @property
    def name(self) -> str:
        return self.product.name

    @property
    def unit_price(self) -> float:
        return self.product.price

    @property
    def subtotal(self) -> float:
        return self.product.price * self.quantity


@dataclass(frozen=True)
class OrderSummary:
    lines: Tuple[LineItem, ...] = field(default_factory=tuple)
    total: float = 0
    quantity: int = 0


class FailureReason(enum.Enum):
    UNREACHABLE = "unreachable"
    BAD_STATUS = "bad_status"
    EMPTY = "empty"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class LoadFailure:
    kind: str
    reason: FailureReason
    detail: str = ""

    def __bool__(self) -> bool:
        # Lets callers write `if not result:` for both failures and empty snapshots
        return False
