# core/selection.py
import json
from typing import Any, Dict, List, Optional

from .logger import get_logger
from .models import ProductId, SelectionEntry, SelectionLedger, canonical_id
from .notifier import Notifier, log_notifier
from .settings import CART_KEY, FAVORITES_KEY
from .storage import LedgerStorage, PersistenceFailure

logger = get_logger(__name__)


def _entry_from_raw(raw: Any) -> Optional[SelectionEntry]:
    if not isinstance(raw, dict):
        return None
    entry_id = canonical_id(raw.get("id"))
    if entry_id is None:
        return None
    name = raw.get("name")
    quantity = raw.get("quantity", 1)
    try:
        quantity = int(quantity)
    except (TypeError, ValueError, OverflowError):
        quantity = 1
    if quantity < 1:
        quantity = 1
    return SelectionEntry(
        id=entry_id,
        name=str(name) if name is not None else "",
        quantity=quantity,
    )


class SelectionStore:
    """
    A persisted ledger of selected product ids under a single storage key.

    Every public operation reads the ledger fresh, applies the change and
    writes it back before returning. Storage problems are reported through
    `notify` and never raised to the caller.
    """

    tracks_quantity = True
    label = "selection"

    def __init__(
        self,
        storage: LedgerStorage,
        key: str,
        notify: Notifier = log_notifier,
    ):
        self.storage = storage
        self.key = key
        self.notify = notify

    # --- persistence -------------------------------------------------------

    def get_all(self) -> SelectionLedger:
        try:
            raw = self.storage.get_item(self.key)
        except PersistenceFailure as e:
            logger.error("Error reading %s ledger: %s", self.label, e)
            return []
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error("Corrupt %s ledger under '%s': %s", self.label, self.key, e)
            return []
        if not isinstance(data, list):
            logger.error(
                "Unexpected %s ledger shape under '%s': %s",
                self.label, self.key, type(data).__name__,
            )
            return []

        ledger: SelectionLedger = []
        seen = set()
        for raw_entry in data:
            entry = _entry_from_raw(raw_entry)
            if entry is None or entry.id in seen:
                logger.debug("Skipping unreadable %s entry: %r", self.label, raw_entry)
                continue
            if not self.tracks_quantity:
                entry.quantity = 1
            seen.add(entry.id)
            ledger.append(entry)
        return ledger

    def _serialize(self, ledger: SelectionLedger) -> str:
        rows: List[Dict[str, Any]] = []
        for entry in ledger:
            row: Dict[str, Any] = {"id": entry.id, "name": entry.name}
            if self.tracks_quantity:
                row["quantity"] = entry.quantity
            rows.append(row)
        return json.dumps(rows, ensure_ascii=False)

    def _save(self, ledger: SelectionLedger, error_message: str) -> bool:
        try:
            self.storage.set_item(self.key, self._serialize(ledger))
        except PersistenceFailure as e:
            logger.error("Error saving %s ledger: %s", self.label, e)
            self.notify(error_message)
            return False
        return True

    # --- queries -----------------------------------------------------------

    def find(self, product_id: Any) -> Optional[SelectionEntry]:
        pid = canonical_id(product_id)
        if pid is None:
            return None
        return next((e for e in self.get_all() if e.id == pid), None)

    def contains(self, product_id: Any) -> bool:
        return self.find(product_id) is not None

    def ids(self) -> List[ProductId]:
        return [e.id for e in self.get_all()]

    def count(self) -> int:
        return sum(e.quantity for e in self.get_all())

    # --- mutations ---------------------------------------------------------

    def add(self, product_id: Any, name: str) -> None:
        pid = canonical_id(product_id)
        if pid is None:
            logger.warning("Refusing to add %s entry without an id: %r", self.label, product_id)
            return
        ledger = self.get_all()
        existing = next((e for e in ledger if e.id == pid), None)
        if existing is not None:
            if not self._merge_existing(existing, name):
                return
        else:
            ledger.append(SelectionEntry(id=pid, name=name, quantity=1))
        if self._save(ledger, f"Could not add {name} to the {self.label}."):
            self.notify(f"{name} was added to the {self.label}!")

    def _merge_existing(self, entry: SelectionEntry, name: str) -> bool:
        """Apply a repeated add to an existing entry; False means nothing to save."""
        entry.quantity += 1
        return True

    def remove(self, product_id: Any) -> None:
        pid = canonical_id(product_id)
        ledger = self.get_all()
        removed = next((e for e in ledger if e.id == pid), None)
        if removed is None:
            return
        remaining = [e for e in ledger if e.id != pid]
        if self._save(remaining, f"Could not remove the item from the {self.label}."):
            self.notify(f"{removed.name} was removed from the {self.label}!")


class CartStore(SelectionStore):
    label = "cart"

    def __init__(self, storage: LedgerStorage, key: str = CART_KEY, notify: Notifier = log_notifier):
        super().__init__(storage, key, notify)

    def update_quantity(self, product_id: Any, quantity: Any) -> None:
        try:
            quantity = int(quantity)
        except (TypeError, ValueError, OverflowError):
            logger.debug("Ignoring non-numeric quantity %r for %s", quantity, product_id)
            return
        if quantity <= 0:
            return
        pid = canonical_id(product_id)
        ledger = self.get_all()
        entry = next((e for e in ledger if e.id == pid), None)
        if entry is None:
            return
        entry.quantity = quantity
        if self._save(ledger, "Could not update the quantity."):
            self.notify("Quantity updated!")

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except PersistenceFailure as e:
            logger.error("Error clearing cart ledger: %s", e)
            self.notify("Could not clear the cart.")


class FavoritesStore(SelectionStore):
    tracks_quantity = False
    label = "favorites"

    def __init__(self, storage: LedgerStorage, key: str = FAVORITES_KEY, notify: Notifier = log_notifier):
        super().__init__(storage, key, notify)

    def _merge_existing(self, entry: SelectionEntry, name: str) -> bool:
        self.notify(f"{name} is already in the favorites!")
        return False

    def count(self) -> int:
        return len(self.get_all())

    def toggle(self, product_id: Any, name: str) -> bool:
        """Add the product if absent, remove it if present; returns the new membership."""
        if self.contains(product_id):
            self.remove(product_id)
        else:
            self.add(product_id, name)
        return self.contains(product_id)
