# fetchers/catalog.py
import json
import math
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import requests

from core.logger import get_logger
from core.models import (
    CatalogSnapshot,
    Category,
    FailureReason,
    LoadFailure,
    Product,
    canonical_id,
)
from core.notifier import Notifier, log_notifier
from core.settings import (
    CATALOG_SOURCE,
    CATALOG_TIMEOUT,
    DEFAULT_SETTINGS,
    Settings,
    settings_from_document,
)

logger = get_logger(__name__)

USER_AGENT = os.getenv("CATALOG_USER_AGENT", "storefront-catalog/1.0")

# Always ask for a fresh copy: a cached catalog may still list a product
# that has since been repriced or withdrawn.
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}

DOCUMENTS = {
    "categories": "categories.json",
    "products": "products.json",
    "settings": "settings.json",
}

_COLOR_SPLIT = re.compile(r"[,،;|]")
_FALSE_STRINGS = {"false", "0", "no", "off"}


class CatalogError(Exception):
    """A catalog document could not be fetched or understood."""

    def __init__(self, reason: FailureReason, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def _is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def _clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_colors(raw: Any) -> Tuple[str, ...]:
    """Accept 'red, blue' or ['red', ' blue '] and return ('red', 'blue')."""
    if raw is None:
        return ()
    if isinstance(raw, str):
        parts = _COLOR_SPLIT.split(raw)
    elif isinstance(raw, (list, tuple)):
        parts = [p for p in raw if p is not None]
    else:
        parts = [raw]
    return tuple(s for s in (_clean_str(p) for p in parts) if s)


def _parse_price(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    try:
        finite = math.isfinite(raw)
    except OverflowError:
        # integers too large for a float
        return None
    if not finite or raw <= 0:
        return None
    return raw


def _parse_available(raw: Any) -> bool:
    """Only an explicit false-like value marks a product unavailable."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        return raw.strip().lower() not in _FALSE_STRINGS
    return True


def parse_product(raw: Any) -> Optional[Product]:
    """Validate one products.json record; None when it must be dropped."""
    if not isinstance(raw, dict):
        return None
    product_id = canonical_id(raw.get("id"))
    name = _clean_str(raw.get("name"))
    price = _parse_price(raw.get("price"))
    main_image = _clean_str(raw.get("mainImageUrl"))
    if product_id is None or not name or price is None or not main_image:
        return None

    return Product(
        id=product_id,
        name=name,
        price=price,
        main_image_url=main_image,
        category_id=canonical_id(raw.get("categoryId")),
        description=_clean_str(raw.get("description")),
        colors=normalize_colors(raw.get("colors")),
        is_available=_parse_available(raw.get("isAvailable")),
        image2_url=_clean_str(raw.get("image2Url")),
        image3_url=_clean_str(raw.get("image3Url")),
    )


def parse_category(raw: Any) -> Optional[Category]:
    if not isinstance(raw, dict):
        return None
    category_id = canonical_id(raw.get("id"))
    name = _clean_str(raw.get("name"))
    if category_id is None or not name:
        return None
    return Category(id=category_id, name=name, image_url=_clean_str(raw.get("imageUrl")))


PARSERS: Dict[str, Callable[[Any], Any]] = {
    "categories": parse_category,
    "products": parse_product,
}


class CatalogLoader:
    """
    Reads the published catalog documents from a base url or a local
    directory. Every failure is reported through `notify`, logged, and
    returned as a LoadFailure; nothing is raised to the caller.
    """

    def __init__(
        self,
        source: str = CATALOG_SOURCE,
        notify: Notifier = log_notifier,
        timeout: float = CATALOG_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.source = source
        self.notify = notify
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def _location(self, filename: str) -> str:
        if _is_url(self.source):
            return f"{self.source.rstrip('/')}/{filename}"
        return str(Path(self.source) / filename)

    def _fetch(self, location: str) -> str:
        if not _is_url(location):
            try:
                return Path(location).read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                raise CatalogError(FailureReason.MALFORMED, f"{location}: not UTF-8 ({e})") from e
            except OSError as e:
                raise CatalogError(FailureReason.UNREACHABLE, f"{location}: {e}") from e

        try:
            r = self.session.get(location, headers=NO_CACHE_HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            raise CatalogError(FailureReason.UNREACHABLE, f"{location}: {e}") from e
        if not r.ok:
            raise CatalogError(
                FailureReason.BAD_STATUS,
                f"{location}: {r.status_code} {r.reason}",
            )
        return r.text

    def fetch_document(self, kind: str) -> Any:
        """Fetch and decode one document; raises CatalogError."""
        filename = DOCUMENTS.get(kind)
        if filename is None:
            raise ValueError(f"Unknown catalog document: {kind!r}")

        location = self._location(filename)
        logger.debug("Attempting to load: %s", location)
        text = self._fetch(location)
        if not text.strip():
            raise CatalogError(FailureReason.EMPTY, f"{location}: empty body")
        try:
            data = json.loads(text)
        except ValueError as e:
            raise CatalogError(FailureReason.MALFORMED, f"{location}: invalid JSON ({e})") from e
        if not data:
            raise CatalogError(FailureReason.EMPTY, f"{location}: empty or invalid data")
        return data

    def load(self, kind: str) -> Union[CatalogSnapshot, LoadFailure]:
        parser = PARSERS.get(kind)
        if parser is None:
            raise ValueError(f"Unknown catalog kind: {kind!r}")
        filename = DOCUMENTS[kind]

        try:
            data = self.fetch_document(kind)
            if not isinstance(data, list):
                raise CatalogError(
                    FailureReason.MALFORMED,
                    f"{filename}: expected a list, got {type(data).__name__}",
                )
            records: List[Any] = []
            for raw in data:
                rec = parser(raw)
                if rec is None:
                    logger.debug("Dropping invalid %s record: %r", kind, raw)
                    continue
                records.append(rec)
            if not records:
                raise CatalogError(FailureReason.MALFORMED, f"{filename}: no valid {kind}")
        except CatalogError as e:
            logger.error("Error loading %s (%s): %s", filename, e.reason.value, e.detail)
            self.notify(self._failure_message(filename, e.reason))
            return LoadFailure(kind=kind, reason=e.reason, detail=e.detail)

        dropped = len(data) - len(records)
        if dropped:
            logger.warning("Dropped %d invalid record(s) from %s", dropped, filename)
        logger.info("Loaded %d %s from %s", len(records), kind, filename)
        return CatalogSnapshot(kind, records)

    @staticmethod
    def _failure_message(filename: str, reason: FailureReason) -> str:
        if reason is FailureReason.MALFORMED:
            return f"No valid data in {filename}; check the file contents."
        return f"Error loading {filename}; check the path or your internet connection."

    def load_products(self) -> CatalogSnapshot:
        result = self.load("products")
        return result if isinstance(result, CatalogSnapshot) else CatalogSnapshot("products")

    def load_categories(self) -> CatalogSnapshot:
        result = self.load("categories")
        return result if isinstance(result, CatalogSnapshot) else CatalogSnapshot("categories")

    def load_settings(self) -> Settings:
        """settings.json is optional: any problem falls back to the defaults."""
        try:
            doc = self.fetch_document("settings")
        except CatalogError as e:
            logger.warning("Settings not loaded (%s), using defaults: %s", e.reason.value, e.detail)
            return DEFAULT_SETTINGS
        return settings_from_document(doc)
