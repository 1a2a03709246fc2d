"""Tests for catalog loading, validation and normalization."""

import requests
import pytest

from core.models import CatalogSnapshot, FailureReason, LoadFailure, Product
from core.settings import DEFAULT_SETTINGS
from fetchers.catalog import NO_CACHE_HEADERS, CatalogLoader, normalize_colors, parse_product


class FakeResponse:
    def __init__(self, status_code=200, text="", reason="OK"):
        self.status_code = status_code
        self.text = text
        self.reason = reason

    @property
    def ok(self):
        return 200 <= self.status_code < 400


class FakeSession(requests.Session):
    def __init__(self, response=None, error=None):
        super().__init__()
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_load_products_keeps_valid_records_in_order(catalog_dir, notes):
    loader = CatalogLoader(str(catalog_dir), notify=notes.append)
    snapshot = loader.load("products")

    assert isinstance(snapshot, CatalogSnapshot)
    assert [p.id for p in snapshot] == ["1", "2", "4"]
    assert notes == []


def test_load_products_normalizes_fields(catalog_dir, notes):
    snapshot = CatalogLoader(str(catalog_dir), notify=notes.append).load_products()

    rose = snapshot.get(1)
    assert rose.colors == ("silver", "gold")
    assert rose.is_available is True
    assert rose.category_id == "10"
    assert rose.images == ["https://img.example/rose.jpg", "https://img.example/rose-2.jpg"]

    pearl = snapshot.get("2")
    assert pearl.colors == ("white", "cream")
    assert pearl.is_available is False


def test_load_categories(catalog_dir, notes):
    snapshot = CatalogLoader(str(catalog_dir), notify=notes.append).load_categories()
    assert [(c.id, c.name) for c in snapshot] == [("10", "Necklaces"), ("20", "Earrings")]


def test_missing_document_is_unreachable_and_notifies(tmp_path, notes):
    loader = CatalogLoader(str(tmp_path / "nowhere"), notify=notes.append)
    result = loader.load("products")

    assert isinstance(result, LoadFailure)
    assert result.reason is FailureReason.UNREACHABLE
    assert not result
    assert len(notes) == 1
    assert "products.json" in notes[0]


@pytest.mark.parametrize("body", ["[]", "null", "{}", "   "])
def test_empty_document(make_catalog, notes, body):
    directory = make_catalog()
    (directory / "products.json").write_text(body, encoding="utf-8")

    result = CatalogLoader(str(directory), notify=notes.append).load("products")
    assert isinstance(result, LoadFailure)
    assert result.reason is FailureReason.EMPTY
    assert len(notes) == 1


def test_invalid_json_is_malformed(make_catalog, notes):
    directory = make_catalog()
    (directory / "products.json").write_text("[{not json", encoding="utf-8")

    result = CatalogLoader(str(directory), notify=notes.append).load("products")
    assert result.reason is FailureReason.MALFORMED


def test_all_records_invalid_is_malformed(make_catalog, notes):
    directory = make_catalog(products=[{"id": "1", "name": "No price", "mainImageUrl": "x"}])
    loader = CatalogLoader(str(directory), notify=notes.append)

    result = loader.load("products")
    assert result.reason is FailureReason.MALFORMED
    assert "products.json" in notes[0]

    empty = loader.load_products()
    assert isinstance(empty, CatalogSnapshot)
    assert len(empty) == 0


def test_unknown_kind_is_a_programming_error(catalog_dir):
    with pytest.raises(ValueError):
        CatalogLoader(str(catalog_dir)).load("orders")


def test_duplicate_ids_first_seen_wins(make_catalog):
    directory = make_catalog(
        products=[
            {"id": "7", "name": "First", "price": 1, "mainImageUrl": "a"},
            {"id": 7, "name": "Second", "price": 2, "mainImageUrl": "b"},
        ]
    )
    snapshot = CatalogLoader(str(directory)).load_products()
    assert snapshot.get("7").name == "First"


@pytest.mark.parametrize(
    "record",
    [
        {"name": "x", "price": 1, "mainImageUrl": "a"},
        {"id": "1", "price": 1, "mainImageUrl": "a"},
        {"id": "1", "name": "x", "price": "1", "mainImageUrl": "a"},
        {"id": "1", "name": "x", "price": True, "mainImageUrl": "a"},
        {"id": "1", "name": "x", "price": 0, "mainImageUrl": "a"},
        {"id": "1", "name": "x", "price": 5},
        {"id": "", "name": "x", "price": 5, "mainImageUrl": "a"},
        "not a record",
    ],
)
def test_parse_product_rejects_invalid_records(record):
    assert parse_product(record) is None


def test_parse_product_accepts_float_id():
    product = parse_product({"id": 3.0, "name": "x", "price": 5, "mainImageUrl": "a"})
    assert isinstance(product, Product)
    assert product.id == "3"


def test_normalize_colors():
    assert normalize_colors("red , blue،green;; ") == ("red", "blue", "green")
    assert normalize_colors(["a", None, " ", "b"]) == ("a", "b")
    assert normalize_colors(None) == ()


def test_http_fetch_disables_caching(notes):
    session = FakeSession(FakeResponse(text='[{"id": 1, "name": "A", "price": 10, "mainImageUrl": "x"}]'))
    loader = CatalogLoader("https://shop.example/data/", notify=notes.append, timeout=5, session=session)

    snapshot = loader.load_products()

    assert [p.id for p in snapshot] == ["1"]
    url, kwargs = session.calls[0]
    assert url == "https://shop.example/data/products.json"
    assert kwargs["headers"] == NO_CACHE_HEADERS
    assert kwargs["timeout"] == 5


def test_http_bad_status(notes):
    session = FakeSession(FakeResponse(status_code=404, reason="Not Found"))
    result = CatalogLoader("https://shop.example", notify=notes.append, session=session).load("products")

    assert result.reason is FailureReason.BAD_STATUS
    assert "404" in result.detail
    assert len(notes) == 1


def test_http_transport_error(notes):
    session = FakeSession(error=requests.ConnectionError("boom"))
    result = CatalogLoader("https://shop.example", notify=notes.append, session=session).load("categories")

    assert result.reason is FailureReason.UNREACHABLE
    assert "categories.json" in notes[0]


def test_settings_fallback_when_missing(catalog_dir, notes):
    settings = CatalogLoader(str(catalog_dir), notify=notes.append).load_settings()
    assert settings == DEFAULT_SETTINGS
    assert notes == []


def test_settings_merged_over_defaults(make_catalog):
    directory = make_catalog(settings={"currency": "usd", "whatsappNumber": "+1 555 0100", "bannerInterval": "7000"})
    settings = CatalogLoader(str(directory)).load_settings()

    assert settings.currency == "USD"
    assert settings.whatsapp_number == "+1 555 0100"
    assert settings.banner_interval == 7000
    assert settings.telegram_bot == DEFAULT_SETTINGS.telegram_bot


def test_oversized_integer_price_is_dropped(make_catalog, notes):
    huge = int("1" + "0" * 400)
    directory = make_catalog(
        products=[
            {"id": "1", "name": "Huge", "price": huge, "mainImageUrl": "x"},
            {"id": "2", "name": "Fine", "price": 5, "mainImageUrl": "y"},
        ]
    )
    snapshot = CatalogLoader(str(directory), notify=notes.append).load("products")

    assert [p.id for p in snapshot] == ["2"]
    assert notes == []


def test_non_utf8_document_is_malformed(make_catalog, notes):
    directory = make_catalog()
    (directory / "products.json").write_bytes(
        b'[{"id": "1", "name": "\xff\xfe", "price": 5, "mainImageUrl": "x"}]'
    )
    loader = CatalogLoader(str(directory), notify=notes.append)

    result = loader.load("products")
    assert isinstance(result, LoadFailure)
    assert result.reason is FailureReason.MALFORMED
    assert "products.json" in notes[0]


def test_non_utf8_settings_fall_back_to_defaults(make_catalog):
    directory = make_catalog()
    (directory / "settings.json").write_bytes(b'{"currency": "\xff"}')
    assert CatalogLoader(str(directory)).load_settings() == DEFAULT_SETTINGS


def test_infinite_setting_keeps_default(make_catalog):
    directory = make_catalog()
    (directory / "settings.json").write_text('{"bannerInterval": Infinity, "currency": "usd"}', encoding="utf-8")
    settings = CatalogLoader(str(directory)).load_settings()

    assert settings.banner_interval == DEFAULT_SETTINGS.banner_interval
    assert settings.currency == "USD"


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, True),
        (True, True),
        (False, False),
        (0, False),
        (1, True),
        ("false", False),
        (" FALSE ", False),
        ("0", False),
        ("no", False),
        ("true", True),
        ("yes", True),
        ([], True),
    ],
)
def test_availability_parsing(value, expected):
    record = {"id": "1", "name": "x", "price": 5, "mainImageUrl": "a"}
    if value is not None:
        record["isAvailable"] = value
    assert parse_product(record).is_available is expected
