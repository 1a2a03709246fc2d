"""Shared pytest fixtures."""

import json
from pathlib import Path

import pytest

from core.selection import CartStore, FavoritesStore
from core.storage import LedgerStorage

PRODUCTS = [
    {
        "id": 1,
        "name": "Rose Necklace",
        "price": 250,
        "mainImageUrl": "https://img.example/rose.jpg",
        "image2Url": "https://img.example/rose-2.jpg",
        "categoryId": 10,
        "description": "Silver necklace",
        "colors": "silver, gold",
    },
    {
        "id": "2",
        "name": "Pearl Earrings",
        "price": 120.5,
        "mainImageUrl": "https://img.example/pearl.jpg",
        "categoryId": "20",
        "colors": ["white ", "cream"],
        "isAvailable": False,
    },
    {"id": "3", "name": "Broken", "price": "99", "mainImageUrl": "x"},
    {
        "id": "4",
        "name": "Rose Ring",
        "price": 80,
        "mainImageUrl": "https://img.example/ring.jpg",
        "categoryId": "10",
    },
]

CATEGORIES = [
    {"id": 10, "name": "Necklaces", "imageUrl": "https://img.example/n.jpg"},
    {"id": 20, "name": "Earrings", "imageUrl": "https://img.example/e.jpg"},
]


def write_catalog(directory: Path, products=None, categories=None, settings=None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    if products is not None:
        (directory / "products.json").write_text(json.dumps(products), encoding="utf-8")
    if categories is not None:
        (directory / "categories.json").write_text(json.dumps(categories), encoding="utf-8")
    if settings is not None:
        (directory / "settings.json").write_text(json.dumps(settings), encoding="utf-8")
    return directory


@pytest.fixture
def notes():
    """Collects every notification text."""
    return []


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    return write_catalog(tmp_path / "catalog", PRODUCTS, CATEGORIES)


@pytest.fixture
def storage(tmp_path: Path) -> LedgerStorage:
    return LedgerStorage(str(tmp_path / "db" / "ledgers.sqlite3"))


@pytest.fixture
def cart(storage, notes) -> CartStore:
    return CartStore(storage, notify=notes.append)


@pytest.fixture
def favorites(storage, notes) -> FavoritesStore:
    return FavoritesStore(storage, notify=notes.append)


@pytest.fixture
def make_catalog(tmp_path: Path):
    def _make(name: str = "catalog", **documents) -> Path:
        return write_catalog(tmp_path / name, **documents)

    return _make
