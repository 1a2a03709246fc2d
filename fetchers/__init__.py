# fetchers/__init__.py
from .catalog import CatalogLoader, parse_category, parse_product

__all__ = ["CatalogLoader", "parse_category", "parse_product"]
