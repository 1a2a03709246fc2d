# core/settings.py
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Tuple

from .logger import get_logger

logger = get_logger(__name__)

CATALOG_SOURCE = os.getenv("CATALOG_SOURCE", "./catalog").strip()
CATALOG_TIMEOUT = float(os.getenv("CATALOG_TIMEOUT", "15"))
DB_PATH = os.getenv("DB_PATH", "data/storefront.sqlite3")

CART_KEY = "cartItems"
FAVORITES_KEY = "favoritesItems"

DEFAULT_CURRENCY = "EGP"
DEFAULT_WHATSAPP_NUMBER = "201050043254"
DEFAULT_TELEGRAM_BOT = "roaa_bot"

# settings.json key -> Settings attribute
_SETTINGS_KEYS = {
    "currency": "currency",
    "whatsappNumber": "whatsapp_number",
    "telegramBot": "telegram_bot",
    "telegramGroupUrl": "telegram_group_url",
    "instagramUrl": "instagram_url",
    "facebookUrl": "facebook_url",
    "logoUrl": "logo_url",
    "primaryColor": "primary_color",
    "secondaryColor": "secondary_color",
    "accentColor": "accent_color",
    "bannerImages": "banner_images",
    "bannerAnimations": "banner_animations",
    "bannerInterval": "banner_interval",
}


@dataclass(frozen=True)
class Settings:
    """
    Shop configuration from settings.json.
    Only currency and the messaging contacts are used by the core; the rest
    is carried through for whatever renders the shop.
    """
    currency: str = DEFAULT_CURRENCY
    whatsapp_number: str = DEFAULT_WHATSAPP_NUMBER
    telegram_bot: str = DEFAULT_TELEGRAM_BOT
    telegram_group_url: str = "#"
    instagram_url: str = "#"
    facebook_url: str = "#"
    logo_url: str = "https://via.placeholder.com/50"
    primary_color: str = "#FF6B9B"
    secondary_color: str = "#FFD1DC"
    accent_color: str = "#FFD700"
    banner_images: Tuple[str, ...] = ("https://via.placeholder.com/1200x600",)
    banner_animations: Tuple[str, ...] = ("animate__fadeIn",)
    banner_interval: int = 5000
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)


DEFAULT_SETTINGS = Settings()


def settings_from_document(doc: Any) -> Settings:
    """
    Merge a parsed settings.json mapping over DEFAULT_SETTINGS.
    Blank or wrongly-typed values keep their default.
    """
    if not isinstance(doc, dict):
        logger.warning("Settings document is not an object; using defaults.")
        return DEFAULT_SETTINGS

    defaults = {f.name: getattr(DEFAULT_SETTINGS, f.name) for f in fields(Settings)}
    values: Dict[str, Any] = dict(defaults)
    extra: Dict[str, Any] = {}

    for key, raw in doc.items():
        attr = _SETTINGS_KEYS.get(key)
        if attr is None:
            extra[key] = raw
            continue
        default = defaults[attr]
        if isinstance(default, tuple):
            if isinstance(raw, list) and raw:
                values[attr] = tuple(str(v) for v in raw)
        elif isinstance(default, int):
            try:
                values[attr] = int(raw)
            except (TypeError, ValueError, OverflowError):
                logger.debug("Ignoring non-integer setting %s=%r", key, raw)
        elif raw is not None and str(raw).strip():
            values[attr] = str(raw).strip()

    values["currency"] = values["currency"].upper()
    values["extra"] = extra
    return Settings(**values)
