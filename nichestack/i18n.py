"""
Label catalogs for the dashboard.

Catalogs live in nichestack/locales/<locale>.yaml as nested mappings.
Lookups use dotted keys ('time.daysAgo') and '{name}' placeholders.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"
SUPPORTED_LOCALES = ('en', 'zh')
DEFAULT_LOCALE = 'en'

Lookup = Callable[..., str]


@lru_cache(maxsize=None)
def load_catalog(locale: str) -> dict:
    """Load a locale catalog from disk."""
    path = LOCALES_DIR / f"{locale}.yaml"
    with open(path, encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def resolve_key(catalog: dict, key: str) -> str:
    """Walk a dotted key through nested mappings; unknown keys resolve to themselves."""
    node = catalog
    for part in key.split('.'):
        if isinstance(node, dict) and part in node:
            node = node[part]
        else:
            return key
    return node if isinstance(node, str) else key


def translate(catalog: dict, key: str, params: Optional[Dict[str, object]] = None) -> str:
    text = resolve_key(catalog, key)
    if params:
        for name, value in params.items():
            text = text.replace('{' + name + '}', str(value))
    return text


def get_translator(locale: str = DEFAULT_LOCALE) -> Lookup:
    """
    Build a lookup(key, params=None) function for a locale.

    Unsupported locales fall back to the default catalog.
    """
    if locale not in SUPPORTED_LOCALES:
        logger.warning("Unsupported locale %r, falling back to %s", locale, DEFAULT_LOCALE)
        locale = DEFAULT_LOCALE

    catalog = load_catalog(locale)

    def lookup(key: str, params: Optional[Dict[str, object]] = None) -> str:
        return translate(catalog, key, params)

    return lookup
