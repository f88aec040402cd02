"""
Catalog - The external item source and its cache.

The catalog is the only network dependency of the engine:
1. A provider fetches the full item list (PokeAPI by default)
2. The process-wide cache keeps it for every later game
3. Asset loaders decide how tile images get loaded
"""

from .provider import CatalogProvider, PokeApiCatalogProvider, StaticCatalogProvider, parse_results
from .cache import CatalogCache, CatalogEntry, get_default_cache
from .assets import PreloadedAssetLoader, ClientAssetLoader

__all__ = [
    "CatalogProvider",
    "PokeApiCatalogProvider",
    "StaticCatalogProvider",
    "parse_results",
    "CatalogCache",
    "CatalogEntry",
    "get_default_cache",
    "PreloadedAssetLoader",
    "ClientAssetLoader",
]
