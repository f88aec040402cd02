"""
Catalog Providers - Where items come from.

PokeApiCatalogProvider pulls the species list from PokeAPI once:

    GET https://pokeapi.co/api/v2/pokemon/?limit=1200
    {"results": [{"name": "bulbasaur", "url": ".../pokemon/1/"}, ...]}

The numeric id is taken from the entry URL; entries without a usable
id, or beyond the last id with official artwork, are dropped.

There is no retry or backoff: a failed fetch surfaces as
CatalogUnavailable and the next game start simply tries again.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any
import logging

import requests

from ..config import CATALOG_URL, CATALOG_LIMIT, REQUEST_TIMEOUT, IMAGE_URL_TEMPLATE, MAX_ITEM_ID
from ..engine_core.state import Item
from ..engine_core.errors import CatalogUnavailable

logger = logging.getLogger(__name__)


class CatalogProvider(ABC):
    """Supplies the full list of matchable items."""

    @abstractmethod
    def fetch_catalog(self) -> list[Item]:
        """
        Fetch every known item.

        Raises:
            CatalogUnavailable: on network or parse failure
        """
        ...


class StaticCatalogProvider(CatalogProvider):
    """Serves a fixed item list (offline play, tests)."""

    def __init__(self, items: list[Item]):
        self.items = list(items)
        self.fetch_count = 0

    def fetch_catalog(self) -> list[Item]:
        self.fetch_count += 1
        return list(self.items)


class PokeApiCatalogProvider(CatalogProvider):
    """
    Catalog backed by the PokeAPI species list.

    Args:
        base_url: list endpoint, queried with ?limit=
        limit: number of entries to request
        timeout: HTTP timeout in seconds
        session: optional requests.Session (connection reuse, testing)
    """

    def __init__(
        self,
        base_url: str = CATALOG_URL,
        limit: int = CATALOG_LIMIT,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url
        self.limit = limit
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_catalog(self) -> list[Item]:
        try:
            response = self.session.get(
                self.base_url, params={"limit": self.limit}, timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Catalog request failed: {e}")
            raise CatalogUnavailable(f"Catalog request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Catalog response is not JSON: {e}")
            raise CatalogUnavailable("Invalid catalog response") from e

        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise CatalogUnavailable("Invalid catalog response: missing results")

        items = parse_results(data["results"])
        logger.info(f"Fetched {len(items)} catalog items from {self.base_url}")
        return items


def parse_results(results: list[Any]) -> list[Item]:
    """Convert PokeAPI list entries to Items, dropping unusable ones."""
    items = []
    for entry in results:
        if not isinstance(entry, dict) or not entry.get("url"):
            continue
        item_id = _id_from_url(entry["url"])
        if item_id is None or not 0 < item_id <= MAX_ITEM_ID:
            continue
        items.append(Item(
            item_id=item_id,
            display_ref=IMAGE_URL_TEMPLATE.format(id=item_id),
            name=str(entry.get("name") or ""),
        ))
    return items


def _id_from_url(url: str) -> int | None:
    """'https://pokeapi.co/api/v2/pokemon/25/' -> 25"""
    parts = [p for p in str(url).split("/") if p]
    if not parts:
        return None
    try:
        return int(parts[-1])
    except ValueError:
        return None
