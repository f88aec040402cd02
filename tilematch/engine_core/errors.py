"""
Engine errors.

Only genuine failures are exceptions. Ignored interactions (clicking a
locked board, a matched tile, a second power-up) are normal play and
are reported as a False return value, never raised.
"""


class TileMatchError(Exception):
    """Base class for engine errors."""

    error_code = "INTERNAL_ERROR"


class CatalogUnavailable(TileMatchError):
    """The item catalog could not be fetched, parsed, or was empty."""

    error_code = "CATALOG_UNAVAILABLE"


class EmptyDeck(TileMatchError):
    """A deck resolved to zero pairs."""

    error_code = "EMPTY_DECK"
