"""
Configuration - Difficulty presets, timings and environment settings.

Environment variables:
    TILEMATCH_ENV               development | production
    TILEMATCH_CATALOG_URL       Base URL of the item catalog API
    TILEMATCH_CATALOG_LIMIT     Number of catalog entries to request
    TILEMATCH_REQUEST_TIMEOUT   Catalog HTTP timeout (seconds)
    TILEMATCH_ASSET_TIMEOUT     Max wait for a client image load (seconds)
    TILEMATCH_LOG_LEVEL         Root logging level for the CLI
    ALLOWED_ORIGINS             Comma separated CORS origins
"""

from __future__ import annotations
from dataclasses import dataclass
import os

TILEMATCH_ENV = os.getenv("TILEMATCH_ENV", "development")
TILEMATCH_LOG_LEVEL = os.getenv("TILEMATCH_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

# Catalog source (PokeAPI)
CATALOG_URL = os.getenv("TILEMATCH_CATALOG_URL", "https://pokeapi.co/api/v2/pokemon/")
CATALOG_LIMIT = int(os.getenv("TILEMATCH_CATALOG_LIMIT", "1200"))
REQUEST_TIMEOUT = float(os.getenv("TILEMATCH_REQUEST_TIMEOUT", "10"))
IMAGE_URL_TEMPLATE = (
    "https://raw.githubusercontent.com/PokeAPI/sprites/master/"
    "sprites/pokemon/other/official-artwork/{id}.png"
)
# Highest id with official artwork available
MAX_ITEM_ID = 1025

TILE_BACK_IMAGE = "back.webp"


@dataclass(frozen=True)
class Difficulty:
    """A difficulty preset: how many pairs and how long to find them."""
    name: str
    pairs: int
    seconds: int


DIFFICULTIES: dict[str, Difficulty] = {
    "easy": Difficulty(name="easy", pairs=3, seconds=60),
    "medium": Difficulty(name="medium", pairs=6, seconds=120),
    "hard": Difficulty(name="hard", pairs=10, seconds=180),
}

DEFAULT_DIFFICULTY = "easy"


def get_difficulty(name: str | Difficulty) -> Difficulty:
    """
    Resolve a difficulty preset by name.

    Raises:
        ValueError: if the name is not one of the presets
    """
    if isinstance(name, Difficulty):
        return name
    preset = DIFFICULTIES.get(str(name).lower())
    if preset is None:
        raise ValueError(
            f"Unknown difficulty: {name!r} (expected one of {', '.join(DIFFICULTIES)})"
        )
    return preset


@dataclass(frozen=True)
class Timings:
    """
    Fixed delays used by the engine, in seconds.

    mismatch_show: how long a mismatched pair stays face up
    settle: pause after an outcome before the turn clears
    reveal: how long the power-up keeps the board revealed
    tick: timer resolution
    asset_timeout: longest wait for a client-side image load
    """
    mismatch_show: float = 1.0
    settle: float = 0.2
    reveal: float = 2.0
    tick: float = 1.0
    asset_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> Timings:
        return cls(asset_timeout=float(os.getenv("TILEMATCH_ASSET_TIMEOUT", "5")))


def format_time(seconds: int) -> str:
    """Format seconds as M:SS (minutes unpadded)."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes}:{secs:02d}"


def grid_columns(pair_count: int) -> int:
    """Number of grid columns the renderer should use for a board."""
    if pair_count == 6:
        return 4
    if 8 <= pair_count <= 10:
        return 5
    return 3
