"""
Session Module - Game orchestration and player sessions.

A GameController runs one player's games; the SessionManager keeps
one controller per connected client.

Sessions are EPHEMERAL:
- No persistence to database
- Destroyed when the client leaves
"""

from .controller import GameController
from .manager import SessionManager, ManagedSession

__all__ = [
    "GameController",
    "SessionManager",
    "ManagedSession",
]
