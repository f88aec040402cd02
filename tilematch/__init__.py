"""
TileMatch - Timed Tile-Matching Game Engine

A cooperative, event-driven engine for a memory game where the player
reveals face-down tiles two at a time and tries to find every pair
before the countdown runs out. The engine provides:
- Deck building from a cached item catalog
- The turn state machine and match evaluation
- A single countdown timer per game
- A one-shot "reveal all" power-up
- A REST/WebSocket API for renderers
"""

__version__ = "0.1.0"
