"""
Quadrant - Mission and Dilemma Rules Engine

A deterministic rules engine for a two-phase-per-turn trading card game.
Players deploy personnel and ships onto missions, move ships under a range
budget and attempt missions against a gauntlet of dilemma cards.

The engine is the sole owner of game state and provides:
- Action validation and application
- Dilemma encounter resolution
- Turn phase control
- A JSON action/event protocol for clients
"""

__version__ = "0.1.0"
