"""Built-in Borg starter deck and its card database."""

from .cards import create_borg_database, ALL_CARDS
from .deck import DEFAULT_DECK, DECK_STATS

__all__ = [
    "create_borg_database",
    "ALL_CARDS",
    "DEFAULT_DECK",
    "DECK_STATS",
]
