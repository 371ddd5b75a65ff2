"""Game content - card databases and deck lists shipped with the engine."""

from .borg_starter import create_borg_database, DEFAULT_DECK

__all__ = ["create_borg_database", "DEFAULT_DECK"]
