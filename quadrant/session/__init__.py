"""
Session Module - Manages in-memory game sessions.

A session represents one play-through of a game:
- Created when a client starts a game
- Owns one GameEngine and therefore one GameState
- Serializes actions so the engine sees one at a time

Sessions are EPHEMERAL:
- No persistence to database
- Removed when ended or cleaned up
"""

from .manager import SessionManager, Session, SessionState

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
]
