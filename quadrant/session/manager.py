"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client creates a session (optionally with its own deck list)
2. The session owns one GameEngine; SETUP_GAME runs immediately
3. During the game every action goes through session.submit()
4. Game ends -> session stays readable until ended or cleaned up

PERSISTENCE RULES:
- NO database for gameplay
- Sessions are in-memory only
- A session's engine processes one action at a time
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import threading
import uuid
import time

from ..card_schema.definitions import CardDatabase
from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import GameEngine
from ..engine_core.rng import RandomSource, SecureRandomSource, SeededRandomSource
from ..engine_core.state import GameStatus
from ..games.borg_starter import DEFAULT_DECK, create_borg_database


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game completed
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    An in-memory game session.

    Contains:
    - The GameEngine (which owns the GameState)
    - The deck list the game was set up with
    - Session metadata
    """
    session_id: str
    engine: GameEngine
    deck_card_ids: list[str]
    created_at: float
    state: SessionState = SessionState.ACTIVE
    last_action_at: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state == SessionState.ACTIVE

    def submit(self, action: Action) -> ActionResult:
        """Apply one action; concurrent callers are serialized."""
        with self._lock:
            result = self.engine.apply(action)
            self.last_action_at = time.time()
            if self.engine.state.status == GameStatus.GAME_OVER:
                self.state = SessionState.GAME_OVER
            elif self.state == SessionState.GAME_OVER:
                self.state = SessionState.ACTIVE
            return result


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with a fresh engine
    - Track active sessions
    - Clean up finished sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(
        self,
        database: CardDatabase | None = None,
        rng_seed: int | None = None,
    ):
        self._sessions: dict[str, Session] = {}
        self.database = database or create_borg_database()
        self.rng_seed = rng_seed

    def _make_rng(self, session_id: str) -> RandomSource:
        if self.rng_seed is None:
            return SecureRandomSource()
        return SeededRandomSource(self.rng_seed).fork(session_id)

    def create_session(
        self,
        deck_card_ids: list[str] | None = None,
        rng: RandomSource | None = None,
    ) -> tuple[Session, ActionResult]:
        """
        Create a new game session and set up its game.

        Args:
            deck_card_ids: Deck list (defaults to the built-in Borg deck)
            rng: Optional random source override

        Returns:
            (session, setup result). The session is only registered when
            setup succeeded.
        """
        session_id = str(uuid.uuid4())
        deck = list(deck_card_ids) if deck_card_ids else list(DEFAULT_DECK)
        engine = GameEngine(
            database=self.database,
            rng=rng or self._make_rng(session_id),
            game_id=session_id,
        )
        session = Session(
            session_id=session_id,
            engine=engine,
            deck_card_ids=deck,
            created_at=time.time(),
        )
        result = session.submit(Action.setup_game(deck))
        if result.success:
            self._sessions[session_id] = session
        return session, result

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and remove it from memory.

        Returns False if the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False
        if reason == "completed":
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Clean up finished sessions older than max_age.

        Called periodically to free memory. Returns the number removed.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
