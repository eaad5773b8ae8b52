from __future__ import annotations

from typing import Callable, List, Optional, Protocol

from .models import PlayerProfile, Session

SessionListener = Callable[[Session], None]


class SessionRepository(Protocol):
    """
    Abstraction over session persistence.

    Implementations are responsible for:
    - Serialising the `Session` aggregate as an opaque document keyed by id.
    - Hiding any SQL / driver details from the application layer.
    """

    def load_session(self, session_id: str) -> Optional[Session]:
        """Return the session with the given ID, or None if not found."""

        ...

    def save_session(self, session: Session) -> None:
        """
        Persist a session.

        Merge semantics: fields present in `session` overwrite the stored
        ones, anything else already stored is kept.
        """

        ...

    def list_recent_sessions(
        self,
        window_days: int = 30,
        max_sessions: int = 50,
    ) -> List[str]:
        """Return IDs of sessions created in the last `window_days`, newest first."""

        ...

    def count_sessions_with_prefix(self, prefix: str) -> int:
        """Return how many stored session IDs start with `prefix`."""

        ...

    def subscribe(
        self,
        session_id: str,
        listener: SessionListener,
    ) -> Callable[[], None]:
        """
        Register `listener` to receive every saved snapshot of a session.

        Returns a function that removes the subscription.
        """

        ...


class PlayerProfileRepository(Protocol):
    """
    Cross-session player records (PromptPay ID and favorite flag), keyed
    by player name.
    """

    def get_profile(self, name: str) -> Optional[PlayerProfile]:
        ...

    def load_favorite_players(self) -> List[PlayerProfile]:
        ...

    def upsert_player_profile(
        self,
        name: str,
        prompt_pay_id: str,
        is_favorite: bool,
    ) -> None:
        ...
