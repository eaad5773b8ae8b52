import copy
import sqlite3

from domain.models import PlayerProfile
from domain.repositories import PlayerProfileRepository, SessionRepository


class InMemorySessionRepository(SessionRepository):
    def __init__(self):
        self.sessions = {}
        self.listeners = {}
        self.saves = 0
        self.fail_saves = False

    def load_session(self, session_id: str):
        session = self.sessions.get(session_id)
        return copy.deepcopy(session)

    def save_session(self, session) -> None:
        if self.fail_saves:
            raise sqlite3.OperationalError("database is locked")
        self.saves += 1
        self.sessions[session.id] = copy.deepcopy(session)
        for listener in list(self.listeners.get(session.id, [])):
            listener(copy.deepcopy(session))

    def list_recent_sessions(self, window_days: int = 30, max_sessions: int = 50):
        ordered = sorted(
            self.sessions.values(), key=lambda s: s.created_at, reverse=True
        )
        return [s.id for s in ordered][:max_sessions]

    def count_sessions_with_prefix(self, prefix: str) -> int:
        return sum(1 for session_id in self.sessions if session_id.startswith(prefix))

    def subscribe(self, session_id: str, listener):
        self.listeners.setdefault(session_id, []).append(listener)

        def unsubscribe():
            self.listeners[session_id].remove(listener)

        return unsubscribe


class InMemoryPlayerProfileRepository(PlayerProfileRepository):
    def __init__(self):
        self.profiles = {}

    def get_profile(self, name: str):
        return self.profiles.get(name)

    def load_favorite_players(self):
        return [p for p in self.profiles.values() if p.is_favorite]

    def upsert_player_profile(self, name: str, prompt_pay_id: str, is_favorite: bool) -> None:
        self.profiles[name] = PlayerProfile(
            name=name, prompt_pay_id=prompt_pay_id, is_favorite=is_favorite
        )
