from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from domain.models import (
    DEFAULT_BET,
    Player,
    Session,
    TransactionDetail,
    TransactionLogEntry,
)
from domain.repositories import SessionListener, SessionRepository

logger = logging.getLogger(__name__)


class SqliteSessionRepository(SessionRepository):
    """
    SQLite-backed implementation of `SessionRepository`.

    Each session is stored as one JSON document in the `sessions` table;
    `created_at` is duplicated into its own column so recent sessions can
    be listed without decoding every document. The table is created if
    needed.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._listeners: Dict[str, List[SessionListener]] = {}
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    document TEXT NOT NULL
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_document(session: Session) -> dict:
        return {
            "id": session.id,
            "createdAt": session.created_at,
            "dealerId": session.dealer_id,
            "chipValue": session.chip_value,
            "players": [
                {
                    "id": p.id,
                    "name": p.name,
                    "balance": p.balance,
                    "lastBet": p.last_bet,
                    "promptPayId": p.prompt_pay_id,
                }
                for p in session.players
            ],
            "transactionLog": [
                {
                    "timestamp": entry.timestamp,
                    "details": [
                        {
                            "playerId": d.player_id,
                            "amount": d.amount,
                            "description": d.description,
                        }
                        for d in entry.details
                    ],
                }
                for entry in session.transaction_log
            ],
        }

    @staticmethod
    def _to_domain(document: dict) -> Session:
        return Session(
            id=document["id"],
            created_at=document["createdAt"],
            dealer_id=document.get("dealerId"),
            chip_value=document.get("chipValue", 1),
            players=[
                Player(
                    id=p["id"],
                    name=p["name"],
                    balance=float(p.get("balance", 0)),
                    last_bet=p.get("lastBet") or DEFAULT_BET,
                    prompt_pay_id=p.get("promptPayId") or "",
                )
                for p in document.get("players", [])
            ],
            transaction_log=[
                TransactionLogEntry(
                    timestamp=entry["timestamp"],
                    details=[
                        TransactionDetail(
                            player_id=d["playerId"],
                            amount=d["amount"],
                            description=d.get("description", ""),
                        )
                        for d in entry.get("details", [])
                    ],
                )
                for entry in document.get("transactionLog", [])
            ],
        )

    def _load_document(self, conn: sqlite3.Connection, session_id: str) -> Optional[dict]:
        cur = conn.cursor()
        cur.execute("SELECT document FROM sessions WHERE id = ?", (session_id,))
        row = cur.fetchone()
        if not row:
            return None
        return json.loads(row[0])

    def load_session(self, session_id: str) -> Optional[Session]:
        with self._get_connection() as conn:
            document = self._load_document(conn, session_id)
        if document is None:
            return None
        return self._to_domain(document)

    def save_session(self, session: Session) -> None:
        with self._get_connection() as conn:
            document = self._load_document(conn, session.id) or {}
            document.update(self._to_document(session))
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO sessions (id, created_at, document)
                VALUES (?, ?, ?)
                ON CONFLICT (id)
                DO UPDATE SET document = excluded.document
                """,
                (session.id, session.created_at, json.dumps(document)),
            )
            conn.commit()

        self._notify(self._to_domain(document))

    def list_recent_sessions(
        self,
        window_days: int = 30,
        max_sessions: int = 50,
    ) -> List[str]:
        cutoff = (datetime.now(timezone.utc) - timedelta(days=window_days)).isoformat()
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id
                FROM sessions
                WHERE created_at >= ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (cutoff, max_sessions),
            )
            rows = cur.fetchall()
            return [str(row[0]) for row in rows]

    def count_sessions_with_prefix(self, prefix: str) -> int:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT COUNT(*) FROM sessions WHERE id >= ? AND id < ?",
                (prefix, prefix + "z"),
            )
            return int(cur.fetchone()[0])

    def subscribe(
        self,
        session_id: str,
        listener: SessionListener,
    ) -> Callable[[], None]:
        self._listeners.setdefault(session_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(session_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _notify(self, session: Session) -> None:
        for listener in list(self._listeners.get(session.id, [])):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener failed for %s", session.id)
