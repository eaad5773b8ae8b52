from __future__ import annotations

import sqlite3
from typing import List, Optional

from domain.models import PlayerProfile
from domain.repositories import PlayerProfileRepository


class SqlitePlayerProfileRepository(PlayerProfileRepository):
    """
    SQLite-backed implementation of `PlayerProfileRepository`.

    Owns the `player_profiles` table, which keeps a player's PromptPay ID
    and favorite flag across sessions.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS player_profiles (
                    name TEXT PRIMARY KEY,
                    prompt_pay_id TEXT NOT NULL DEFAULT '',
                    is_favorite INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_domain(row: sqlite3.Row) -> PlayerProfile:
        return PlayerProfile(
            name=row[0],
            prompt_pay_id=row[1] or "",
            is_favorite=bool(row[2]),
        )

    def get_profile(self, name: str) -> Optional[PlayerProfile]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT name, prompt_pay_id, is_favorite FROM player_profiles WHERE name = ?",
                (name,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return self._to_domain(row)

    def load_favorite_players(self) -> List[PlayerProfile]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT name, prompt_pay_id, is_favorite
                FROM player_profiles
                WHERE is_favorite = 1
                ORDER BY name
                """
            )
            rows = cur.fetchall()
            return [self._to_domain(row) for row in rows]

    def upsert_player_profile(
        self,
        name: str,
        prompt_pay_id: str,
        is_favorite: bool,
    ) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO player_profiles (name, prompt_pay_id, is_favorite)
                VALUES (?, ?, ?)
                ON CONFLICT (name)
                DO UPDATE SET
                    prompt_pay_id = excluded.prompt_pay_id,
                    is_favorite = excluded.is_favorite
                """,
                (name, prompt_pay_id, int(is_favorite)),
            )
            conn.commit()
