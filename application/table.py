from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from application.services import RecordRoundResult, record_round
from domain import round_ledger
from domain.errors import LedgerError
from domain.models import RoundLedger, Session
from domain.repositories import SessionRepository

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """Generic result type for simple operations."""

    success: bool
    error_message: Optional[str] = None


@dataclass
class TableState:
    """
    The round being recorded at one table (one chat/channel).

    The ledger only lives here until the round is committed; every edit
    replaces it with the ledger returned by `domain.round_ledger`.

    Chat handlers may run on a thread pool, so ledger swaps happen under
    `ledger_lock` and `commit_lock` allows a single commit in flight.
    """

    session_id: str
    ledger: RoundLedger = field(default_factory=dict)
    rounds_seen: int = 0
    ledger_lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )
    commit_lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    @property
    def committing(self) -> bool:
        return self.commit_lock.locked()

    def sync(self, session: Session) -> None:
        """
        Rebuild the ledger when the seated roster has changed or a round was
        committed elsewhere (another chat recording the same session).
        """

        with self.ledger_lock:
            rounds = len(session.transaction_log)
            if rounds != self.rounds_seen or round_ledger.needs_reinitialize(
                self.ledger, session.players, session.dealer_id
            ):
                self.ledger = round_ledger.initialize_round_ledger(
                    session.players, session.dealer_id
                )
            self.rounds_seen = rounds

    def _apply(self, edit: Callable[[RoundLedger], RoundLedger]) -> OperationResult:
        with self.ledger_lock:
            try:
                self.ledger = edit(self.ledger)
            except LedgerError as exc:
                return OperationResult(success=False, error_message=str(exc))
        return OperationResult(success=True)

    def set_bet(self, player_id: str, hand_index: int, bet: float) -> OperationResult:
        return self._apply(
            lambda ledger: round_ledger.set_bet(ledger, player_id, hand_index, bet)
        )

    def set_outcome(self, player_id: str, hand_index: int, outcome: str) -> OperationResult:
        return self._apply(
            lambda ledger: round_ledger.set_outcome(ledger, player_id, hand_index, outcome)
        )

    def toggle_double(self, player_id: str, hand_index: int) -> OperationResult:
        return self._apply(
            lambda ledger: round_ledger.toggle_double(ledger, player_id, hand_index)
        )

    def split(self, player_id: str) -> OperationResult:
        return self._apply(lambda ledger: round_ledger.split_hand(ledger, player_id))

    def record(self, session_repo: SessionRepository) -> RecordRoundResult:
        """
        Commit the current round. Only one commit may be in flight per table.
        """

        if not self.commit_lock.acquire(blocking=False):
            return RecordRoundResult(
                success=False, error_message="A round is already being recorded."
            )

        try:
            with self.ledger_lock:
                snapshot = self.ledger
            # The ledger lock is not held while saving: listeners of other
            # tables on the same session take their own locks.
            result = record_round(self.session_id, snapshot, session_repo)
            if result.success:
                with self.ledger_lock:
                    self.ledger = result.ledger
                    self.rounds_seen = len(result.session.transaction_log)
        finally:
            self.commit_lock.release()
        return result


class TableRegistry:
    """Maps a chat/channel ID to the table it is currently running."""

    def __init__(self) -> None:
        self._tables: Dict[str, TableState] = {}

    def open(self, chat_id: str, session: Session) -> TableState:
        table = TableState(session_id=session.id)
        table.sync(session)
        self._tables[chat_id] = table
        logger.info("Chat %s is now recording session %s", chat_id, session.id)
        return table

    def get(self, chat_id: str) -> Optional[TableState]:
        return self._tables.get(chat_id)

    def close(self, chat_id: str) -> None:
        self._tables.pop(chat_id, None)
