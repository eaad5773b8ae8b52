from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from domain.debts import net_debts
from domain.errors import LedgerError, PlayerNameError, SessionNotFoundError
from domain.models import (
    DEFAULT_BET,
    SETTLEMENT_EPSILON,
    Player,
    PlayerProfile,
    RoundLedger,
    Session,
    Transaction,
    TransactionDetail,
    TransactionLogEntry,
)
from domain.repositories import PlayerProfileRepository, SessionRepository
from domain.round_ledger import initialize_round_ledger
from domain.settlement import commit_round

logger = logging.getLogger(__name__)

STORAGE_ERROR_MESSAGE = "Storage is unavailable, please try again."
PROMPTPAY_QR_URL = "https://promptpay.io/{prompt_pay_id}/{amount:.2f}.png"


@dataclass
class SessionResult:
    """Generic result type for operations that change a session."""

    success: bool
    error_message: Optional[str] = None
    session: Optional[Session] = None


@dataclass
class RecordRoundResult:
    """Result of committing a round: the new session and a fresh ledger."""

    success: bool
    error_message: Optional[str] = None
    session: Optional[Session] = None
    ledger: RoundLedger = field(default_factory=dict)
    log_entry: Optional[TransactionLogEntry] = None


@dataclass
class SettlementResult:
    success: bool
    error_message: Optional[str] = None
    transactions: List[Transaction] = field(default_factory=list)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_session(session_id: str, session_repo: SessionRepository) -> Session:
    session = session_repo.load_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


def _storage_failure(action: str, session_id: Optional[str]) -> str:
    logger.exception("Storage failure while trying to %s (session=%s)", action, session_id)
    return STORAGE_ERROR_MESSAGE


def start_new_session(
    session_repo: SessionRepository,
    now: Optional[datetime] = None,
) -> SessionResult:
    """
    Create an empty session.

    IDs are `YYYYMMDD-N`, N counting the sessions already started that day.
    """

    now = now or _now()
    prefix = now.strftime("%Y%m%d")
    try:
        sequence = session_repo.count_sessions_with_prefix(prefix) + 1
        session = Session(id=f"{prefix}-{sequence}", created_at=now.isoformat())
        session_repo.save_session(session)
    except sqlite3.Error:
        return SessionResult(success=False, error_message=_storage_failure("start a session", None))

    logger.info("Started session %s", session.id)
    return SessionResult(success=True, session=session)


def load_session(session_id: str, session_repo: SessionRepository) -> SessionResult:
    try:
        session = _require_session(session_id, session_repo)
    except SessionNotFoundError as exc:
        return SessionResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return SessionResult(success=False, error_message=_storage_failure("load", session_id))
    return SessionResult(success=True, session=session)


def list_recent_sessions(
    session_repo: SessionRepository,
    window_days: int = 30,
    max_sessions: int = 50,
) -> List[str]:
    return session_repo.list_recent_sessions(window_days, max_sessions)


def load_favorite_players(profile_repo: PlayerProfileRepository) -> List[PlayerProfile]:
    return profile_repo.load_favorite_players()


def add_player(
    session_id: str,
    name: str,
    session_repo: SessionRepository,
    profile_repo: PlayerProfileRepository,
) -> SessionResult:
    """
    Seat a new player.

    - Names are trimmed and must be unique within the session, ignoring case.
    - A PromptPay ID stored from an earlier session is picked up by name.
    - The first player seated becomes the dealer when there is none.
    """

    name = name.strip()
    try:
        if not name:
            raise PlayerNameError("Player name cannot be empty.")

        session = _require_session(session_id, session_repo)
        if session.find_player_by_name(name) is not None:
            raise PlayerNameError(f"{name} is already at the table.")

        profile = profile_repo.get_profile(name)
        player = Player(
            id=str(uuid.uuid4()),
            name=name,
            balance=0.0,
            last_bet=DEFAULT_BET,
            prompt_pay_id=profile.prompt_pay_id if profile is not None else "",
        )
        players = session.players + [player]
        dealer_id = session.dealer_id or players[0].id

        updated = replace(session, players=players, dealer_id=dealer_id)
        session_repo.save_session(updated)
    except LedgerError as exc:
        logger.warning("Rejected player %r for session %s: %s", name, session_id, exc)
        return SessionResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return SessionResult(success=False, error_message=_storage_failure("add a player", session_id))

    return SessionResult(success=True, session=updated)


def remove_player(
    session_id: str,
    player_id: str,
    session_repo: SessionRepository,
) -> SessionResult:
    """
    Remove a player. If the dealer leaves, the first remaining player
    takes over (or nobody, when the table is empty).

    A player with an open balance cannot leave: the remaining balances would
    no longer net to zero and the session could not be settled.
    """

    try:
        session = _require_session(session_id, session_repo)
        leaving = session.get_player(player_id)
        if leaving is not None and abs(leaving.balance) >= SETTLEMENT_EPSILON:
            logger.warning(
                "Refused to remove %s from session %s with balance %.2f",
                leaving.name,
                session_id,
                leaving.balance,
            )
            return SessionResult(
                success=False,
                error_message=(
                    f"{leaving.name} still has a balance of {leaving.balance:+.2f}; "
                    "settle up before leaving the table."
                ),
            )

        players = [p for p in session.players if p.id != player_id]
        dealer_id = session.dealer_id
        if dealer_id == player_id:
            dealer_id = players[0].id if players else None

        updated = replace(session, players=players, dealer_id=dealer_id)
        session_repo.save_session(updated)
    except LedgerError as exc:
        return SessionResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return SessionResult(success=False, error_message=_storage_failure("remove a player", session_id))

    return SessionResult(success=True, session=updated)


def set_dealer(
    session_id: str,
    player_id: str,
    session_repo: SessionRepository,
) -> SessionResult:
    try:
        session = _require_session(session_id, session_repo)
        if session.get_player(player_id) is None:
            return SessionResult(success=False, error_message="Dealer must be a seated player.")

        updated = replace(session, dealer_id=player_id)
        session_repo.save_session(updated)
    except LedgerError as exc:
        return SessionResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return SessionResult(success=False, error_message=_storage_failure("set the dealer", session_id))

    return SessionResult(success=True, session=updated)


def update_player_profile(
    session_id: str,
    player_id: str,
    prompt_pay_id: str,
    is_favorite: bool,
    session_repo: SessionRepository,
    profile_repo: PlayerProfileRepository,
) -> SessionResult:
    """
    Update a player's PromptPay ID in the session and remember it (plus the
    favorite flag) in the player's cross-session profile.
    """

    prompt_pay_id = prompt_pay_id.strip()
    try:
        session = _require_session(session_id, session_repo)
        player = session.get_player(player_id)
        if player is None:
            return SessionResult(success=False, error_message="Player not found.")

        players = [
            replace(p, prompt_pay_id=prompt_pay_id) if p.id == player_id else p
            for p in session.players
        ]
        updated = replace(session, players=players)
        session_repo.save_session(updated)
        # Not atomic with the session write: the profile only changes once
        # the session has been saved.
        profile_repo.upsert_player_profile(player.name, prompt_pay_id, is_favorite)
    except LedgerError as exc:
        return SessionResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return SessionResult(success=False, error_message=_storage_failure("update a player", session_id))

    return SessionResult(success=True, session=updated)


def record_round(
    session_id: str,
    ledger: RoundLedger,
    session_repo: SessionRepository,
    now: Optional[datetime] = None,
) -> RecordRoundResult:
    """
    Commit the round described by `ledger`.

    - Balances and last bets are updated by the settlement engine.
    - The round's audit entry is appended to the session's transaction log.
    - The complete new session is saved in a single write; on failure the
      stored session and the caller's ledger are left as they were.
    - A fresh ledger for the next round is returned.
    """

    timestamp = (now or _now()).isoformat()
    try:
        session = _require_session(session_id, session_repo)
        result = commit_round(session, ledger, timestamp=timestamp)
        updated = replace(
            session,
            players=result.players,
            transaction_log=session.transaction_log + [result.log_entry],
        )
        session_repo.save_session(updated)
    except LedgerError as exc:
        logger.warning("Round for session %s rejected: %s", session_id, exc)
        return RecordRoundResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return RecordRoundResult(
            success=False, error_message=_storage_failure("record a round", session_id)
        )

    logger.info(
        "Recorded round for session %s (%d players settled)",
        session_id,
        len(result.log_entry.details),
    )
    return RecordRoundResult(
        success=True,
        session=updated,
        ledger=initialize_round_ledger(updated.players, updated.dealer_id),
        log_entry=result.log_entry,
    )


def settle_session(session_id: str, session_repo: SessionRepository) -> SettlementResult:
    """Compute who pays whom to square up the session's balances."""

    try:
        session = _require_session(session_id, session_repo)
        transactions = net_debts(session.players)
    except LedgerError as exc:
        logger.warning("Settlement for session %s failed: %s", session_id, exc)
        return SettlementResult(success=False, error_message=str(exc))
    except sqlite3.Error:
        return SettlementResult(success=False, error_message=_storage_failure("settle", session_id))

    logger.info("Settlement for session %s: %d transactions", session_id, len(transactions))
    return SettlementResult(success=True, transactions=transactions)


def standings(players: List[Player]) -> List[Player]:
    """Players ordered by balance, biggest winner first."""

    return sorted(players, key=lambda p: p.balance, reverse=True)


def player_history(session: Session, player_id: str) -> List[Tuple[str, TransactionDetail]]:
    """Return `(timestamp, detail)` pairs involving the player, newest first."""

    history = []
    for entry in reversed(session.transaction_log):
        for detail in entry.details:
            if detail.player_id == player_id:
                history.append((entry.timestamp, detail))
    return history


def promptpay_qr_url(prompt_pay_id: str, amount: float) -> str:
    return PROMPTPAY_QR_URL.format(prompt_pay_id=prompt_pay_id, amount=amount)
