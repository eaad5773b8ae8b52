"""
Round settlement: turn the recorded hands into balance changes.

The dealer never holds hands of its own; it absorbs the negated sum of
every other player's round total, so each committed round is zero-sum.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .models import (
    BLACKJACK_PAYOUT,
    Hand,
    Player,
    RoundLedger,
    Session,
    TransactionDetail,
    TransactionLogEntry,
)


@dataclass
class RoundResult:
    """Players after the round plus the audit record describing it."""

    players: List[Player]
    log_entry: TransactionLogEntry


def hand_amount(hand: Hand) -> float:
    if hand.outcome == "win":
        return hand.bet
    if hand.outcome == "lose":
        return -hand.bet
    if hand.outcome == "blackjack":
        return hand.bet * BLACKJACK_PAYOUT
    return 0


def _format_amount(value: float) -> str:
    return f"{value:g}"


def _describe_hands(hands: List[Hand]) -> str:
    parts = [f"{hand.outcome} {_format_amount(hand.bet)}" for hand in hands]
    return "Round: " + ", ".join(parts)


def commit_round(
    session: Session,
    ledger: RoundLedger,
    timestamp: Optional[str] = None,
) -> RoundResult:
    """
    Settle one round against the session's players.

    The session is not modified; updated copies of its players are
    returned. Ledger entries for players that are no longer in the session
    are skipped.
    """

    players = [replace(player) for player in session.players]
    by_id: Dict[str, Player] = {player.id: player for player in players}
    dealer_id = session.dealer_id

    details: List[TransactionDetail] = []
    dealer_net = 0.0

    for player_id, player_round in ledger.items():
        if player_id == dealer_id:
            continue
        player = by_id.get(player_id)
        if player is None:
            continue

        total = sum(hand_amount(hand) for hand in player_round.hands)
        player.balance += total
        dealer_net -= total

        first = player_round.hands[0]
        player.last_bet = (
            first.original_bet if first.original_bet is not None else first.bet
        )

        details.append(
            TransactionDetail(
                player_id=player.id,
                amount=total,
                description=_describe_hands(player_round.hands),
            )
        )

    dealer = by_id.get(dealer_id) if dealer_id is not None else None
    if dealer is not None:
        dealer.balance += dealer_net
        details.append(
            TransactionDetail(
                player_id=dealer.id,
                amount=dealer_net,
                description="Dealer net",
            )
        )

    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat()

    return RoundResult(
        players=players,
        log_entry=TransactionLogEntry(timestamp=timestamp, details=details),
    )
