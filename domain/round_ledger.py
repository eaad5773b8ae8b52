"""
Working set of hands for the round currently being recorded.

Every function here is copy-on-write: the ledger passed in is left
untouched and a new ledger is returned. Callers keep the returned value
and are responsible for rendering/persisting it.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Iterable, Optional

from .errors import (
    DoubleOnBlackjackError,
    InvalidBetError,
    InvalidOutcomeError,
    UnknownHandError,
    UnknownPlayerError,
)
from .models import DEFAULT_BET, OUTCOMES, Hand, Player, PlayerRound, RoundLedger


def initialize_round_ledger(
    players: Iterable[Player],
    dealer_id: Optional[str] = None,
) -> RoundLedger:
    """
    Build a fresh ledger: one losing hand per non-dealer player, seeded
    with that player's last bet.
    """

    return {
        player.id: PlayerRound(hands=[Hand(bet=player.last_bet or DEFAULT_BET)])
        for player in players
        if player.id != dealer_id
    }


def needs_reinitialize(
    ledger: RoundLedger,
    players: Iterable[Player],
    dealer_id: Optional[str] = None,
) -> bool:
    """True when the seated (non-dealer) roster no longer matches the ledger."""

    seated = {player.id for player in players if player.id != dealer_id}
    return not ledger or seated != set(ledger)


def _get_hand(ledger: RoundLedger, player_id: str, hand_index: int) -> Hand:
    player_round = ledger.get(player_id)
    if player_round is None:
        raise UnknownPlayerError(player_id)
    if not 0 <= hand_index < len(player_round.hands):
        raise UnknownHandError(player_id, hand_index)
    return player_round.hands[hand_index]


def _with_hand(
    ledger: RoundLedger,
    player_id: str,
    hand_index: int,
    hand: Hand,
) -> RoundLedger:
    hands = list(ledger[player_id].hands)
    hands[hand_index] = hand
    updated = dict(ledger)
    updated[player_id] = PlayerRound(hands=hands)
    return updated


def set_bet(
    ledger: RoundLedger,
    player_id: str,
    hand_index: int,
    bet: float,
) -> RoundLedger:
    """Overwrite a hand's bet. A manual edit cancels any pending double."""

    hand = _get_hand(ledger, player_id, hand_index)
    if not (math.isfinite(bet) and bet > 0):
        raise InvalidBetError("Bet must be a number greater than zero.")
    return _with_hand(
        ledger, player_id, hand_index, replace(hand, bet=bet, original_bet=None)
    )


def set_outcome(
    ledger: RoundLedger,
    player_id: str,
    hand_index: int,
    outcome: str,
) -> RoundLedger:
    hand = _get_hand(ledger, player_id, hand_index)
    if outcome not in OUTCOMES:
        raise InvalidOutcomeError(
            f"Outcome must be one of: {', '.join(OUTCOMES)}."
        )
    if outcome == "blackjack" and hand.is_doubled:
        raise DoubleOnBlackjackError(
            "Undo the double before marking this hand as blackjack."
        )
    return _with_hand(ledger, player_id, hand_index, replace(hand, outcome=outcome))


def toggle_double(ledger: RoundLedger, player_id: str, hand_index: int) -> RoundLedger:
    """
    Apply a double, or undo it if the hand is already doubled.

    Undo restores the exact pre-double bet, so toggling twice returns the
    original hand.
    """

    hand = _get_hand(ledger, player_id, hand_index)
    if hand.is_doubled:
        doubled = replace(hand, bet=hand.original_bet, original_bet=None)
    else:
        if hand.outcome == "blackjack":
            raise DoubleOnBlackjackError("A blackjack hand cannot be doubled.")
        doubled = replace(hand, bet=hand.bet * 2, original_bet=hand.bet)
    return _with_hand(ledger, player_id, hand_index, doubled)


def split_hand(ledger: RoundLedger, player_id: str) -> RoundLedger:
    """
    Duplicate a player's single hand into two.

    Re-splitting is not allowed; if the player already holds two hands the
    ledger is returned unchanged.
    """

    player_round = ledger.get(player_id)
    if player_round is None:
        raise UnknownPlayerError(player_id)
    if len(player_round.hands) > 1:
        return ledger

    first = player_round.hands[0]
    updated = dict(ledger)
    updated[player_id] = PlayerRound(hands=[first, replace(first)])
    return updated
