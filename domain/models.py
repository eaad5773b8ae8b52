from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_BET = 20
BLACKJACK_PAYOUT = 1.5
SETTLEMENT_EPSILON = 0.01

OUTCOMES = ("win", "lose", "push", "blackjack")


@dataclass
class Hand:
    """
    One wagered outcome slot for a player within a round.

    `original_bet` is only set while the hand is doubled and holds the
    pre-double bet so the double can be undone.
    """

    bet: float
    outcome: str = "lose"
    original_bet: Optional[float] = None

    @property
    def is_doubled(self) -> bool:
        return self.original_bet is not None


@dataclass
class PlayerRound:
    """The hands a single player holds for the round being recorded."""

    hands: List[Hand] = field(default_factory=list)


# Player id -> that player's hands for the current round.
RoundLedger = Dict[str, PlayerRound]


@dataclass
class Player:
    """
    A seated player in a session.

    `name` is unique (case-insensitive) within a session and doubles as
    the key of the cross-session `PlayerProfile`.
    """

    id: str
    name: str
    balance: float = 0.0
    last_bet: float = DEFAULT_BET
    prompt_pay_id: str = ""


@dataclass
class TransactionDetail:
    player_id: str
    amount: float
    description: str


@dataclass
class TransactionLogEntry:
    """Audit record of one committed round."""

    timestamp: str
    details: List[TransactionDetail] = field(default_factory=list)


@dataclass
class Session:
    """
    A live blackjack night.

    Owned by the storage collaborator; balances only ever change through
    the settlement engine.
    """

    id: str
    created_at: str
    players: List[Player] = field(default_factory=list)
    dealer_id: Optional[str] = None
    chip_value: float = 1
    transaction_log: List[TransactionLogEntry] = field(default_factory=list)

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_player_by_name(self, name: str) -> Optional[Player]:
        wanted = name.strip().lower()
        for player in self.players:
            if player.name.lower() == wanted:
                return player
        return None


@dataclass
class Transaction:
    """One payment of the end-of-session settlement plan."""

    from_name: str
    to_name: str
    amount: float
    to_prompt_pay: str = ""


@dataclass
class PlayerProfile:
    """Cross-session record of a player, keyed by name."""

    name: str
    prompt_pay_id: str = ""
    is_favorite: bool = False
