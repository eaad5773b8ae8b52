from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by the ledger domain."""


class UnknownPlayerError(LedgerError):
    def __init__(self, player_id: str) -> None:
        super().__init__(f"Player {player_id} is not part of this round.")
        self.player_id = player_id


class UnknownHandError(LedgerError):
    def __init__(self, player_id: str, hand_index: int) -> None:
        super().__init__(f"Player {player_id} has no hand #{hand_index + 1}.")
        self.player_id = player_id
        self.hand_index = hand_index


class InvalidBetError(LedgerError):
    pass


class InvalidOutcomeError(LedgerError):
    pass


class DoubleOnBlackjackError(LedgerError):
    """A blackjack always pays 3:2 on the base bet; it cannot be doubled."""


class UnbalancedLedgerError(LedgerError):
    """Balances do not sum to zero, so debts cannot be netted."""


class SessionNotFoundError(LedgerError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found.")
        self.session_id = session_id


class PlayerNameError(LedgerError):
    pass
