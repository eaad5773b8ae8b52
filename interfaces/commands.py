from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from application import services
from application.table import TableRegistry, TableState
from domain.models import OUTCOMES, Player, Session
from domain.repositories import PlayerProfileRepository, SessionRepository
from interfaces.formatting import (
    format_history,
    format_round,
    format_settlement,
    format_standings,
)

HELP_TEXT = (
    "{p}new                          - start a new session\n"
    "{p}load <id>                    - continue a recent session\n"
    "{p}sessions                     - list recent sessions\n"
    "{p}add <name>                   - seat a player\n"
    "{p}remove <name>                - remove a player\n"
    "{p}dealer <name>                - choose the dealer\n"
    "{p}round                        - show the round being recorded\n"
    "{p}bet <name> <amount> [hand]   - change a bet\n"
    "{p}outcome <name> <{outcomes}> [hand]\n"
    "{p}double <name> [hand]         - double (or undo a double)\n"
    "{p}split <name>                 - split a player's hand\n"
    "{p}record                       - commit the round\n"
    "{p}standings                    - show balances\n"
    "{p}history <name>               - show a player's rounds\n"
    "{p}promptpay <name> <id> [fav]  - set a PromptPay ID\n"
    "{p}favorites                    - list favorite players\n"
    "{p}settle                       - who pays whom\n"
)


COMMAND_NAMES = (
    "help",
    "new",
    "load",
    "sessions",
    "add",
    "remove",
    "dealer",
    "round",
    "bet",
    "outcome",
    "double",
    "split",
    "record",
    "standings",
    "history",
    "promptpay",
    "favorites",
    "settle",
)


class UsageError(Exception):
    """Raised when a command is called with missing or malformed arguments."""


def _parse_hand_index(args: List[str], position: int) -> int:
    if len(args) <= position:
        return 0
    try:
        index = int(args[position])
    except ValueError:
        raise UsageError("Hand number must be 1 or 2.")
    if index < 1:
        raise UsageError("Hand number must be 1 or 2.")
    return index - 1


def _parse_amount(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise UsageError("Amount must be a number.")


class TableCommands:
    """
    Channel-agnostic implementation of the table commands.

    Discord and Telegram handlers only parse their own message types, call
    `dispatch` with the chat ID and split arguments, and send back the
    returned text.
    """

    def __init__(
        self,
        session_repo: SessionRepository,
        profile_repo: PlayerProfileRepository,
        prefix: str = "!",
    ) -> None:
        self.session_repo = session_repo
        self.profile_repo = profile_repo
        self.prefix = prefix
        self.tables = TableRegistry()
        self._unsubscribers: Dict[str, Callable[[], None]] = {}
        self._commands: Dict[str, Callable[[str, List[str]], str]] = {
            "help": self.help,
            "new": self.new,
            "load": self.load,
            "sessions": self.sessions,
            "add": self.add,
            "remove": self.remove,
            "dealer": self.dealer,
            "round": self.round,
            "bet": self.bet,
            "outcome": self.outcome,
            "double": self.double,
            "split": self.split,
            "record": self.record,
            "standings": self.standings,
            "history": self.history,
            "promptpay": self.promptpay,
            "favorites": self.favorites,
            "settle": self.settle,
        }

    def dispatch(self, chat_id: str, command: str, args: List[str]) -> str:
        handler = self._commands.get(command)
        if handler is None:
            return f"Unknown command. Type {self.prefix}help to see available commands."
        try:
            return handler(chat_id, args)
        except UsageError as exc:
            return str(exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _open(self, chat_id: str, session: Session) -> TableState:
        unsubscribe = self._unsubscribers.pop(chat_id, None)
        if unsubscribe is not None:
            unsubscribe()

        table = self.tables.open(chat_id, session)
        self._unsubscribers[chat_id] = self.session_repo.subscribe(session.id, table.sync)
        return table

    def current(self, chat_id: str) -> Tuple[TableState, Session]:
        table = self.tables.get(chat_id)
        if table is None:
            raise UsageError(
                f"No active session. Use {self.prefix}new or {self.prefix}load <id>."
            )
        result = services.load_session(table.session_id, self.session_repo)
        if not result.success:
            raise UsageError(result.error_message or "Session could not be loaded.")
        table.sync(result.session)
        return table, result.session

    @staticmethod
    def _player(session: Session, name: str) -> Player:
        player = session.find_player_by_name(name)
        if player is None:
            raise UsageError(f"No player called {name} at this table.")
        return player

    @staticmethod
    def _require(args: List[str], count: int, usage: str) -> None:
        if len(args) < count:
            raise UsageError(f"Usage: {usage}")

    def ledger_buttons(self, chat_id: str) -> List[Tuple[Player, int]]:
        """(player, hand index) pairs of the round being recorded, in seat order."""

        table, session = self.current(chat_id)
        pairs = []
        for player in session.players:
            player_round = table.ledger.get(player.id)
            if player_round is None:
                continue
            pairs.extend((player, index) for index in range(len(player_round.hands)))
        return pairs

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def help(self, chat_id: str, args: List[str]) -> str:
        return HELP_TEXT.format(p=self.prefix, outcomes="|".join(OUTCOMES))

    def new(self, chat_id: str, args: List[str]) -> str:
        result = services.start_new_session(self.session_repo)
        if not result.success:
            return result.error_message
        self._open(chat_id, result.session)
        return f"Live session: {result.session.id}\nAdd players with {self.prefix}add <name>."

    def load(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}load <session id>")
        result = services.load_session(args[0], self.session_repo)
        if not result.success:
            return result.error_message
        table = self._open(chat_id, result.session)
        return format_round(result.session, table.ledger)

    def sessions(self, chat_id: str, args: List[str]) -> str:
        session_ids = services.list_recent_sessions(self.session_repo)
        if not session_ids:
            return "No sessions in the last 30 days."
        return "Recent sessions:\n" + "\n".join(session_ids)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}add <name>")
        table, session = self.current(chat_id)
        result = services.add_player(
            session.id, " ".join(args), self.session_repo, self.profile_repo
        )
        if not result.success:
            return result.error_message
        table.sync(result.session)
        return format_round(result.session, table.ledger)

    def remove(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}remove <name>")
        table, session = self.current(chat_id)
        player = self._player(session, " ".join(args))
        result = services.remove_player(session.id, player.id, self.session_repo)
        if not result.success:
            return result.error_message
        table.sync(result.session)
        return f"{player.name} left the table.\n" + format_round(result.session, table.ledger)

    def dealer(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}dealer <name>")
        table, session = self.current(chat_id)
        player = self._player(session, " ".join(args))
        result = services.set_dealer(session.id, player.id, self.session_repo)
        if not result.success:
            return result.error_message
        table.sync(result.session)
        return format_round(result.session, table.ledger)

    # ------------------------------------------------------------------
    # Round entry
    # ------------------------------------------------------------------

    def round(self, chat_id: str, args: List[str]) -> str:
        table, session = self.current(chat_id)
        return format_round(session, table.ledger)

    def _edit_reply(self, session: Session, table: TableState, result) -> str:
        if not result.success:
            return result.error_message
        return format_round(session, table.ledger)

    def bet(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 2, f"{self.prefix}bet <name> <amount> [hand]")
        table, session = self.current(chat_id)
        player = self._player(session, args[0])
        amount = _parse_amount(args[1])
        result = table.set_bet(player.id, _parse_hand_index(args, 2), amount)
        return self._edit_reply(session, table, result)

    def outcome(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 2, f"{self.prefix}outcome <name> <{'|'.join(OUTCOMES)}> [hand]")
        table, session = self.current(chat_id)
        player = self._player(session, args[0])
        result = table.set_outcome(player.id, _parse_hand_index(args, 2), args[1].lower())
        return self._edit_reply(session, table, result)

    def double(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}double <name> [hand]")
        table, session = self.current(chat_id)
        player = self._player(session, args[0])
        result = table.toggle_double(player.id, _parse_hand_index(args, 1))
        return self._edit_reply(session, table, result)

    def split(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}split <name>")
        table, session = self.current(chat_id)
        player = self._player(session, args[0])
        result = table.split(player.id)
        return self._edit_reply(session, table, result)

    def record(self, chat_id: str, args: List[str]) -> str:
        table, _ = self.current(chat_id)
        result = table.record(self.session_repo)
        if not result.success:
            return result.error_message
        return "Round recorded.\n" + format_standings(result.session.players)

    # ------------------------------------------------------------------
    # Players and settlement
    # ------------------------------------------------------------------

    def standings(self, chat_id: str, args: List[str]) -> str:
        _, session = self.current(chat_id)
        return format_standings(session.players)

    def history(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 1, f"{self.prefix}history <name>")
        _, session = self.current(chat_id)
        return format_history(session, self._player(session, " ".join(args)))

    def promptpay(self, chat_id: str, args: List[str]) -> str:
        self._require(args, 2, f"{self.prefix}promptpay <name> <id> [fav]")
        _, session = self.current(chat_id)
        player = self._player(session, args[0])
        is_favorite = len(args) > 2 and args[2].lower() in ("fav", "favorite", "yes")
        result = services.update_player_profile(
            session.id,
            player.id,
            args[1],
            is_favorite,
            self.session_repo,
            self.profile_repo,
        )
        if not result.success:
            return result.error_message
        star = " (favorite)" if is_favorite else ""
        return f"Saved PromptPay ID for {player.name}{star}."

    def favorites(self, chat_id: str, args: List[str]) -> str:
        favorites = services.load_favorite_players(self.profile_repo)
        if not favorites:
            return "No favorite players yet."
        return "\n".join(
            f"{f.name}: {f.prompt_pay_id or '-'}" for f in favorites
        )

    def settle(self, chat_id: str, args: List[str]) -> str:
        _, session = self.current(chat_id)
        result = services.settle_session(session.id, self.session_repo)
        if not result.success:
            return result.error_message
        return format_settlement(result.transactions)
