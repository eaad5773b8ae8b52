from __future__ import annotations

import logging

import telebot
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from domain.models import OUTCOMES
from domain.repositories import PlayerProfileRepository, SessionRepository
from interfaces.commands import COMMAND_NAMES, TableCommands, UsageError
from interfaces.formatting import format_round
from interfaces.telegram.callback_data import (
    encode_double,
    encode_outcome_choice,
    encode_split,
    parse_double,
    parse_outcome_choice,
    parse_split,
)

logger = logging.getLogger(__name__)


def _parse_command(text: str) -> tuple[str, list[str]]:
    """Split `/bet@SomeBot Alice 40` into ("bet", ["Alice", "40"])."""

    parts = text.split()
    command = parts[0][1:].split("@")[0].lower()  # strip leading '/' and bot name
    return command, parts[1:]


def create_telegram_bot(
    bot_token: str,
    session_repo: SessionRepository,
    profile_repo: PlayerProfileRepository,
) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the table commands.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and building inline keyboards for round entry.
    """

    bot = telebot.TeleBot(bot_token)
    table_commands = TableCommands(session_repo, profile_repo, prefix="/")

    def round_markup(chat_id: str) -> InlineKeyboardMarkup | None:
        try:
            hands = table_commands.ledger_buttons(chat_id)
        except UsageError:
            return None
        if not hands:
            return None

        markup = InlineKeyboardMarkup(row_width=len(OUTCOMES) + 2)
        for player, hand_index in hands:
            label = player.name if hand_index == 0 else f"{player.name} #{hand_index + 1}"
            markup.row(InlineKeyboardButton(label, callback_data=encode_split(player.id)))
            buttons = [
                InlineKeyboardButton(
                    outcome,
                    callback_data=encode_outcome_choice(player.id, hand_index, outcome),
                )
                for outcome in OUTCOMES
            ]
            buttons.append(
                InlineKeyboardButton("x2", callback_data=encode_double(player.id, hand_index))
            )
            markup.row(*buttons)
        return markup

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        bot.send_message(
            message.chat.id,
            "Welcome to the blackjack ledger bot!\n"
            "Use /new to start a session or /load <id> to continue one.\n"
            "Type /help to see available commands.\n"
            "Tap a player's name under /round to split their hand.",
        )

    @bot.message_handler(commands=list(COMMAND_NAMES))
    def handle_command(message):
        chat_id = str(message.chat.id)
        command, args = _parse_command(message.text)
        reply = table_commands.dispatch(chat_id, command, args)

        markup = None
        if command in ("round", "load", "add", "remove", "dealer", "bet", "outcome", "double", "split"):
            markup = round_markup(chat_id)
        bot.send_message(message.chat.id, reply, reply_markup=markup)

    def answer_edit(call, result) -> None:
        chat_id = str(call.message.chat.id)
        if not result.success:
            bot.answer_callback_query(call.id, result.error_message)
            return

        table, session = table_commands.current(chat_id)
        bot.answer_callback_query(call.id)
        try:
            bot.edit_message_text(
                format_round(session, table.ledger),
                call.message.chat.id,
                call.message.id,
                reply_markup=round_markup(chat_id),
            )
        except telebot.apihelper.ApiTelegramException as exc:
            # Telegram rejects edits that leave the message unchanged (e.g. a re-split).
            logger.debug("Round message not edited: %s", exc)

    @bot.callback_query_handler(func=lambda call: call.data.startswith(("out:", "dbl:", "spl:")))
    def handle_round_button(call):
        """
        Handle the outcome, double and split buttons of the round keyboard.
        """

        chat_id = str(call.message.chat.id)
        try:
            table, _ = table_commands.current(chat_id)
        except UsageError as exc:
            bot.answer_callback_query(call.id, str(exc))
            return

        try:
            if call.data.startswith("out:"):
                player_id, hand_index, outcome = parse_outcome_choice(call.data)
                result = table.set_outcome(player_id, hand_index, outcome)
            elif call.data.startswith("dbl:"):
                player_id, hand_index = parse_double(call.data)
                result = table.toggle_double(player_id, hand_index)
            else:
                result = table.split(parse_split(call.data))
        except ValueError:
            logger.warning("Ignoring malformed callback data %r", call.data)
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        answer_edit(call, result)

    return bot
