from __future__ import annotations

import logging

import discord
from discord.ext import commands

from domain.repositories import PlayerProfileRepository, SessionRepository
from interfaces.commands import COMMAND_NAMES, TableCommands

logger = logging.getLogger(__name__)

# Discord messages are capped at 2000 characters.
MAX_MESSAGE_LENGTH = 2000


def _as_code_block(text: str) -> str:
    return f"```\n{text[: MAX_MESSAGE_LENGTH - 8]}\n```"


def create_discord_bot(
    session_repo: SessionRepository,
    profile_repo: PlayerProfileRepository,
) -> commands.Bot:
    """
    Configure and return a Discord bot that records a blackjack session
    per channel: seat players, enter the round, commit it and settle up.
    """

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)
    table_commands = TableCommands(session_repo, profile_repo, prefix="!")

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    def register(name: str) -> None:
        async def command(ctx: commands.Context, *args: str):
            reply = table_commands.dispatch(str(ctx.channel.id), name, list(args))
            await ctx.send(_as_code_block(reply))

        bot.command(name=name)(command)

    for name in COMMAND_NAMES:
        register(name)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            await ctx.send("Unknown command. Type !help to see available commands.")
            return
        logger.error("Discord command %s failed", ctx.command, exc_info=error)
        await ctx.send("Something went wrong, please try again.")

    return bot
