import logging
import os

from dotenv import load_dotenv

from infrastructure.db.player_repository_sqlite import SqlitePlayerProfileRepository
from infrastructure.db.session_repository_sqlite import SqliteSessionRepository
from interfaces.discord.handlers import create_discord_bot


load_dotenv()

DISCORD_TOKEN = os.environ.get("DISCORD_TOKEN")
DB_PATH = os.environ.get("DB_PATH", "blackjack.db")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def main() -> None:
    if not DISCORD_TOKEN:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session_repo = SqliteSessionRepository(DB_PATH)
    profile_repo = SqlitePlayerProfileRepository(DB_PATH)

    bot = create_discord_bot(session_repo, profile_repo)
    bot.run(DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
