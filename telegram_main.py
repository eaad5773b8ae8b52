import logging
import os

from dotenv import load_dotenv

from infrastructure.db.player_repository_sqlite import SqlitePlayerProfileRepository
from infrastructure.db.session_repository_sqlite import SqliteSessionRepository
from interfaces.telegram.handlers import create_telegram_bot


load_dotenv()

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
DB_PATH = os.environ.get("DB_PATH", "blackjack.db")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


def main() -> None:
    if not TELEGRAM_TOKEN:
        raise RuntimeError("TELEGRAM_TOKEN environment variable is not set.")

    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session_repo = SqliteSessionRepository(DB_PATH)
    profile_repo = SqlitePlayerProfileRepository(DB_PATH)

    bot = create_telegram_bot(TELEGRAM_TOKEN, session_repo, profile_repo)
    logging.getLogger(__name__).info("Telegram bot polling")
    bot.infinity_polling()


if __name__ == "__main__":
    main()
