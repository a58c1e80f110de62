"""
Order Desk Telegram Bot - Main entry point.
"""

import asyncio
import logging
import sys

from aiogram import Bot

from orderdesk.bot.bot import get_bot, get_dispatcher, publish_commands
from orderdesk.bot.handlers import register_handlers
from orderdesk.db.database import db
from orderdesk.config import settings


# Fix for Windows asyncio
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def on_startup(bot: Bot) -> None:
    """Initialize services on startup."""
    logger.info("Starting Order Desk bot...")

    await db.init()
    logger.info(f"Database initialized ({'sqlite' if db.is_sqlite else 'postgresql'})")

    await publish_commands(bot)


async def on_shutdown() -> None:
    """Cleanup on shutdown."""
    logger.info("Shutting down Order Desk bot...")

    await db.close()

    logger.info("Cleanup complete")


async def main() -> None:
    """Main function to run the bot."""
    bot = get_bot()
    dp = get_dispatcher()

    # Register handlers
    register_handlers(dp)

    # Register startup/shutdown hooks
    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    # Start polling
    logger.info("Bot is starting...")
    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()


def run() -> None:
    """Console script entry point."""
    configure_logging()
    asyncio.run(main())


if __name__ == "__main__":
    run()
