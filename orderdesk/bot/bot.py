"""
Telegram transport for Order Desk.

The bot only carries text in and replies out; orders and conversation history
are kept in the database by the turn pipeline, so the dispatcher needs no FSM
state of its own.
"""

import logging

from aiogram import Bot, Dispatcher
from aiogram.types import BotCommand

from orderdesk.config import settings

logger = logging.getLogger(__name__)


BOT_COMMANDS = [
    BotCommand(command="start", description="Start a fresh order"),
    BotCommand(command="help", description="What I can do"),
    BotCommand(command="clear", description="Forget the current order"),
]


def create_bot() -> Bot:
    """Create the Telegram client; the token is only needed when the bot runs."""
    if not settings.telegram_bot_token:
        raise ValueError(
            "Telegram bot token not provided. "
            "Set TELEGRAM_BOT_TOKEN in .env file."
        )
    return Bot(token=settings.telegram_bot_token)


def create_dispatcher() -> Dispatcher:
    return Dispatcher(name="orderdesk")


async def publish_commands(bot: Bot) -> None:
    """Show /start, /help and /clear in the client's command menu."""
    await bot.set_my_commands(BOT_COMMANDS)
    logger.info(f"Published {len(BOT_COMMANDS)} bot commands")


# Global instances
bot: Bot | None = None
dp: Dispatcher | None = None


def get_bot() -> Bot:
    """Get or create bot instance."""
    global bot
    if bot is None:
        bot = create_bot()
    return bot


def get_dispatcher() -> Dispatcher:
    """Get or create dispatcher instance."""
    global dp
    if dp is None:
        dp = create_dispatcher()
    return dp
