"""
Bot handlers registration.
"""

from aiogram import Dispatcher

from orderdesk.bot.handlers.start import router as start_router
from orderdesk.bot.handlers.chat import router as chat_router


def register_handlers(dp: Dispatcher) -> None:
    """Register all handlers to dispatcher."""
    # Commands first, then the free-text catch-all
    dp.include_router(start_router)
    dp.include_router(chat_router)
