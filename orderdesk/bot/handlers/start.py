"""
Start, help and clear command handlers.
"""

import logging

from aiogram import Router
from aiogram.filters import CommandStart, Command
from aiogram.types import Message

from orderdesk.bot.keyboards.order import get_main_keyboard
from orderdesk.core.graph import get_turn_service

logger = logging.getLogger(__name__)

router = Router(name="start")


HELP_MESSAGE = """🤖 How I can help:

Build an order:
• "Add 5 pens and 2 staplers"
• "Remove one stapler"
• "Start my usual order"

Delivery:
• "Ship it to 12 Park Street, Pune"

Finish:
• "Show me my order" - review items and total
• "Yes, place it" - confirm the order

Commands:
/start - start a fresh order
/clear - forget the current order and conversation
/help - this help"""


@router.message(CommandStart())
async def handle_start(message: Message) -> None:
    """Handle /start: register the user and open a fresh session."""
    user = message.from_user
    service = get_turn_service()

    try:
        profile = await service.open_session(
            user.id,
            name=user.full_name,
            username=user.username,
        )
    except Exception as e:
        logger.error(f"Could not open session for user {user.id}: {e}", exc_info=True)
        await message.answer("Sorry, I couldn't start a session right now. Please try again later.")
        return

    lines = [f"👋 Hello {profile.display_name}!"]
    if profile.default_shipping_address:
        lines.append(f"Orders will ship to {profile.default_shipping_address} unless you tell me otherwise.")
    lines.append("What would you like to order today?")
    await message.answer("\n".join(lines), reply_markup=get_main_keyboard())


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    """Handle /help command."""
    await message.answer(HELP_MESSAGE, reply_markup=get_main_keyboard())


@router.message(Command("clear"))
async def handle_clear(message: Message) -> None:
    """Drop the current order and conversation."""
    user_id = message.from_user.id
    await get_turn_service().clear_session(user_id)
    await message.answer(
        "🔄 Your current order and our conversation have been cleared.\n\n"
        "Send /start to begin a new order.",
        reply_markup=get_main_keyboard(),
    )
