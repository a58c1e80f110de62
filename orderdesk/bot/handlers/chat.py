"""
Message handler - every free-text message is one turn of the order conversation.
"""

import logging

from aiogram import Router, F
from aiogram.types import Message

from orderdesk.bot.keyboards.order import keyboard_for_reply
from orderdesk.core.graph import chat

router = Router(name="chat")
logger = logging.getLogger(__name__)


@router.message(F.text)
async def handle_message(message: Message) -> None:
    """Run the message through the turn pipeline and send the reply."""
    text = message.text.strip()
    if not text:
        return

    user_id = message.from_user.id

    # Show typing indicator
    await message.bot.send_chat_action(
        chat_id=message.chat.id,
        action="typing",
    )

    result = await chat(user_id=user_id, message=text)

    await message.answer(result.reply, reply_markup=keyboard_for_reply(result.reply))
