"""
Reply keyboards for the order conversation.
"""

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

from orderdesk.core.orders.state_machine import CONFIRMATION_PROMPT


CONFIRM_BUTTON = "✅ Yes, place the order"
DECLINE_BUTTON = "❌ No"
REVIEW_BUTTON = "📋 Review my order"
USUAL_BUTTON = "🔁 My usual order"


def get_main_keyboard() -> ReplyKeyboardMarkup:
    """Keyboard with the most common requests."""
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=USUAL_BUTTON), KeyboardButton(text=REVIEW_BUTTON)],
        ],
        resize_keyboard=True,
        input_field_placeholder="e.g. add 5 pens and 2 staplers",
    )


def get_confirmation_keyboard() -> ReplyKeyboardMarkup:
    """Yes/No keyboard shown under an order summary."""
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=CONFIRM_BUTTON), KeyboardButton(text=DECLINE_BUTTON)],
        ],
        resize_keyboard=True,
        one_time_keyboard=True,
    )


def keyboard_for_reply(reply: str) -> ReplyKeyboardMarkup:
    """Pick the keyboard that fits a reply."""
    if reply.rstrip().endswith(CONFIRMATION_PROMPT):
        return get_confirmation_keyboard()
    return get_main_keyboard()
