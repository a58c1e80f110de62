"""
Order Desk - conversational B2B ordering assistant for Telegram.
"""

__version__ = "0.1.0"
