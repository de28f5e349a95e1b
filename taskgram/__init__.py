"""Taskgram.

Formatting core of a bot that relays Bitrix24 task events to Telegram chats.
Task descriptions and comments arrive as Bitrix BBCode and leave as the
small HTML subset the Telegram Bot API accepts.

Features:
- BBCode to Telegram HTML conversion with safe escaping
- Async resolution of disk file and user mention references
- Entity-aware, tag-balanced HTML truncation
- Environment-based configuration with Pydantic validation
"""

__version__ = "1.0.0"
__license__ = "MIT"
