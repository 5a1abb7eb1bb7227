"""Data models for nsredis.

All models follow these conventions:
- Models are immutable (frozen)
- Field names: lowercase snake_case
"""

# Base
from .base import NSRedisBaseModel

# Pub/sub
from .message import Message, MessageDecodeError

__all__ = [
    "NSRedisBaseModel",
    "Message",
    "MessageDecodeError",
]
