"""nsredis - a namespaced Redis facade.

This package contains:
- redis_client: RedisClient, prefixing every key with a namespace
- models: pub/sub Message model with JSON decoding
- config: Configuration management
- observability: Structured logging
"""

from .models import Message, MessageDecodeError
from .redis_client import DEFAULT_TTL, RedisClient

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_TTL",
    "Message",
    "MessageDecodeError",
    "RedisClient",
]
