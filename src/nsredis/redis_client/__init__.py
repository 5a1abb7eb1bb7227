"""Redis client wrapper with key namespacing and pub/sub support.

Key Layout:
- Every key: {prefix}{logical_key}
- Pub/sub channels: global, never prefixed
"""

from .client import DEFAULT_TTL, RedisClient

__all__ = [
    "DEFAULT_TTL",
    "RedisClient",
]
