"""Redis client wrapper.

Every key-addressed command is sent as ``prefix + key``, so several facades
sharing one server keep to their own namespace. Pub/sub channel names are
global and are never prefixed.
"""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import Any

import redis
from redis.typing import EncodableT, ExpiryT

from nsredis.config import RedisSettings, get_settings
from nsredis.models import Message
from nsredis.observability import get_logger, log_redis_command

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(hours=24)

PUBSUB_MESSAGE_TYPES = ("message", "pmessage")


def precise_millis(expiration: ExpiryT) -> int | None:
    """Return the expiration in milliseconds when it has a sub-second part.

    redis-py truncates a timedelta to whole seconds for EX/EXPIRE, which turns
    500ms into 0. Such durations are sent as PX/PEXPIRE instead.
    """
    if isinstance(expiration, timedelta):
        millis = expiration // timedelta(milliseconds=1)
        if millis % 1000:
            return millis
    return None


class RedisClient:
    """Namespaced facade over a synchronous redis-py client.

    The wrapped handle must be created with ``decode_responses=True`` so values
    come back as ``str``. A handle passed to the constructor is shared: its
    lifecycle belongs to the caller. A handle built by ``from_settings`` is
    owned and released by ``close()``.

    Subscriptions block on reads for as long as the channel is quiet, so they
    must run on a handle without a socket timeout. Pass ``pubsub_client`` when
    ``client`` has one.
    """

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = "",
        default_ttl: ExpiryT = DEFAULT_TTL,
        pubsub_client: redis.Redis | None = None,
    ):
        """Initialize the facade.

        Args:
            client: Configured redis-py client (shared, not owned)
            prefix: Namespace prepended to every key
            default_ttl: Expiration used by set/hset when none is given
            pubsub_client: Handle used by subscribe/psubscribe (defaults to client)
        """
        self._client = client
        self._pubsub_client = pubsub_client or client
        self._prefix = prefix
        self._default_ttl = default_ttl
        self._owns_client = False

    @classmethod
    def from_settings(cls, settings: RedisSettings | None = None) -> "RedisClient":
        """Build a facade with its own connection pool.

        When ``socket_timeout`` is set, subscriptions get a second pool without
        it so a quiet channel does not time out.

        Args:
            settings: Redis settings (defaults to get_settings().redis)
        """
        settings = settings or get_settings().redis
        pool = redis.ConnectionPool.from_url(
            settings.url,
            decode_responses=True,
            socket_timeout=settings.socket_timeout,
        )
        client = redis.Redis(connection_pool=pool)
        pubsub_client = None
        if settings.socket_timeout is not None:
            pubsub_pool = redis.ConnectionPool.from_url(settings.url, decode_responses=True)
            pubsub_client = redis.Redis(connection_pool=pubsub_pool)
        instance = cls(
            client,
            prefix=settings.key_prefix,
            default_ttl=settings.default_ttl,
            pubsub_client=pubsub_client,
        )
        instance._owns_client = True
        logger.info(
            "Redis facade created",
            host=settings.host,
            port=settings.port,
            db=settings.db,
            key_prefix=settings.key_prefix,
        )
        return instance

    @property
    def client(self) -> redis.Redis:
        return self._client

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def default_ttl(self) -> ExpiryT:
        return self._default_ttl

    def close(self) -> None:
        """Close the underlying client if this facade created it."""
        if self._owns_client:
            self._client.close()
            if self._pubsub_client is not self._client:
                self._pubsub_client.close()

    def __enter__(self) -> "RedisClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def key(self, key: str) -> str:
        """Translate a logical key into the physical key sent to Redis."""
        return f"{self._prefix}{key}"

    @contextmanager
    def _command(self, command: str, key: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            log_redis_command(logger, command, key, (time.perf_counter() - start) * 1000)

    # =========================================================================
    # Key-Value Operations
    # =========================================================================

    def expire(self, key: str, expiration: ExpiryT) -> bool:
        """Set a time-to-live on a key.

        Returns:
            True if the timeout was set, False if the key does not exist
        """
        physical = self.key(key)
        millis = precise_millis(expiration)
        if millis is not None:
            with self._command("PEXPIRE", physical):
                return bool(self._client.pexpire(physical, millis))
        with self._command("EXPIRE", physical):
            return bool(self._client.expire(physical, expiration))

    def get(self, key: str) -> str:
        """Get a string value.

        A missing key yields ``""``; absent and empty values are indistinguishable.
        """
        physical = self.key(key)
        with self._command("GET", physical):
            value = self._client.get(physical)
        return "" if value is None else value

    def set(self, key: str, value: EncodableT, expiration: ExpiryT | None = None) -> None:
        """Set a string value.

        Args:
            key: Logical key
            value: Value to store
            expiration: TTL as seconds or timedelta (default: 24 hours)
        """
        physical = self.key(key)
        ttl = self._default_ttl if expiration is None else expiration
        millis = precise_millis(ttl)
        with self._command("SET", physical):
            if millis is not None:
                self._client.set(physical, value, px=millis)
            else:
                self._client.set(physical, value, ex=ttl)

    def delete(self, *keys: str) -> int:
        """Delete one or more keys in a single request.

        Returns:
            Number of keys removed
        """
        if not keys:
            return 0
        physical = [self.key(k) for k in keys]
        with self._command("DEL", " ".join(physical)):
            return self._client.delete(*physical)

    def exists(self, key: str) -> bool:
        physical = self.key(key)
        with self._command("EXISTS", physical):
            return self._client.exists(physical) > 0

    def ttl(self, key: str) -> int | None:
        """Get remaining TTL in seconds, None if the key is missing or persistent."""
        physical = self.key(key)
        with self._command("TTL", physical):
            remaining = self._client.ttl(physical)
        return remaining if remaining >= 0 else None

    # =========================================================================
    # Hash Operations
    # =========================================================================

    def hget(self, key: str, field: str) -> str:
        """Get a hash field, ``""`` when the field or hash is absent."""
        physical = self.key(key)
        with self._command("HGET", physical):
            value = self._client.hget(physical, field)
        return "" if value is None else value

    def hgetall(self, key: str) -> dict[str, str]:
        """Get all fields of a hash, an empty dict when the hash is absent."""
        physical = self.key(key)
        with self._command("HGETALL", physical):
            values = self._client.hgetall(physical)
        return dict(values or {})

    def hset(
        self,
        key: str,
        field: str,
        value: EncodableT,
        expiration: ExpiryT | None = None,
    ) -> None:
        """Set a hash field and refresh the expiration of the whole hash.

        HSET and EXPIRE go out in one MULTI/EXEC transaction. A failing HSET
        raises; a failing EXPIRE is logged and not raised.

        Args:
            key: Logical hash key
            field: Field name
            value: Field value
            expiration: TTL for the hash (default: 24 hours)
        """
        physical = self.key(key)
        ttl = self._default_ttl if expiration is None else expiration
        millis = precise_millis(ttl)
        with self._command("HSET", physical):
            with self._client.pipeline(transaction=True) as pipe:
                pipe.hset(physical, field, value)
                if millis is not None:
                    pipe.pexpire(physical, millis)
                else:
                    pipe.expire(physical, ttl)
                written, expired = pipe.execute(raise_on_error=False)

        if isinstance(written, Exception):
            raise written
        if isinstance(expired, Exception):
            logger.warning(
                "Hash expiration not applied",
                redis_key=physical,
                error=str(expired),
            )

    def hdel(self, key: str, *fields: str) -> None:
        """Delete hash fields, removing the hash once no field is left."""
        physical = self.key(key)
        with self._command("HDEL", physical):
            self._client.hdel(physical, *fields)
            remaining = self._client.hlen(physical)
            if remaining == 0:
                self._client.delete(physical)

    # =========================================================================
    # PubSub Operations
    # =========================================================================

    def publish(self, channel: str, message: EncodableT) -> int:
        """Publish a message on a (global, unprefixed) channel.

        Returns:
            Number of subscribers that received the message
        """
        with self._command("PUBLISH", channel):
            return self._client.publish(channel, message)

    def subscribe(self, channel: str, handler: Callable[[Message], Any]) -> None:
        """Receive messages on a channel until the subscription ends.

        Blocks the calling thread, invoking ``handler`` for each message in the
        order received. The channel name is matched literally; glob characters
        have no special meaning here (see ``psubscribe``). A dropped connection
        ends the loop without raising; there is no reconnection. An exception
        raised by ``handler`` propagates. The pub/sub connection is closed on
        every exit path.

        Example:
            client.subscribe("chat", lambda msg: print(msg.payload))
        """
        self._listen(channel, handler, pattern=False)

    def psubscribe(self, pattern: str, handler: Callable[[Message], Any]) -> None:
        """Receive messages on every channel matching a glob pattern.

        Same blocking and termination rules as ``subscribe``; each Message
        carries the matched ``pattern``.
        """
        self._listen(pattern, handler, pattern=True)

    def _listen(self, name: str, handler: Callable[[Message], Any], pattern: bool) -> None:
        pubsub = self._pubsub_client.pubsub(ignore_subscribe_messages=True)
        try:
            if pattern:
                pubsub.psubscribe(name)
            else:
                pubsub.subscribe(name)
            logger.info("Subscribed to channel", channel=name, pattern=pattern)

            try:
                for raw in pubsub.listen():
                    if raw["type"] in PUBSUB_MESSAGE_TYPES:
                        handler(Message.from_pubsub(raw))
            except redis.ConnectionError as e:
                logger.warning("Subscription connection lost", channel=name, error=str(e))
        finally:
            pubsub.close()
            logger.info("Subscription closed", channel=name)

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> dict[str, Any]:
        """Check Redis connectivity.

        Returns:
            Health status dict
        """
        try:
            self._client.ping()
            return {"status": "healthy", "key_prefix": self._prefix}
        except redis.RedisError as e:
            return {"status": "unhealthy", "key_prefix": self._prefix, "error": str(e)}
