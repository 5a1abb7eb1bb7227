"""Pub/sub message model."""

import json
from typing import Any, TypeVar, overload

from pydantic import Field, TypeAdapter, ValidationError

from .base import NSRedisBaseModel

T = TypeVar("T")


class MessageDecodeError(ValueError):
    """Raised when a message payload cannot be decoded into the requested shape."""

    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"Cannot decode message on channel {channel!r}: {reason}")


def _to_str(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class Message(NSRedisBaseModel):
    """A message received from a Redis pub/sub channel.

    Note: channel names are global; they are never namespaced by the key prefix.
    """

    channel: str = Field(description="Channel the message was published on")
    pattern: str = Field(
        default="", description="Matched pattern for PSUBSCRIBE deliveries, else empty"
    )
    payload: str = Field(default="", description="Raw message payload")

    @classmethod
    def from_pubsub(cls, raw: dict[str, Any]) -> "Message":
        """Build a Message from a redis-py pub/sub message dict.

        Args:
            raw: Dict as yielded by ``PubSub.listen()`` (keys: type, pattern,
                channel, data)

        Returns:
            Message with bytes fields decoded as UTF-8
        """
        return cls(
            channel=_to_str(raw.get("channel")),
            pattern=_to_str(raw.get("pattern")),
            payload=_to_str(raw.get("data")),
        )

    @overload
    def decode(self, target: None = None) -> Any: ...

    @overload
    def decode(self, target: type[T]) -> T: ...

    def decode(self, target: type[T] | None = None) -> T | Any:
        """Decode the JSON payload.

        Args:
            target: Shape to validate into (pydantic model, dataclass,
                TypedDict or builtin type). When omitted the parsed JSON value
                is returned as-is.

        Returns:
            Populated instance of ``target``, or the parsed JSON value

        Raises:
            MessageDecodeError: Payload is not valid JSON or does not match target
        """
        try:
            if target is None:
                return json.loads(self.payload)
            return TypeAdapter(target).validate_json(self.payload)
        except json.JSONDecodeError as e:
            raise MessageDecodeError(self.channel, str(e)) from e
        except ValidationError as e:
            raise MessageDecodeError(self.channel, str(e)) from e
