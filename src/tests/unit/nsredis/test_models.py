"""Unit tests for Pydantic models."""

import json
from dataclasses import dataclass

import pytest
from pydantic import BaseModel, ValidationError

from nsredis.models import Message, MessageDecodeError, NSRedisBaseModel


class Counter(BaseModel):
    a: int


@dataclass
class Point:
    x: float
    y: float


class TestMessage:
    """Test pub/sub message model."""

    def test_defaults(self) -> None:
        message = Message(channel="chat")

        assert message.pattern == ""
        assert message.payload == ""

    def test_is_immutable(self) -> None:
        message = Message(channel="chat", payload="hello")

        with pytest.raises(ValidationError):
            message.payload = "changed"

    def test_from_pubsub_plain_subscription(self) -> None:
        raw = {"type": "message", "pattern": None, "channel": "chat", "data": "hello"}

        message = Message.from_pubsub(raw)

        assert message == Message(channel="chat", pattern="", payload="hello")

    def test_from_pubsub_decodes_bytes(self) -> None:
        raw = {
            "type": "pmessage",
            "pattern": b"chat.*",
            "channel": b"chat.eu",
            "data": "héllo".encode(),
        }

        message = Message.from_pubsub(raw)

        assert message.channel == "chat.eu"
        assert message.pattern == "chat.*"
        assert message.payload == "héllo"


class TestMessageDecode:
    """Test JSON payload decoding."""

    def test_decode_into_model(self) -> None:
        message = Message(channel="chat", payload='{"a":1}')

        counter = message.decode(Counter)

        assert counter.a == 1

    def test_decode_into_dataclass(self) -> None:
        point = Message(channel="geo", payload='{"x": 1.5, "y": -2}').decode(Point)

        assert point == Point(x=1.5, y=-2.0)

    def test_decode_into_builtin_type(self) -> None:
        message = Message(channel="chat", payload='{"a": 1, "b": 2}')

        assert message.decode(dict[str, int]) == {"a": 1, "b": 2}

    def test_decode_without_target(self) -> None:
        message = Message(channel="chat", payload='[1, "two", null]')

        assert message.decode() == [1, "two", None]

    def test_invalid_json_raises(self) -> None:
        message = Message(channel="chat", payload="not-json")

        with pytest.raises(MessageDecodeError) as exc_info:
            message.decode(Counter)

        assert exc_info.value.channel == "chat"
        assert isinstance(exc_info.value.__cause__, ValidationError)

    def test_invalid_json_without_target_raises(self) -> None:
        message = Message(channel="chat", payload="not-json")

        with pytest.raises(MessageDecodeError) as exc_info:
            message.decode()

        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    def test_shape_mismatch_raises(self) -> None:
        message = Message(channel="chat", payload='{"a": "many"}')

        with pytest.raises(MessageDecodeError, match="chat"):
            message.decode(Counter)

    def test_decode_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Message(channel="chat", payload="{").decode(Counter)


class TestBaseModel:
    def test_config_is_frozen_only(self) -> None:
        assert NSRedisBaseModel.model_config == {"frozen": True}
