"""Base model configuration for all Pydantic models."""

from pydantic import BaseModel, ConfigDict


class NSRedisBaseModel(BaseModel):
    """Base model with common configuration.

    Models are immutable snapshots of server data; they are never written back.
    """

    model_config = ConfigDict(frozen=True)
