"""Outbound chat message models."""

from typing import Any

from pydantic import BaseModel, Field


class OutboundMessage(BaseModel):
    """A message to deliver through a chat platform adapter."""

    platform: str = Field(..., description="Platform identifier: slack, gchat, teams")
    channel_id: str = Field(..., description="Platform channel or DM identifier")
    thread_id: str | None = Field(default=None, description="Thread to reply in")
    text: str = Field(..., description="Plain-text body")
    blocks: list[dict[str, Any]] = Field(
        default_factory=list, description="Platform-neutral rich blocks"
    )
    metadata: dict[str, str] = Field(default_factory=dict)


class DeliveryResult(BaseModel):
    """Result of handing a message to an adapter."""

    success: bool
    skipped: bool = False
    provider_message_id: str | None = None
    error_message: str | None = None
