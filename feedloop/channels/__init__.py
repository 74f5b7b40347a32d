"""Chat delivery: adapter protocol and the platform-keyed gateway."""

from feedloop.channels.adapter import ChatAdapter
from feedloop.channels.gateway import ChatGateway
from feedloop.channels.models import DeliveryResult, OutboundMessage

__all__ = [
    "ChatAdapter",
    "ChatGateway",
    "DeliveryResult",
    "OutboundMessage",
]
