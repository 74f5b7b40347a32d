"""Chat adapter protocol.

Defines the interface every chat platform integration implements.
"""

from abc import abstractmethod
from typing import Protocol

from feedloop.channels.models import OutboundMessage


class ChatAdapter(Protocol):
    """Protocol for chat platform integrations (Slack, Google Chat, Teams)."""

    @property
    @abstractmethod
    def platform(self) -> str:
        """Unique platform identifier."""
        ...

    @abstractmethod
    async def send_message(self, message: OutboundMessage) -> str | None:
        """Deliver a message and return the platform message ID.

        Raises:
            Exception: If delivery fails
        """
        ...
