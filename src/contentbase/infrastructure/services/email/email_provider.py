"""Outgoing email message and the transport interface that delivers it."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    """A rendered notification ready for delivery.

    Empty ``from_email``/``from_name`` fall back to the transport defaults.
    """

    to: str
    subject: str
    html_body: str
    text_body: str
    from_email: str = ""
    from_name: str = ""
    reply_to: str | None = None


class EmailProvider(ABC):
    """Transport for notification emails."""

    @abstractmethod
    async def deliver(self, email: OutgoingEmail) -> None:
        """Hand ``email`` to the transport.

        Raises whatever the transport raises; callers translate failures.
        """

    @abstractmethod
    async def check_connection(self) -> tuple[bool, str | None]:
        """Return ``(True, None)`` when reachable, else ``(False, reason)``."""
