"""EmailProvider protocol — MailerService depends on this, not the concrete transports."""

from typing import Protocol

from schemas.models.email import OutgoingMessage


class EmailProvider(Protocol):
    name: str

    @property
    def is_configured(self) -> bool:
        """True when the provider can attempt a delivery with its settings."""
        ...

    async def deliver(self, message: OutgoingMessage) -> str:
        """Send *message* and return the provider's message id.

        Raises a MailerError subclass on failure.
        """
        ...

    async def verify_connection(self) -> bool: ...

    async def aclose(self) -> None: ...
