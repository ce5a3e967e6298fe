"""Port interface for the chat-side status message and notices."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from guild_jukebox.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ..services.status_projector import DisplayPayload


class StatusMessageRef(BaseModel):
    """Opaque handle to a posted status message."""

    model_config = ConfigDict(frozen=True, strict=True)

    channel_id: DiscordSnowflake
    message_id: DiscordSnowflake


class StatusMessageGoneError(Exception):
    """The referenced status message can no longer be edited."""


class StatusGateway(ABC):
    """Interface for rendering display payloads into chat messages."""

    @abstractmethod
    async def send_status(
        self, channel_id: DiscordSnowflake, payload: "DisplayPayload"
    ) -> StatusMessageRef | None:
        """Post a new status message. Returns None if it could not be sent."""
        ...

    @abstractmethod
    async def edit_status(self, ref: StatusMessageRef, payload: "DisplayPayload") -> None:
        """Edit a status message in place.

        Raises:
            StatusMessageGoneError: The message was deleted or is not editable.
        """
        ...

    @abstractmethod
    async def delete_status(self, ref: StatusMessageRef) -> None:
        ...

    @abstractmethod
    async def send_notice(self, channel_id: DiscordSnowflake, text: str) -> None:
        """Post a one-off informational message."""
        ...
