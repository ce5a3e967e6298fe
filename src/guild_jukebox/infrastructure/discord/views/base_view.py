"""Base class for interactive Discord views with common patterns."""

from __future__ import annotations

import logging
from typing import Any

import discord

from guild_jukebox.domain.shared.exceptions import DomainError
from guild_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from guild_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral

logger = logging.getLogger(__name__)


class BaseInteractiveView(discord.ui.View):
    """Base view providing message tracking, button disabling, and error replies."""

    def __init__(self, *, timeout: float | None = 180.0) -> None:
        super().__init__(timeout=timeout)
        self._message: discord.Message | None = None

    def set_message(self, message: discord.Message) -> None:
        self._message = message

    def _disable_buttons(self) -> None:
        for item in self.children:
            if isinstance(item, (discord.ui.Button, discord.ui.Select)):
                item.disabled = True

    async def on_error(
        self,
        interaction: discord.Interaction,
        error: Exception,
        item: discord.ui.Item[Any],
    ) -> None:
        """Domain errors are expected user mistakes; anything else is logged."""
        if isinstance(error, DomainError):
            message = DiscordUIMessages.ERROR_PREFIX.format(message=error.message)
        else:
            logger.exception(LogTemplates.VIEW_INTERACTION_ERROR, item, exc_info=error)
            message = DiscordUIMessages.ERROR_GENERIC

        try:
            await send_ephemeral(interaction, message)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)
