"""Shared plumbing for cogs that drive the session orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_jukebox.domain.shared.messages import ErrorMessages
from guild_jukebox.infrastructure.discord.guards.voice_guards import build_invoker

if TYPE_CHECKING:
    from ....application.services.orchestrator_models import Invoker
    from ....application.services.session_orchestrator import SessionOrchestrator
    from ....config.container import Container


class OrchestratorCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @property
    def orchestrator(self) -> SessionOrchestrator:
        return self.container.session_orchestrator

    async def _invoker(self, interaction: discord.Interaction) -> Invoker | None:
        return await build_invoker(interaction, self.container.settings.discord.owner_ids)


def container_of(bot: commands.Bot) -> Container:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)
    return container


def guild_id_of(interaction: discord.Interaction) -> int:
    # build_invoker has already rejected DMs by the time this is called.
    assert interaction.guild_id is not None
    return interaction.guild_id
