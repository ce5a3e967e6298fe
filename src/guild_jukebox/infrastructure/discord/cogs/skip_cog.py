"""Slash-command cog for moving through tracks: vote skip and previous."""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.domain.voting.value_objects import VoteResult
from guild_jukebox.infrastructure.discord.cogs._base import (
    OrchestratorCog,
    container_of,
    guild_id_of,
)
from guild_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral
from guild_jukebox.utils.reply import truncate


class SkipCog(OrchestratorCog):
    @app_commands.command(
        name="skip", description="Skip the current track, or vote to skip it."
    )
    async def skip(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        result = await self.orchestrator.skip(guild_id_of(interaction), invoker)

        if result.action_executed and result.skipped is not None:
            message = DiscordUIMessages.SKIP_DONE.format(title=truncate(result.skipped.title, 80))
        elif result.result == VoteResult.ALREADY_VOTED:
            message = DiscordUIMessages.SKIP_ALREADY_VOTED.format(
                votes=result.votes, needed=result.required
            )
        else:
            message = DiscordUIMessages.SKIP_VOTE_RECORDED.format(
                votes=result.votes, needed=result.required
            )
        await send_ephemeral(interaction, message)

    @app_commands.command(name="previous", description="Go back to the previously played track.")
    async def previous(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        item = await self.orchestrator.rewind(guild_id_of(interaction), invoker)
        await send_ephemeral(
            interaction, DiscordUIMessages.REWIND_DONE.format(title=truncate(item.track.title, 80))
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(SkipCog(bot, container_of(bot)))
