"""Slash-command cog for personal favorites."""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.cogs._base import (
    OrchestratorCog,
    container_of,
    guild_id_of,
)
from guild_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral
from guild_jukebox.utils.reply import format_track_line, paginate, truncate

FAVORITES_PER_PAGE = 15
AUTOCOMPLETE_LIMIT = 25


class FavoritesCog(OrchestratorCog):
    @app_commands.command(name="favorite", description="Save the current track to your favorites.")
    async def favorite(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        track = await self.orchestrator.add_favorite(guild_id_of(interaction), invoker)
        await send_ephemeral(
            interaction, DiscordUIMessages.FAVORITE_ADDED.format(title=truncate(track.title, 80))
        )

    @app_commands.command(name="favorites", description="List your saved favorites.")
    @app_commands.describe(page="Page number")
    async def favorites(
        self, interaction: discord.Interaction, page: app_commands.Range[int, 1] = 1
    ) -> None:
        favorites = await self.orchestrator.list_favorites(interaction.user.id)
        if not favorites:
            await send_ephemeral(interaction, DiscordUIMessages.FAVORITE_NOT_FOUND)
            return

        shown, page, total_pages = paginate(favorites, page, FAVORITES_PER_PAGE)
        offset = (page - 1) * FAVORITES_PER_PAGE
        lines = [
            format_track_line(
                offset + i, fav.track.title, fav.track.uri, fav.track.duration_seconds
            )
            for i, fav in enumerate(shown, start=1)
        ]
        embed = discord.Embed(
            title=DiscordUIMessages.FAVORITES_HEADER.format(count=len(favorites)),
            description="\n".join(lines),
            color=discord.Color.gold(),
        )
        embed.set_footer(text=f"Page {page}/{total_pages}")
        await interaction.response.send_message(embed=embed, ephemeral=True)

    @app_commands.command(name="play-favorites", description="Queue all of your favorites.")
    async def play_favorites(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        result = await self.orchestrator.play_favorites(guild_id_of(interaction), invoker)
        await send_ephemeral(
            interaction, DiscordUIMessages.PLAY_BATCH_QUEUED.format(count=result.total)
        )

    @app_commands.command(name="unfavorite", description="Remove a track from your favorites.")
    @app_commands.describe(track="The favorite to remove")
    async def unfavorite(self, interaction: discord.Interaction, track: str) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        removed = await self.orchestrator.remove_favorite(invoker, track)
        await send_ephemeral(
            interaction,
            DiscordUIMessages.FAVORITE_REMOVED.format(title=truncate(removed.track.title, 80)),
        )

    @unfavorite.autocomplete("track")
    async def _favorite_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        favorites = await self.orchestrator.list_favorites(interaction.user.id)
        needle = current.lower()
        return [
            app_commands.Choice(name=truncate(fav.track.title, 100), value=fav.track.id.value)
            for fav in favorites
            if needle in fav.track.title.lower()
        ][:AUTOCOMPLETE_LIMIT]


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(FavoritesCog(bot, container_of(bot)))
