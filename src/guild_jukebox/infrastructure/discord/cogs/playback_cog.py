"""Slash-command cog for core playback: play, search, pause, volume, filters, modes, leave, move."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.domain.music.value_objects import FilterType, PlaybackState
from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.cogs._base import (
    OrchestratorCog,
    container_of,
    guild_id_of,
)
from guild_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral
from guild_jukebox.infrastructure.discord.views.search_view import SearchResultsView
from guild_jukebox.utils.reply import format_play_result, truncate

logger = logging.getLogger(__name__)

FILTER_CHOICES = [
    app_commands.Choice(name=filter_type.display_name, value=filter_type.value)
    for filter_type in FilterType.selectable()
]


class PlaybackCog(OrchestratorCog):
    @app_commands.command(name="play", description="Play a song or playlist by URL or search query.")
    @app_commands.describe(query="YouTube URL, playlist URL, or search query")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        # Resolving and joining voice can exceed the 3-second interaction deadline.
        await interaction.response.defer(ephemeral=True)
        result = await self.orchestrator.play(guild_id_of(interaction), invoker, query)
        await send_ephemeral(interaction, format_play_result(result))

    @app_commands.command(name="search", description="Search YouTube and pick a result to play.")
    @app_commands.describe(query="Words to search for (not a URL)")
    async def search(self, interaction: discord.Interaction, query: str) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        guild_id = guild_id_of(interaction)
        tracks = await self.orchestrator.search(
            guild_id, invoker, query, limit=self.container.settings.audio.search_limit
        )

        view = SearchResultsView(guild_id=guild_id, container=self.container, tracks=tracks)
        message = await interaction.followup.send(
            DiscordUIMessages.SEARCH_RESULTS.format(query=truncate(query, 80)),
            view=view,
            ephemeral=True,
            wait=True,
        )
        view.set_message(message)

    @app_commands.command(name="pause", description="Pause or resume playback.")
    async def pause(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        state = await self.orchestrator.pause_or_resume(guild_id_of(interaction), invoker)
        message = (
            DiscordUIMessages.PAUSED if state == PlaybackState.PAUSED else DiscordUIMessages.RESUMED
        )
        await send_ephemeral(interaction, message)

    @app_commands.command(name="volume", description="Set the playback volume.")
    @app_commands.describe(level="Volume from 0 to 100")
    async def volume(
        self, interaction: discord.Interaction, level: app_commands.Range[int, 0, 100]
    ) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        volume = await self.orchestrator.set_volume(
            guild_id_of(interaction), invoker, absolute=level
        )
        await send_ephemeral(interaction, DiscordUIMessages.VOLUME_SET.format(volume=volume))

    @app_commands.command(name="filter", description="Apply an audio filter.")
    @app_commands.describe(name="Filter to apply")
    @app_commands.choices(name=FILTER_CHOICES)
    async def filter(
        self, interaction: discord.Interaction, name: app_commands.Choice[str]
    ) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        applied = await self.orchestrator.apply_filter(
            guild_id_of(interaction), invoker, FilterType(name.value)
        )
        await send_ephemeral(
            interaction, DiscordUIMessages.FILTER_APPLIED.format(name=applied.display_name)
        )

    @app_commands.command(name="clearfilters", description="Remove the active audio filter.")
    async def clearfilters(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        await self.orchestrator.clear_filters(guild_id_of(interaction), invoker)
        await send_ephemeral(interaction, DiscordUIMessages.FILTERS_CLEARED)

    @app_commands.command(name="loop", description="Toggle repeating the current track.")
    async def loop(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        enabled = await self.orchestrator.toggle_loop(guild_id_of(interaction), invoker)
        await send_ephemeral(
            interaction, DiscordUIMessages.LOOP_ON if enabled else DiscordUIMessages.LOOP_OFF
        )

    @app_commands.command(name="autoplay", description="Toggle playing related tracks when the queue runs out.")
    async def autoplay(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        enabled = await self.orchestrator.toggle_autoplay(guild_id_of(interaction), invoker)
        await send_ephemeral(
            interaction,
            DiscordUIMessages.AUTOPLAY_ON if enabled else DiscordUIMessages.AUTOPLAY_OFF,
        )

    @app_commands.command(name="leave", description="Stop playback and leave the voice channel.")
    async def leave(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        channel_id = await self.orchestrator.disconnect(guild_id_of(interaction), invoker)
        await send_ephemeral(interaction, DiscordUIMessages.DISCONNECTED.format(channel_id=channel_id))

    @app_commands.command(name="move", description="Move the player into your voice channel.")
    async def move(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        await interaction.response.defer(ephemeral=True)
        channel_id = await self.orchestrator.move(guild_id_of(interaction), invoker)
        await send_ephemeral(interaction, DiscordUIMessages.MOVED.format(channel_id=channel_id))


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(PlaybackCog(bot, container_of(bot)))
