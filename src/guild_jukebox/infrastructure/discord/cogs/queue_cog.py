"""Slash-command cog for inspecting and clearing the queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.cogs._base import (
    OrchestratorCog,
    container_of,
    guild_id_of,
)
from guild_jukebox.infrastructure.discord.guards.voice_guards import get_member, send_ephemeral
from guild_jukebox.utils.reply import format_duration, format_track_line, paginate

if TYPE_CHECKING:
    from ....application.services.orchestrator_models import QueueView

QUEUE_PER_PAGE = 10


def build_queue_embed(view: QueueView, *, guild_name: str, page: int = 1) -> discord.Embed:
    embed = discord.Embed(
        title=DiscordUIMessages.QUEUE_TITLE.format(guild=guild_name),
        color=discord.Color.blurple(),
    )

    if view.current is not None:
        track = view.current.track
        embed.add_field(
            name="Now playing",
            value=format_track_line(
                None, track.title, track.uri, track.duration_seconds, view.current.requested_by.mention
            ),
            inline=False,
        )

    shown, page, total_pages = paginate(view.upcoming, page, QUEUE_PER_PAGE)
    if shown:
        offset = (page - 1) * QUEUE_PER_PAGE
        lines = [
            format_track_line(
                offset + i,
                item.track.title,
                item.track.uri,
                item.track.duration_seconds,
                item.requested_by.mention,
            )
            for i, item in enumerate(shown, start=1)
        ]
        remaining = view.total_length - offset - len(shown)
        if remaining > 0:
            lines.append(DiscordUIMessages.QUEUE_MORE.format(count=remaining))
        embed.add_field(name=f"Up next (page {page}/{total_pages})", value="\n".join(lines), inline=False)
    else:
        embed.description = DiscordUIMessages.QUEUE_EMPTY

    embed.set_footer(
        text=DiscordUIMessages.QUEUE_FOOTER.format(
            count=view.total_length,
            duration=format_duration(view.total_duration_seconds),
            history=view.history_length,
        )
    )
    return embed


class QueueCog(OrchestratorCog):
    @app_commands.command(name="queue", description="Show the upcoming tracks.")
    @app_commands.describe(page="Page number")
    async def queue(
        self, interaction: discord.Interaction, page: app_commands.Range[int, 1] = 1
    ) -> None:
        if await get_member(interaction) is None:
            return

        view = await self.orchestrator.get_queue_view(guild_id_of(interaction))
        guild_name = interaction.guild.name if interaction.guild else ""
        await interaction.response.send_message(
            embed=build_queue_embed(view, guild_name=guild_name, page=page), ephemeral=True
        )

    @app_commands.command(name="clear", description="Remove every upcoming track from the queue.")
    async def clear(self, interaction: discord.Interaction) -> None:
        invoker = await self._invoker(interaction)
        if invoker is None:
            return

        count = await self.orchestrator.clear_queue(guild_id_of(interaction), invoker)
        await send_ephemeral(interaction, DiscordUIMessages.QUEUE_CLEARED.format(count=count))


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(QueueCog(bot, container_of(bot)))
