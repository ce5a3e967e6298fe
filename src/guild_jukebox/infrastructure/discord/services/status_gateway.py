"""Discord rendering of status payloads: an embed plus the player controls."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from guild_jukebox.application.interfaces.status_gateway import (
    StatusGateway,
    StatusMessageGoneError,
    StatusMessageRef,
)
from guild_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from guild_jukebox.infrastructure.discord.views.player_controls_view import PlayerControlsView
from guild_jukebox.utils.reply import truncate

if TYPE_CHECKING:
    from discord.abc import Messageable
    from discord.ext import commands

    from ....application.services.status_projector import DisplayPayload
    from ....config.container import Container

logger = logging.getLogger(__name__)

COLOR_PLAYING = discord.Color.green()
COLOR_PAUSED = discord.Color.orange()
COLOR_IDLE = discord.Color.dark_grey()


def build_status_embed(payload: DisplayPayload) -> discord.Embed:
    if payload.is_idle:
        embed = discord.Embed(
            title=DiscordUIMessages.STATUS_TITLE_IDLE,
            description=DiscordUIMessages.STATUS_IDLE_DESCRIPTION,
            color=COLOR_IDLE,
        )
    else:
        title = (
            DiscordUIMessages.STATUS_TITLE_PAUSED
            if payload.is_paused
            else DiscordUIMessages.STATUS_TITLE_PLAYING
        )
        embed = discord.Embed(
            title=title,
            description=f"[{truncate(payload.title or '', 200)}]({payload.uri})",
            color=COLOR_PAUSED if payload.is_paused else COLOR_PLAYING,
        )
        if payload.thumbnail_url:
            embed.set_thumbnail(url=payload.thumbnail_url)
        if payload.artist:
            embed.add_field(name="Artist", value=truncate(payload.artist, 100), inline=True)
        embed.add_field(name="Duration", value=payload.duration or "–", inline=True)
        if payload.requester_id is not None:
            embed.add_field(name="Requested by", value=f"<@{payload.requester_id}>", inline=True)

        embed.add_field(name="Volume", value=f"{payload.volume}%", inline=True)
        embed.add_field(
            name="Filter",
            value=payload.filter_name or DiscordUIMessages.STATUS_NO_FILTER,
            inline=True,
        )
        flags = [
            f"🔂 {'on' if payload.loop_enabled else 'off'}",
            f"♾️ {'on' if payload.autoplay_enabled else 'off'}",
        ]
        embed.add_field(name="Modes", value=" • ".join(flags), inline=True)

        if payload.up_next:
            embed.add_field(
                name=f"Up next ({payload.queue_length} queued)",
                value=truncate(payload.up_next, 100),
                inline=False,
            )
        if payload.votes:
            embed.add_field(
                name="Skip votes",
                value=DiscordUIMessages.STATUS_VOTES.format(
                    votes=payload.votes, needed=payload.votes_required
                ),
                inline=True,
            )

    if payload.recent_actions:
        embed.add_field(name="Recent", value="\n".join(payload.recent_actions), inline=False)
    embed.set_footer(text=f"🔊 <#{payload.voice_channel_id}>")
    return embed


class DiscordStatusGateway(StatusGateway):
    """Posts, edits and deletes status messages through the bot's HTTP client."""

    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self._bot = bot
        self._container = container

    def _render(self, payload: DisplayPayload) -> tuple[discord.Embed, discord.ui.View | None]:
        embed = build_status_embed(payload)
        if payload.is_idle:
            return embed, None
        return embed, PlayerControlsView(payload=payload, container=self._container)

    async def _channel(self, channel_id: int) -> Messageable:
        channel = self._bot.get_channel(channel_id)
        if channel is None:
            channel = await self._bot.fetch_channel(channel_id)
        return channel  # type: ignore[return-value]

    async def send_status(self, channel_id: int, payload: DisplayPayload) -> StatusMessageRef | None:
        embed, view = self._render(payload)
        try:
            channel = await self._channel(channel_id)
            if view is None:
                message = await channel.send(embed=embed)
            else:
                message = await channel.send(embed=embed, view=view)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.STATUS_POST_FAILED, channel_id, e)
            return None

        if isinstance(view, PlayerControlsView):
            view.set_message(message)
        return StatusMessageRef(channel_id=channel_id, message_id=message.id)

    async def edit_status(self, ref: StatusMessageRef, payload: DisplayPayload) -> None:
        embed, view = self._render(payload)
        try:
            channel = await self._channel(ref.channel_id)
            message = channel.get_partial_message(ref.message_id)  # type: ignore[attr-defined]
            await message.edit(embed=embed, view=view)
        except (discord.HTTPException, AttributeError) as e:
            raise StatusMessageGoneError(str(e)) from e

    async def delete_status(self, ref: StatusMessageRef) -> None:
        try:
            channel = await self._channel(ref.channel_id)
            await channel.get_partial_message(ref.message_id).delete()  # type: ignore[attr-defined]
        except (discord.HTTPException, AttributeError) as e:
            logger.debug(LogTemplates.STATUS_DELETE_FAILED, ref.message_id, e)

    async def send_notice(self, channel_id: int, text: str) -> None:
        try:
            channel = await self._channel(channel_id)
            await channel.send(text)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.NOTICE_SEND_FAILED, channel_id, e)
