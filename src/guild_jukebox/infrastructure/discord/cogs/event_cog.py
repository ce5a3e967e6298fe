"""Discord event listeners for voice state, guild membership, and the request channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_jukebox.domain.shared.exceptions import DomainError
from guild_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from guild_jukebox.infrastructure.discord.cogs._base import container_of
from guild_jukebox.infrastructure.discord.guards.voice_guards import member_invoker

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

REQUEST_REPLY_SECONDS = 15.0


class EventCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    # ─────────────────────────────────────────────────────────────────
    # Guild Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.EVENT_GUILD_JOINED, guild.name, guild.id)

    @commands.Cog.listener()
    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info(LogTemplates.EVENT_GUILD_REMOVED, guild.name, guild.id)
        await self.container.status_refresher.forget(guild.id)

    # ─────────────────────────────────────────────────────────────────
    # Voice Events
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_voice_state_update(
        self, member: discord.Member, before: discord.VoiceState, after: discord.VoiceState
    ) -> None:
        # The orchestrator only acts on the bot's own moves; everything else is a no-op.
        await self.container.session_orchestrator.on_voice_state_changed(
            member.guild.id,
            member.id,
            before.channel.id if before.channel else None,
            after.channel.id if after.channel else None,
        )

    # ─────────────────────────────────────────────────────────────────
    # Request Channel
    # ─────────────────────────────────────────────────────────────────

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        query = message.content.strip()
        if not query or query.startswith(self.container.settings.discord.command_prefix):
            return
        if not isinstance(message.author, discord.Member):
            return

        config = await self.container.guild_config_repository.get(message.guild.id)
        if config.request_channel_id != message.channel.id:
            return

        logger.info(LogTemplates.REQUEST_CHANNEL_QUERY, message.author.id, message.guild.id, query)
        invoker = member_invoker(
            message.author, message.channel.id, self.container.settings.discord.owner_ids
        )
        try:
            result = await self.container.session_orchestrator.play(
                message.guild.id, invoker, query
            )
        except DomainError as e:
            logger.info(LogTemplates.REQUEST_CHANNEL_REJECTED, message.guild.id, e.message)
            await self._reply(message, DiscordUIMessages.ERROR_PREFIX.format(message=e.message))
        else:
            if result.started is None and len(result.queued) == 1:
                await self._reply(
                    message,
                    DiscordUIMessages.PLAY_QUEUED.format(
                        title=result.queued[0].track.title, position=result.position
                    ),
                )
        finally:
            try:
                await message.delete()
            except discord.HTTPException as e:
                logger.debug(LogTemplates.STATUS_DELETE_FAILED, message.id, e)

    @staticmethod
    async def _reply(message: discord.Message, text: str) -> None:
        try:
            await message.channel.send(text, delete_after=REQUEST_REPLY_SECONDS)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.NOTICE_SEND_FAILED, message.channel.id, e)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(EventCog(bot, container_of(bot)))
