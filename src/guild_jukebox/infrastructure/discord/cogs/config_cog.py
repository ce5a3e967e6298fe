"""Slash-command group for per-guild player settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from guild_jukebox.domain.guild.entities import GuildConfig
from guild_jukebox.domain.shared.exceptions import BusinessRuleViolationError
from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.cogs._base import container_of
from guild_jukebox.infrastructure.discord.guards.voice_guards import ensure_admin, send_ephemeral

if TYPE_CHECKING:
    from collections.abc import Callable

    from ....config.container import Container

logger = logging.getLogger(__name__)

_ROLE_RULE_MESSAGES = {
    "DJ_ROLE_EXISTS": DiscordUIMessages.DJ_ROLE_ALREADY,
    "DJ_ROLE_LIMIT": DiscordUIMessages.DJ_ROLE_LIMIT,
    "DJ_ROLE_MISSING": DiscordUIMessages.DJ_ROLE_MISSING,
}


def format_config(config: GuildConfig) -> str:
    def mentions(ids: list[int], fmt: str) -> str:
        return ", ".join(fmt.format(i) for i in ids) or "none"

    return DiscordUIMessages.CONFIG_SUMMARY.format(
        dj_only="on" if config.dj_only else "off",
        dj_roles=mentions(config.dj_role_ids, "<@&{}>"),
        channels=mentions(config.allowed_channel_ids, "<#{}>") if config.allowed_channel_ids else "all",
        volume=config.default_volume if config.default_volume is not None else "bot default",
        request_channel=f"<#{config.request_channel_id}>" if config.request_channel_id else "none",
        playlists="allowed" if config.playlists_allowed else "first track only",
    )


@app_commands.guild_only()
@app_commands.default_permissions(manage_guild=True)
class ConfigCog(commands.GroupCog, group_name="settings", group_description="Player settings for this server."):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container
        super().__init__()

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return await ensure_admin(interaction, self.container.settings.discord.owner_ids)

    async def _update(
        self, interaction: discord.Interaction, mutator: Callable[[GuildConfig], None]
    ) -> GuildConfig:
        assert interaction.guild_id is not None
        return await self.container.guild_config_repository.update(interaction.guild_id, mutator)

    @app_commands.command(name="show", description="Show the current player settings.")
    async def show(self, interaction: discord.Interaction) -> None:
        assert interaction.guild_id is not None
        config = await self.container.guild_config_repository.get(interaction.guild_id)
        await send_ephemeral(interaction, format_config(config))

    @app_commands.command(name="dj-only", description="Toggle restricting controls to DJ roles.")
    async def dj_only(self, interaction: discord.Interaction) -> None:
        def toggle(config: GuildConfig) -> None:
            config.dj_only = not config.dj_only

        config = await self._update(interaction, toggle)
        await send_ephemeral(
            interaction, DiscordUIMessages.DJ_ONLY_ON if config.dj_only else DiscordUIMessages.DJ_ONLY_OFF
        )

    @app_commands.command(name="dj-add", description="Add a DJ role.")
    async def dj_add(self, interaction: discord.Interaction, role: discord.Role) -> None:
        await self._change_role(interaction, role, add=True)

    @app_commands.command(name="dj-remove", description="Remove a DJ role.")
    async def dj_remove(self, interaction: discord.Interaction, role: discord.Role) -> None:
        await self._change_role(interaction, role, add=False)

    async def _change_role(self, interaction: discord.Interaction, role: discord.Role, *, add: bool) -> None:
        def change(config: GuildConfig) -> None:
            if add:
                config.add_dj_role(role.id)
            else:
                config.remove_dj_role(role.id)

        try:
            await self._update(interaction, change)
        except BusinessRuleViolationError as e:
            template = _ROLE_RULE_MESSAGES.get(e.rule)
            if template is None:
                raise
            await send_ephemeral(
                interaction, template.format(role=role.mention, limit=GuildConfig.MAX_DJ_ROLES)
            )
            return

        template = DiscordUIMessages.DJ_ROLE_ADDED if add else DiscordUIMessages.DJ_ROLE_REMOVED
        await send_ephemeral(interaction, template.format(role=role.mention))

    @app_commands.command(
        name="request-channel",
        description="Read song requests from a channel; omit the channel to turn this off.",
    )
    async def request_channel(
        self, interaction: discord.Interaction, channel: discord.TextChannel | None = None
    ) -> None:
        def assign(config: GuildConfig) -> None:
            config.request_channel_id = channel.id if channel else None

        await self._update(interaction, assign)
        if channel is None:
            await send_ephemeral(interaction, DiscordUIMessages.REQUEST_CHANNEL_CLEARED)
        else:
            await send_ephemeral(
                interaction, DiscordUIMessages.REQUEST_CHANNEL_SET.format(channel_id=channel.id)
            )

    @app_commands.command(
        name="allow-channel",
        description="Toggle whether music commands are allowed in a channel.",
    )
    async def allow_channel(
        self, interaction: discord.Interaction, channel: discord.TextChannel
    ) -> None:
        allowed = False

        def toggle(config: GuildConfig) -> None:
            nonlocal allowed
            allowed = config.toggle_allowed_channel(channel.id)

        await self._update(interaction, toggle)
        template = DiscordUIMessages.CHANNEL_ALLOWED if allowed else DiscordUIMessages.CHANNEL_DISALLOWED
        await send_ephemeral(interaction, template.format(channel_id=channel.id))

    @app_commands.command(name="default-volume", description="Volume new sessions start at.")
    async def default_volume(
        self, interaction: discord.Interaction, level: app_commands.Range[int, 0, 100]
    ) -> None:
        def assign(config: GuildConfig) -> None:
            config.default_volume = level

        await self._update(interaction, assign)
        await send_ephemeral(interaction, DiscordUIMessages.DEFAULT_VOLUME_SET.format(volume=level))

    @app_commands.command(name="playlists", description="Toggle whether playlist links queue every entry.")
    async def playlists(self, interaction: discord.Interaction) -> None:
        def toggle(config: GuildConfig) -> None:
            config.playlists_allowed = not config.playlists_allowed

        config = await self._update(interaction, toggle)
        await send_ephemeral(
            interaction,
            DiscordUIMessages.PLAYLISTS_ALLOWED
            if config.playlists_allowed
            else DiscordUIMessages.PLAYLISTS_BLOCKED,
        )


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(ConfigCog(bot, container_of(bot)))
