"""Reusable guard functions for Discord slash commands and component callbacks.

These are free functions that accept explicit dependencies rather than relying
on a specific cog instance, making them usable from any cog or view.
"""

from __future__ import annotations

from collections.abc import Collection

import discord

from guild_jukebox.application.services.orchestrator_models import Invoker
from guild_jukebox.domain.shared.messages import DiscordUIMessages


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message, handling both fresh and already-responded interactions."""
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Validate that the interaction comes from a guild member. Returns None with error on failure."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    if not isinstance(user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_VERIFY_VOICE_FAILED)
        return None

    return user


def is_admin(member: discord.Member, owner_ids: Collection[int] = ()) -> bool:
    """Server managers and bot owners bypass DJ and channel restrictions."""
    permissions = member.guild_permissions
    return permissions.administrator or permissions.manage_guild or member.id in owner_ids


def member_invoker(
    member: discord.Member, text_channel_id: int, owner_ids: Collection[int] = ()
) -> Invoker:
    """Snapshot a guild member into the orchestrator's invoker model."""
    voice_channel = member.voice.channel if member.voice else None
    return Invoker(
        user_id=member.id,
        display_name=member.display_name,
        text_channel_id=text_channel_id,
        voice_channel_id=voice_channel.id if voice_channel else None,
        role_ids=tuple(role.id for role in member.roles),
        is_admin=is_admin(member, owner_ids),
    )


async def build_invoker(
    interaction: discord.Interaction, owner_ids: Collection[int] = ()
) -> Invoker | None:
    """Build an Invoker for the interaction, or reply with why it cannot be used."""
    member = await get_member(interaction)
    if member is None or interaction.channel_id is None:
        return None
    return member_invoker(member, interaction.channel_id, owner_ids)


async def ensure_admin(interaction: discord.Interaction, owner_ids: Collection[int] = ()) -> bool:
    """Check the user may change guild settings. Returns False with error on failure."""
    member = await get_member(interaction)
    if member is None:
        return False
    if not is_admin(member, owner_ids):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_ADMIN_REQUIRED)
        return False
    return True
