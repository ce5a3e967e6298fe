"""Tests for the slash-command guard helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord

from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.guards.voice_guards import (
    build_invoker,
    ensure_admin,
    is_admin,
    member_invoker,
)


def _make_member(
    *,
    user_id: int = 7,
    in_voice: bool = True,
    voice_channel_id: int = 222,
    administrator: bool = False,
    manage_guild: bool = False,
) -> MagicMock:
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.display_name = "Listener"
    member.guild_permissions = MagicMock(administrator=administrator, manage_guild=manage_guild)
    member.roles = [MagicMock(id=10), MagicMock(id=11)]
    if in_voice:
        member.voice = MagicMock()
        member.voice.channel = MagicMock(id=voice_channel_id)
    else:
        member.voice = None
    return member


def _make_interaction(user, *, in_guild: bool = True, channel_id: int | None = 333) -> MagicMock:
    interaction = MagicMock(spec=discord.Interaction)
    interaction.guild = MagicMock() if in_guild else None
    interaction.user = user
    interaction.channel_id = channel_id
    interaction.response = MagicMock()
    interaction.response.is_done.return_value = False
    interaction.response.send_message = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    return interaction


# =============================================================================
# is_admin / member_invoker
# =============================================================================


class TestIsAdmin:
    def test_regular_member(self):
        assert not is_admin(_make_member())

    def test_administrator(self):
        assert is_admin(_make_member(administrator=True))

    def test_manage_guild(self):
        assert is_admin(_make_member(manage_guild=True))

    def test_bot_owner(self):
        assert is_admin(_make_member(user_id=42), owner_ids=(42,))


class TestMemberInvoker:
    def test_snapshot_in_voice(self):
        invoker = member_invoker(_make_member(), 333)

        assert invoker.user_id == 7
        assert invoker.display_name == "Listener"
        assert invoker.voice_channel_id == 222
        assert invoker.text_channel_id == 333
        assert invoker.role_ids == (10, 11)
        assert not invoker.is_admin

    def test_not_in_voice(self):
        assert member_invoker(_make_member(in_voice=False), 333).voice_channel_id is None


# =============================================================================
# Interaction guards
# =============================================================================


class TestBuildInvoker:
    async def test_guild_member(self):
        invoker = await build_invoker(_make_interaction(_make_member()))
        assert invoker is not None
        assert invoker.user_id == 7

    async def test_outside_guild(self):
        interaction = _make_interaction(_make_member(), in_guild=False)

        assert await build_invoker(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_SERVER_ONLY, ephemeral=True
        )

    async def test_non_member_user(self):
        interaction = _make_interaction(MagicMock(spec=discord.User))

        assert await build_invoker(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_VERIFY_VOICE_FAILED, ephemeral=True
        )


class TestEnsureAdmin:
    async def test_admin_passes(self):
        interaction = _make_interaction(_make_member(manage_guild=True))
        assert await ensure_admin(interaction)

    async def test_regular_member_rejected(self):
        interaction = _make_interaction(_make_member())

        assert not await ensure_admin(interaction)
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_ADMIN_REQUIRED, ephemeral=True
        )

    async def test_uses_followup_after_defer(self):
        interaction = _make_interaction(_make_member())
        interaction.response.is_done.return_value = True

        assert not await ensure_admin(interaction)
        interaction.followup.send.assert_awaited_once()
