"""
Tests for bot-level command error handling

Tests for:
- error_reply mapping of domain errors, check failures and unexpected errors
- The global slash-command error handler
- Cog extension list
"""

from unittest.mock import AsyncMock, MagicMock

import discord
from discord import app_commands

from guild_jukebox.domain.shared.exceptions import EmptyHistoryError, NoVoiceChannelError
from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.bot import COGS, JukeboxBot, error_reply


def _wrapped(original: Exception) -> Exception:
    error = app_commands.AppCommandError("invoke failed")
    error.original = original  # type: ignore[attr-defined]
    return error


class TestErrorReply:
    def test_domain_error(self):
        reply = error_reply(EmptyHistoryError())
        assert reply == DiscordUIMessages.ERROR_PREFIX.format(
            message="There is no previous track to go back to."
        )

    def test_wrapped_domain_error(self):
        reply = error_reply(_wrapped(NoVoiceChannelError()))
        assert reply is not None
        assert "voice channel" in reply

    def test_check_failure_is_silent(self):
        assert error_reply(app_commands.CheckFailure("no")) is None

    def test_unexpected_error(self):
        assert error_reply(_wrapped(RuntimeError("boom"))) == DiscordUIMessages.ERROR_GENERIC


def _interaction(*, done: bool) -> MagicMock:
    interaction = MagicMock()
    interaction.command.name = "play"
    interaction.response.is_done.return_value = done
    interaction.response.send_message = AsyncMock()
    interaction.followup.send = AsyncMock()
    return interaction


class TestAppCommandErrorHandler:
    async def test_replies_ephemerally(self):
        interaction = _interaction(done=False)
        bot = MagicMock(spec=JukeboxBot)

        await JukeboxBot._on_app_command_error(bot, interaction, _wrapped(EmptyHistoryError()))

        interaction.response.send_message.assert_awaited_once()
        assert interaction.response.send_message.call_args.kwargs["ephemeral"] is True

    async def test_uses_followup_when_deferred(self):
        interaction = _interaction(done=True)
        bot = MagicMock(spec=JukeboxBot)

        await JukeboxBot._on_app_command_error(bot, interaction, _wrapped(RuntimeError("x")))

        interaction.followup.send.assert_awaited_once_with(
            DiscordUIMessages.ERROR_GENERIC, ephemeral=True
        )

    async def test_check_failure_sends_nothing(self):
        interaction = _interaction(done=False)
        bot = MagicMock(spec=JukeboxBot)

        await JukeboxBot._on_app_command_error(bot, interaction, app_commands.CheckFailure())

        interaction.response.send_message.assert_not_awaited()
        interaction.followup.send.assert_not_awaited()

    async def test_send_failure_is_logged(self):
        interaction = _interaction(done=False)
        response = MagicMock(status=500, reason="error")
        interaction.response.send_message.side_effect = discord.HTTPException(response, "x")
        bot = MagicMock(spec=JukeboxBot)

        await JukeboxBot._on_app_command_error(bot, interaction, _wrapped(EmptyHistoryError()))


def test_cogs_are_package_modules():
    assert len(COGS) == len(set(COGS))
    assert all(cog.startswith("guild_jukebox.infrastructure.discord.cogs.") for cog in COGS)
