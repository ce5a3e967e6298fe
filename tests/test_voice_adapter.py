"""Tests for the Discord voice adapter's playback bookkeeping."""

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from conftest import GUILD_ID, make_track

from guild_jukebox.domain.music.value_objects import FilterType, TrackEndReason
from guild_jukebox.infrastructure.discord.adapters.voice_adapter import (
    LOAD_FAILED_WINDOW,
    DiscordAudioBackend,
    _GuildPlayback,
)


@pytest.fixture
def voice_client():
    vc = MagicMock(spec=discord.VoiceClient)
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    return vc


@pytest.fixture
def source_factory():
    return MagicMock()


@pytest.fixture
def audio_backend(voice_client, source_factory):
    bot = MagicMock()
    bot.get_guild.return_value = MagicMock(voice_client=voice_client)
    return DiscordAudioBackend(bot, source_factory=source_factory)


def _playback(name: str = "a", *, age: float = LOAD_FAILED_WINDOW + 5) -> _GuildPlayback:
    playback = _GuildPlayback(track=make_track(name), volume=50, filter_type=FilterType.NONE)
    playback.started_at -= age
    return playback


class TestTrackEndDispatch:
    async def test_reports_ended_track_id(self, audio_backend):
        callback = AsyncMock()
        audio_backend.set_track_end_callback(callback)
        playback = _playback("a")

        await audio_backend._handle_track_end(GUILD_ID, playback, None)

        callback.assert_awaited_once_with(
            GUILD_ID, make_track("a").id, TrackEndReason.FINISHED
        )

    async def test_early_end_is_load_failure(self, audio_backend):
        callback = AsyncMock()
        audio_backend.set_track_end_callback(callback)

        await audio_backend._handle_track_end(GUILD_ID, _playback("b", age=0), None)

        callback.assert_awaited_once_with(
            GUILD_ID, make_track("b").id, TrackEndReason.LOAD_FAILED
        )

    async def test_replaced_track_keeps_its_own_id(self, audio_backend):
        callback = AsyncMock()
        audio_backend.set_track_end_callback(callback)
        playback = _playback("a")
        playback.end_reason = TrackEndReason.REPLACED

        await audio_backend._handle_track_end(GUILD_ID, playback, None)

        callback.assert_awaited_once_with(
            GUILD_ID, make_track("a").id, TrackEndReason.REPLACED
        )

    async def test_error_goes_to_exception_callback(self, audio_backend):
        on_end = AsyncMock()
        on_exception = AsyncMock()
        audio_backend.set_track_end_callback(on_end)
        audio_backend.set_track_exception_callback(on_exception)

        await audio_backend._handle_track_end(GUILD_ID, _playback(), RuntimeError("decoder"))

        on_exception.assert_awaited_once_with(GUILD_ID, "decoder")
        on_end.assert_not_awaited()

    async def test_callback_errors_are_contained(self, audio_backend):
        audio_backend.set_track_end_callback(AsyncMock(side_effect=RuntimeError("boom")))

        await audio_backend._handle_track_end(GUILD_ID, _playback(), None)


class TestPlay:
    async def test_refuses_track_without_stream(self, audio_backend, source_factory, voice_client):
        started = await audio_backend.play(
            GUILD_ID, make_track("a", stream_url=None), volume=50, filter_type=FilterType.NONE
        )

        assert started is False
        source_factory.create_source.assert_not_called()
        voice_client.play.assert_not_called()

    async def test_starts_streamed_track(self, audio_backend, voice_client):
        started = await audio_backend.play(
            GUILD_ID, make_track("a"), volume=50, filter_type=FilterType.NONE
        )

        assert started is True
        voice_client.play.assert_called_once()
