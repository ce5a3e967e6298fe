"""Discord voice adapter implementing AudioBackend for connection and playback."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import discord

from guild_jukebox.application.interfaces.audio_backend import AudioBackend
from guild_jukebox.domain.music.value_objects import FilterType, StartSeconds, TrackEndReason
from guild_jukebox.domain.shared.messages import LogTemplates
from guild_jukebox.infrastructure.audio.filters import playback_speed

if TYPE_CHECKING:
    from ....application.interfaces.audio_backend import (
        TrackEndedCallback,
        TrackExceptionCallback,
    )
    from ....domain.music.entities import Track
    from ...audio.ffmpeg_player import FFmpegSourceFactory

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0
# A track that ends this soon after starting never really loaded.
LOAD_FAILED_WINDOW: float = 1.0


@dataclass
class _GuildPlayback:
    """What one guild is playing, plus a clock for resuming at the same spot."""

    track: Track
    volume: int
    filter_type: FilterType
    offset: float = 0.0
    started_at: float = field(default_factory=time.monotonic)
    resumed_at: float | None = field(default_factory=time.monotonic)
    end_reason: TrackEndReason | None = None

    def position(self) -> float:
        if self.resumed_at is None:
            return self.offset
        return self.offset + (time.monotonic() - self.resumed_at) * playback_speed(self.filter_type)

    def pause(self) -> None:
        self.offset = self.position()
        self.resumed_at = None

    def resume(self) -> None:
        if self.resumed_at is None:
            self.resumed_at = time.monotonic()

    @property
    def is_paused(self) -> bool:
        return self.resumed_at is None


class DiscordAudioBackend(AudioBackend):
    """Drives discord.py voice clients and reports why each track ended.

    Manual stops, replacements, and disconnects are tagged before the voice
    client is told to stop, so the after-callback can report them as such.
    """

    def __init__(
        self,
        bot: discord.Client,
        *,
        source_factory: FFmpegSourceFactory,
    ) -> None:
        self._bot = bot
        self._sources = source_factory
        self._playback: dict[int, _GuildPlayback] = {}
        self._on_track_end: TrackEndedCallback | None = None
        self._on_track_exception: TrackExceptionCallback | None = None

    @property
    def self_user_id(self) -> int | None:
        return self._bot.user.id if self._bot.user else None

    def _get_guild(self, guild_id: int) -> discord.Guild | None:
        return self._bot.get_guild(guild_id)

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    def _get_voice_channel(
        self, guild_id: int, channel_id: int
    ) -> tuple[discord.Guild, discord.VoiceChannel | discord.StageChannel] | None:
        guild = self._get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return None

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            return None
        return guild, channel

    # ── Connection ──────────────────────────────────────────────────

    async def join(self, guild_id: int, voice_channel_id: int) -> bool:
        """Connect if not connected, move if in a different channel."""
        vc = self._get_voice_client(guild_id)

        if vc and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await self.leave(guild_id)
            vc = None

        if vc and vc.channel:
            if vc.channel.id == voice_channel_id:
                return True
            return await self.move(guild_id, voice_channel_id)

        target = self._get_voice_channel(guild_id, voice_channel_id)
        if target is None:
            return False
        guild, channel = target

        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                await channel.connect(self_deaf=True)
            await self._ensure_self_deaf(guild, channel)
            logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
            return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, voice_channel_id)
            return False
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, voice_channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel | None,
    ) -> None:
        try:
            if channel is None:
                return
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except discord.DiscordException as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    async def leave(self, guild_id: int) -> bool:
        playback = self._playback.pop(guild_id, None)
        if playback is not None:
            playback.end_reason = TrackEndReason.CLEANUP

        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        await vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    async def move(self, guild_id: int, voice_channel_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return await self.join(guild_id, voice_channel_id)

        target = self._get_voice_channel(guild_id, voice_channel_id)
        if target is None:
            return False
        guild, channel = target

        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                await vc.move_to(channel)
            await self._ensure_self_deaf(guild, channel)
            logger.info(LogTemplates.VOICE_MOVED, channel.name)
            return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_MOVE_TIMEOUT, voice_channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    async def get_listeners(self, guild_id: int) -> list[int]:
        """Return user IDs of non-bot, non-deafened members in the voice channel."""
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.channel:
            return []

        listeners: list[int] = []
        for member in vc.channel.members:
            if member.bot:
                continue
            if member.voice and (member.voice.deaf or member.voice.self_deaf):
                continue
            listeners.append(member.id)
        return listeners

    # ── Playback ────────────────────────────────────────────────────

    async def play(
        self,
        guild_id: int,
        track: Track,
        *,
        volume: int,
        filter_type: FilterType,
        start_seconds: StartSeconds | None = None,
    ) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_connected():
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return False

        if not track.stream_url:
            logger.error(LogTemplates.YTDLP_NO_STREAM_URL, track.title)
            return False

        return self._start(
            vc,
            guild_id,
            _GuildPlayback(
                track=track,
                volume=volume,
                filter_type=filter_type,
                offset=float(start_seconds) if start_seconds else 0.0,
            ),
            start_seconds,
        )

    def _start(
        self,
        vc: discord.VoiceClient,
        guild_id: int,
        playback: _GuildPlayback,
        start_seconds: StartSeconds | None,
    ) -> bool:
        previous = self._playback.get(guild_id)
        if vc.is_playing() or vc.is_paused():
            if previous is not None:
                previous.end_reason = TrackEndReason.REPLACED
            vc.stop()

        try:
            source = self._sources.create_source(
                playback.track,
                volume=playback.volume,
                filter_type=playback.filter_type,
                start_seconds=start_seconds,
            )
        except ValueError as e:
            logger.error(LogTemplates.PLAYBACK_FAILED_START, e)
            return False

        def after_callback(error: Exception | None = None) -> None:
            # Runs on the voice player thread.
            asyncio.run_coroutine_threadsafe(
                self._handle_track_end(guild_id, playback, error),
                self._bot.loop,
            )

        try:
            vc.play(source, after=after_callback)
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            source.cleanup()
            return False

        self._playback[guild_id] = playback
        logger.info(LogTemplates.PLAYBACK_STARTED, playback.track.title, guild_id)
        return True

    def _end_reason(self, playback: _GuildPlayback) -> TrackEndReason:
        if playback.end_reason is not None:
            return playback.end_reason
        if time.monotonic() - playback.started_at < LOAD_FAILED_WINDOW:
            return TrackEndReason.LOAD_FAILED
        return TrackEndReason.FINISHED

    async def _handle_track_end(
        self, guild_id: int, playback: _GuildPlayback, error: Exception | None
    ) -> None:
        if self._playback.get(guild_id) is playback:
            del self._playback[guild_id]

        reason = self._end_reason(playback)
        logger.info(LogTemplates.TRACK_ENDED, guild_id, reason.value, error)

        if error is not None and playback.end_reason is None:
            logger.warning(LogTemplates.PLAYBACK_ERROR, guild_id, error)
            await self._dispatch(
                "track exception", guild_id, self._on_track_exception, str(error)
            )
            return
        await self._dispatch(
            "track end", guild_id, self._on_track_end, playback.track.id, reason
        )

    async def _dispatch(
        self,
        name: str,
        guild_id: int,
        callback: Callable[..., Awaitable[None]] | None,
        *args: Any,
    ) -> None:
        if callback is None:
            logger.warning(LogTemplates.PLAYBACK_NO_CALLBACK, name, guild_id)
            return
        try:
            await callback(guild_id, *args)
        except Exception:
            logger.exception(LogTemplates.PLAYBACK_CALLBACK_ERROR, name, guild_id)

    async def stop(self, guild_id: int) -> bool:
        playback = self._playback.pop(guild_id, None)
        if playback is not None:
            playback.end_reason = TrackEndReason.STOPPED

        vc = self._get_voice_client(guild_id)
        if not vc:
            return False
        if vc.is_playing() or vc.is_paused():
            vc.stop()
            logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id)
        return True

    async def pause(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_playing():
            return False

        vc.pause()
        playback = self._playback.get(guild_id)
        if playback is not None:
            playback.pause()
        logger.info(LogTemplates.PLAYBACK_PAUSED, guild_id)
        return True

    async def resume(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc or not vc.is_paused():
            return False

        vc.resume()
        playback = self._playback.get(guild_id)
        if playback is not None:
            playback.resume()
        logger.info(LogTemplates.PLAYBACK_RESUMED, guild_id)
        return True

    async def set_volume(self, guild_id: int, volume: int) -> bool:
        playback = self._playback.get(guild_id)
        if playback is not None:
            playback.volume = volume

        vc = self._get_voice_client(guild_id)
        if not vc or not isinstance(vc.source, discord.PCMVolumeTransformer):
            return False
        vc.source.volume = max(0, min(100, volume)) / 100
        return True

    async def apply_filter(self, guild_id: int, filter_type: FilterType) -> bool:
        """Restart the current track at its current position with the new filter graph."""
        vc = self._get_voice_client(guild_id)
        playback = self._playback.get(guild_id)
        if not vc or playback is None:
            return False
        if playback.filter_type is filter_type:
            return True

        was_paused = playback.is_paused
        position = playback.position()
        restarted = _GuildPlayback(
            track=playback.track,
            volume=playback.volume,
            filter_type=filter_type,
            offset=position,
            # Keep the original start so a quick restart is not mistaken for a load failure.
            started_at=playback.started_at,
        )
        start = StartSeconds.from_optional(round(position, 2))
        if not self._start(vc, guild_id, restarted, start):
            return False

        logger.info(
            LogTemplates.PLAYBACK_RESTARTED,
            playback.track.title,
            position,
            guild_id,
            filter_type.value,
        )
        if was_paused:
            vc.pause()
            restarted.pause()
        return True

    # ── Callbacks ───────────────────────────────────────────────────

    def set_track_end_callback(self, callback: TrackEndedCallback) -> None:
        self._on_track_end = callback

    def set_track_exception_callback(self, callback: TrackExceptionCallback) -> None:
        self._on_track_exception = callback
