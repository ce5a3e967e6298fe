"""In-memory registry owning one GuildSession per guild."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from guild_jukebox.domain.music.entities import GuildSession, PlaybackQueue, PlayHistory
from guild_jukebox.domain.shared.datetime_utils import utcnow
from guild_jukebox.domain.shared.exceptions import (
    NoActiveSessionError,
    NoVoiceChannelError,
    VoiceJoinFailedError,
)
from guild_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import PlayerSettings
    from ..interfaces.audio_backend import AudioBackend

logger = logging.getLogger(__name__)


class GuildSessionRegistry:
    """Session lookup plus one asyncio.Lock per guild.

    Callers hold ``lock(guild_id)`` around every read-modify-write of a
    session; the registry itself never takes the lock.
    """

    def __init__(self, *, audio_backend: AudioBackend, settings: PlayerSettings) -> None:
        self._backend = audio_backend
        self._settings = settings
        self._sessions: dict[int, GuildSession] = {}
        self._locks: dict[int, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def lock(self, guild_id: int) -> asyncio.Lock:
        # Only free locks are ever dropped, so waiters never end up on different locks.
        lock = self._locks.get(guild_id)
        if lock is None:
            lock = self._locks[guild_id] = asyncio.Lock()
        return lock

    def get(self, guild_id: int) -> GuildSession | None:
        return self._sessions.get(guild_id)

    def require(self, guild_id: int) -> GuildSession:
        session = self._sessions.get(guild_id)
        if session is None:
            raise NoActiveSessionError(guild_id)
        return session

    def sessions(self) -> list[GuildSession]:
        return list(self._sessions.values())

    async def get_or_create(
        self,
        guild_id: int,
        *,
        voice_channel_id: int | None,
        text_channel_id: int,
        default_volume: int | None = None,
    ) -> GuildSession:
        """Return the guild's connected session, joining voice when needed.

        A session that went idle and left voice is reconnected and reused so
        its history and player settings carry over.

        Raises:
            NoVoiceChannelError: The requesting user is not in a voice channel.
            VoiceJoinFailedError: The backend could not join the channel.
        """
        if voice_channel_id is None:
            raise NoVoiceChannelError()

        session = self._sessions.get(guild_id)
        if session is not None and session.connected:
            return session

        if not await self._backend.join(guild_id, voice_channel_id):
            raise VoiceJoinFailedError(voice_channel_id)

        if session is not None:
            session.voice_channel_id = voice_channel_id
            session.text_channel_id = text_channel_id
            session.connected = True
            session.touch()
            logger.info(LogTemplates.SESSION_REJOINED, voice_channel_id, guild_id)
            return session

        volume = self._settings.default_volume if default_volume is None else default_volume
        session = GuildSession(
            guild_id=guild_id,
            voice_channel_id=voice_channel_id,
            text_channel_id=text_channel_id,
            queue=PlaybackQueue(max_size=self._settings.max_queue_size),
            history=PlayHistory(max_size=self._settings.max_history),
            volume=volume,
            action_log_size=self._settings.action_log_size,
        )
        self._sessions[guild_id] = session
        logger.info(LogTemplates.SESSION_CREATED, guild_id, voice_channel_id)
        return session

    def remove(self, guild_id: int) -> GuildSession | None:
        session = self._sessions.pop(guild_id, None)
        if session is not None:
            logger.info(LogTemplates.SESSION_REMOVED, guild_id)
        self._discard_lock(guild_id)
        return session

    def prune_idle(self, older_than: timedelta) -> list[int]:
        """Drop idle, unlocked sessions untouched for longer than *older_than*.

        Free locks left behind by sessions that are already gone are dropped
        too; a teardown removes its session while still holding the lock.
        """
        cutoff = utcnow() - older_than
        stale = [
            guild_id
            for guild_id, session in self._sessions.items()
            if session.is_idle
            and session.last_activity < cutoff
            and self._lock_is_free(self._locks.get(guild_id))
        ]
        for guild_id in stale:
            self.remove(guild_id)

        for guild_id in [g for g in self._locks if g not in self._sessions]:
            self._discard_lock(guild_id)
        return stale

    @staticmethod
    def _lock_is_free(lock: asyncio.Lock | None) -> bool:
        if lock is None:
            return True
        # A waiter that was just woken does not hold the lock yet.
        return not lock.locked() and not getattr(lock, "_waiters", None)

    def _discard_lock(self, guild_id: int) -> None:
        if self._lock_is_free(self._locks.get(guild_id)):
            self._locks.pop(guild_id, None)
