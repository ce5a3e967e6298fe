"""Port interface for the voice/audio backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.value_objects import FilterType, StartSeconds, TrackEndReason, TrackId

# Receives the guild, the id of the track that ended, and why it ended.
TrackEndedCallback = Callable[[int, "TrackId", "TrackEndReason"], Awaitable[None]]
TrackExceptionCallback = Callable[[int, str], Awaitable[None]]


class AudioBackend(ABC):
    """Interface for joining voice channels and driving playback per guild."""

    @property
    @abstractmethod
    def self_user_id(self) -> int | None:
        """User ID the backend appears as in voice channels."""
        ...

    @abstractmethod
    async def join(self, guild_id: DiscordSnowflake, voice_channel_id: DiscordSnowflake) -> bool:
        """Connect to a voice channel, moving if already connected elsewhere."""
        ...

    @abstractmethod
    async def leave(self, guild_id: DiscordSnowflake) -> bool:
        """Disconnect from voice in a guild."""
        ...

    @abstractmethod
    async def move(self, guild_id: DiscordSnowflake, voice_channel_id: DiscordSnowflake) -> bool:
        """Move the existing connection to another voice channel."""
        ...

    @abstractmethod
    async def play(
        self,
        guild_id: DiscordSnowflake,
        track: "Track",
        *,
        volume: int,
        filter_type: "FilterType",
        start_seconds: "StartSeconds | None" = None,
    ) -> bool:
        """Start playing a track, replacing whatever is playing.

        The track must carry a stream URL; resolving one is the caller's job.
        """
        ...

    @abstractmethod
    async def stop(self, guild_id: DiscordSnowflake) -> bool:
        """Stop current playback without reporting a natural end."""
        ...

    @abstractmethod
    async def pause(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def set_volume(self, guild_id: DiscordSnowflake, volume: int) -> bool:
        """Apply a volume percentage in [0, 100]."""
        ...

    @abstractmethod
    async def apply_filter(self, guild_id: DiscordSnowflake, filter_type: "FilterType") -> bool:
        """Replace the active audio filter on the current track."""
        ...

    @abstractmethod
    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    async def get_listeners(self, guild_id: DiscordSnowflake) -> list[int]:
        """User IDs of the human listeners in the bot's voice channel."""
        ...

    @abstractmethod
    def set_track_end_callback(self, callback: TrackEndedCallback) -> None:
        ...

    @abstractmethod
    def set_track_exception_callback(self, callback: TrackExceptionCallback) -> None:
        ...
