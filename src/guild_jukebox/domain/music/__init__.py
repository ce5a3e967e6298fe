"""
Music Bounded Context

Domain logic for tracks, the playback queue and history, and the per-guild
player session.
"""

from guild_jukebox.domain.music.entities import (
    GuildSession,
    PlaybackQueue,
    PlayHistory,
    QueuedTrack,
    Requester,
    Track,
)
from guild_jukebox.domain.music.services import PlaybackDomainService
from guild_jukebox.domain.music.value_objects import (
    FilterType,
    NextTrackDecision,
    PlaybackState,
    TrackEndReason,
    TrackId,
)

__all__ = [
    # Entities
    "Track",
    "Requester",
    "QueuedTrack",
    "PlaybackQueue",
    "PlayHistory",
    "GuildSession",
    # Value Objects
    "TrackId",
    "PlaybackState",
    "FilterType",
    "TrackEndReason",
    "NextTrackDecision",
    # Services
    "PlaybackDomainService",
]
