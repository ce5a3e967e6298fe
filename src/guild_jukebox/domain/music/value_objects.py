"""Immutable value objects for the music bounded context."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from enum import Enum
from typing import Final

from guild_jukebox.domain.shared.messages import ErrorMessages

MAX_SEEK_SECONDS: Final[int] = 86_400

_YOUTUBE_ID_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
)


@dataclass(frozen=True)
class TrackId:
    """Typically a YouTube video ID or a hash of the URL."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_TRACK_ID)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_url(cls, url: str) -> TrackId:
        """Extract track ID from a URL, using YouTube video ID or a URL hash as fallback."""
        for pattern in _YOUTUBE_ID_PATTERNS:
            match = pattern.search(url)
            if match:
                return cls(match.group(1))

        return cls(hashlib.sha256(url.encode()).hexdigest()[:16])


@dataclass(frozen=True)
class StartSeconds:
    """Validated seek offset for starting playback at a specific timestamp."""

    value: float

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Start seconds cannot be negative")
        if self.value > MAX_SEEK_SECONDS:
            raise ValueError(f"Start seconds cannot exceed {MAX_SEEK_SECONDS}")

    def __float__(self) -> float:
        return float(self.value)

    @classmethod
    def from_optional(cls, seconds: float | None) -> StartSeconds | None:
        """Create from an optional number, returning None if input is None or zero."""
        if not seconds:
            return None
        return cls(seconds)


class PlaybackState(Enum):
    """Player state with enforced transitions.

    State transitions:
    - IDLE -> PLAYING (a track starts)
    - PLAYING -> PAUSED (pause)
    - PAUSED -> PLAYING (resume, or a new track starts)
    - PLAYING/PAUSED -> IDLE (stop, queue exhausted, disconnect)
    - PLAYING -> PLAYING (next track, replay, rewind)
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"

    def can_transition_to(self, target: PlaybackState) -> bool:
        valid_transitions = {
            PlaybackState.IDLE: {PlaybackState.PLAYING, PlaybackState.IDLE},
            PlaybackState.PLAYING: {
                PlaybackState.PLAYING,
                PlaybackState.PAUSED,
                PlaybackState.IDLE,
            },
            PlaybackState.PAUSED: {PlaybackState.PLAYING, PlaybackState.IDLE},
        }
        return target in valid_transitions[self]


class FilterType(Enum):
    """Audio effects; at most one is active on a player at a time."""

    NONE = "none"
    BASSBOOST = "bassboost"
    POP = "pop"
    SOFT = "soft"
    TREBLEBASS = "treblebass"
    NIGHTCORE = "nightcore"
    EIGHTD = "eightd"
    VAPORWAVE = "vaporwave"
    DOUBLETIME = "doubletime"
    SLOWMOTION = "slowmotion"
    CHIPMUNK = "chipmunk"
    DARTHVADER = "darthvader"
    DANCE = "dance"
    VIBRATO = "vibrato"
    TREMOLO = "tremolo"

    @property
    def display_name(self) -> str:
        if self is FilterType.EIGHTD:
            return "8D"
        return self.value.title()

    @classmethod
    def selectable(cls) -> list[FilterType]:
        return [f for f in cls if f is not FilterType.NONE]


class TrackEndReason(Enum):
    """Why the audio backend stopped emitting a track."""

    FINISHED = "finished"
    LOAD_FAILED = "load_failed"
    STOPPED = "stopped"
    REPLACED = "replaced"
    CLEANUP = "cleanup"

    @property
    def may_start_next(self) -> bool:
        """Only natural ends advance the player; manual stops were already handled."""
        return self in {TrackEndReason.FINISHED, TrackEndReason.LOAD_FAILED}


class NextTrackDecision(Enum):
    """Outcome of the what-plays-next chain, in precedence order."""

    REPLAY = "replay"
    FROM_QUEUE = "from_queue"
    AUTOPLAY = "autoplay"
    IDLE = "idle"


class TeardownReason(Enum):
    """Reasons a session is destroyed."""

    DISCONNECT_COMMAND = "disconnect_command"
    BACKEND_DISCONNECTED = "backend_disconnected"
    TRACK_EXCEPTION = "track_exception"
    PLAYBACK_FAILED = "playback_failed"
    INACTIVITY = "inactivity"
