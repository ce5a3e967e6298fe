"""Core domain entities for the music bounded context."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from guild_jukebox.domain.music.value_objects import FilterType, PlaybackState, TrackId
from guild_jukebox.domain.shared.datetime_utils import utcnow
from guild_jukebox.domain.shared.exceptions import (
    BusinessRuleViolationError,
    EmptyHistoryError,
    FilterNotApplicableError,
    InvalidOperationError,
    VolumeUnchangedError,
)
from guild_jukebox.domain.shared.types import (
    DiscordSnowflake,
    DurationSeconds,
    HttpUrlStr,
    NonEmptyStr,
    PositiveInt,
    TrackTitleStr,
    UtcDatetimeField,
    VolumePercent,
)
from guild_jukebox.domain.voting.entities import VoteSkipState

MIN_VOLUME = 0
MAX_VOLUME = 100


class Requester(BaseModel):
    """The guild member a track is attributed to."""

    model_config = ConfigDict(frozen=True, strict=True)

    user_id: DiscordSnowflake
    display_name: NonEmptyStr

    @property
    def mention(self) -> str:
        return f"<@{self.user_id}>"


class Track(BaseModel):
    """Immutable value object representing a resolved, playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: TrackId
    title: TrackTitleStr
    uri: HttpUrlStr
    duration_seconds: DurationSeconds | None = None
    stream_url: HttpUrlStr | None = None
    thumbnail_url: HttpUrlStr | None = None
    artist: NonEmptyStr | None = None

    # Who originally queued it; survives into history and favorites.
    source_context: Requester | None = None

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    def with_context(self, requester: Requester) -> Track:
        """Return a copy attributed to *requester* unless it already has an owner."""
        if self.source_context is not None:
            return self
        return self.model_copy(update={"source_context": requester})

    def without_stream(self) -> Track:
        """Stream URLs expire, so stored copies drop them."""
        return self.model_copy(update={"stream_url": None})

    def is_same_as(self, other: Track) -> bool:
        return self.id == other.id


class QueuedTrack(BaseModel):
    """A track waiting in (or taken from) the queue, plus who asked for it this time."""

    model_config = ConfigDict(frozen=True, strict=True)

    track: Track
    requested_by: Requester

    @classmethod
    def of(cls, track: Track, requester: Requester) -> QueuedTrack:
        return cls(track=track.with_context(requester), requested_by=requester)

    def was_requested_by(self, user_id: int) -> bool:
        return self.requested_by.user_id == user_id


class PlaybackQueue(BaseModel):
    """Pending tracks in strict insertion order; the front plays next."""

    model_config = ConfigDict(strict=True)

    items: list[QueuedTrack] = Field(default_factory=list)
    max_size: PositiveInt = 50

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_full(self) -> bool:
        return len(self.items) >= self.max_size

    def contains(self, track_id: TrackId) -> bool:
        return any(item.track.id == track_id for item in self.items)

    def enqueue(self, item: QueuedTrack) -> int:
        """Append to the back of the queue and return its zero-based position."""
        if self.contains(item.track.id):
            raise BusinessRuleViolationError(
                rule="NO_DUPLICATES",
                message=f'"{item.track.title}" is already in the queue',
            )
        if self.is_full:
            raise BusinessRuleViolationError(
                rule="MAX_QUEUE_SIZE", message=f"Queue is full (max {self.max_size} tracks)"
            )
        self.items.append(item)
        return len(self.items) - 1

    def dequeue_front(self) -> QueuedTrack | None:
        if not self.items:
            return None
        return self.items.pop(0)

    def peek_length(self) -> int:
        return len(self.items)

    def remove_track(self, track_id: TrackId) -> int:
        """Drop every entry for *track_id* and return how many were removed."""
        before = len(self.items)
        self.items = [item for item in self.items if item.track.id != track_id]
        return before - len(self.items)

    def clear(self) -> int:
        """Remove everything and return the count removed."""
        count = len(self.items)
        self.items.clear()
        return count

    def total_duration_seconds(self) -> int | None:
        """Total known duration; None when no queued track has a duration."""
        durations = [i.track.duration_seconds for i in self.items if i.track.duration_seconds]
        return sum(durations) if durations else None


class PlayHistory(BaseModel):
    """Previously played tracks, most recent last; oldest entries fall off."""

    model_config = ConfigDict(strict=True)

    tracks: list[Track] = Field(default_factory=list)
    max_size: PositiveInt = 50

    def __len__(self) -> int:
        return len(self.tracks)

    def push(self, track: Track) -> None:
        self.tracks.append(track)
        overflow = len(self.tracks) - self.max_size
        if overflow > 0:
            del self.tracks[:overflow]

    def peek(self) -> Track | None:
        return self.tracks[-1] if self.tracks else None

    def pop(self) -> Track | None:
        return self.tracks.pop() if self.tracks else None

    def clear(self) -> None:
        self.tracks.clear()


class GuildSession(BaseModel):
    """Aggregate root holding one guild's in-memory player state.

    Invariants:
    - ``current`` is None exactly when ``state`` is IDLE.
    - The vote-skip state is cleared whenever ``current`` changes.
    - The queue never holds the track that is currently playing.
    """

    model_config = ConfigDict(strict=True)

    DEFAULT_ACTION_LOG_SIZE: ClassVar[int] = 5

    guild_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake
    text_channel_id: DiscordSnowflake
    queue: PlaybackQueue = Field(default_factory=PlaybackQueue)
    history: PlayHistory = Field(default_factory=PlayHistory)
    current: QueuedTrack | None = None
    state: PlaybackState = PlaybackState.IDLE
    loop_enabled: bool = False
    autoplay_enabled: bool = False
    active_filter: FilterType = FilterType.NONE
    volume: VolumePercent = MAX_VOLUME
    vote_skip: VoteSkipState = Field(default_factory=VoteSkipState)
    connected: bool = True
    action_log: list[str] = Field(default_factory=list)
    action_log_size: PositiveInt = DEFAULT_ACTION_LOG_SIZE
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    last_activity: UtcDatetimeField = Field(default_factory=utcnow)

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def current_track(self) -> Track | None:
        return self.current.track if self.current else None

    @property
    def is_idle(self) -> bool:
        return self.state == PlaybackState.IDLE

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == PlaybackState.PAUSED

    def touch(self) -> None:
        self.last_activity = utcnow()

    # ── Queue ────────────────────────────────────────────────────────

    def enqueue(self, item: QueuedTrack) -> int:
        """Add a track to the back of the queue and return its position."""
        current = self.current_track
        if current is not None and current.is_same_as(item.track):
            raise BusinessRuleViolationError(
                rule="NO_DUPLICATES",
                message=f'"{item.track.title}" is already playing',
            )
        position = self.queue.enqueue(item)
        self.touch()
        return position

    def enqueue_all(self, items: list[QueuedTrack]) -> list[QueuedTrack]:
        """Queue as many of *items* as fit, skipping duplicates; returns those added."""
        added: list[QueuedTrack] = []
        for item in items:
            if self.queue.is_full:
                break
            try:
                self.enqueue(item)
            except BusinessRuleViolationError as e:
                if e.rule != "NO_DUPLICATES":
                    raise
                continue
            added.append(item)
        return added

    # ── Track transitions ────────────────────────────────────────────

    def _transition(self, target: PlaybackState, operation: str) -> None:
        if not self.state.can_transition_to(target):
            raise InvalidOperationError(operation=operation, current_state=self.state.value)
        self.state = target

    def _set_current(self, item: QueuedTrack | None) -> None:
        self.current = item
        self.vote_skip.clear()
        if item is not None:
            self.queue.remove_track(item.track.id)
        self.touch()

    def start(self, item: QueuedTrack) -> None:
        """Make *item* the current track, archiving whatever was playing."""
        self._transition(PlaybackState.PLAYING, "start")
        if self.current is not None:
            self.history.push(self.current.track)
        self._set_current(item)

    def replay(self) -> None:
        """Loop the current track without touching history."""
        if self.current is None:
            raise InvalidOperationError(operation="replay", current_state=self.state.value)
        self._transition(PlaybackState.PLAYING, "replay")
        self._set_current(self.current)

    def rewind(self, fallback_requester: Requester) -> QueuedTrack:
        """Pop the last played track and make it current.

        The abandoned current track is discarded, not requeued or archived.
        """
        previous = self.history.pop()
        if previous is None:
            raise EmptyHistoryError()

        item = QueuedTrack(
            track=previous, requested_by=previous.source_context or fallback_requester
        )
        self._transition(PlaybackState.PLAYING, "rewind")
        self._set_current(item)
        return item

    def finish(self, *, archive: bool = True) -> Track | None:
        """Archive the current track and go idle."""
        finished = self.current_track
        if finished is not None and archive:
            self.history.push(finished)
        self.state = PlaybackState.IDLE
        self._set_current(None)
        return finished

    def pause(self) -> None:
        if not self.is_playing:
            raise InvalidOperationError(operation="pause", current_state=self.state.value)
        self.state = PlaybackState.PAUSED
        self.touch()

    def resume(self) -> None:
        if not self.is_paused:
            raise InvalidOperationError(operation="resume", current_state=self.state.value)
        self.state = PlaybackState.PLAYING
        self.touch()

    # ── Player settings ──────────────────────────────────────────────

    def set_volume(self, value: int) -> int:
        """Clamp to [0, 100] and apply; unchanged results are rejected."""
        clamped = max(MIN_VOLUME, min(MAX_VOLUME, value))
        if clamped == self.volume:
            raise VolumeUnchangedError(self.volume)
        self.volume = clamped
        self.touch()
        return clamped

    def adjust_volume(self, delta: int) -> int:
        return self.set_volume(self.volume + delta)

    def toggle_loop(self) -> bool:
        self.loop_enabled = not self.loop_enabled
        self.touch()
        return self.loop_enabled

    def toggle_autoplay(self) -> bool:
        self.autoplay_enabled = not self.autoplay_enabled
        self.touch()
        return self.autoplay_enabled

    def apply_filter(self, filter_type: FilterType) -> None:
        """Replace the active filter; FilterType.NONE clears it."""
        if self.is_idle:
            raise FilterNotApplicableError()
        self.active_filter = filter_type
        self.touch()

    # ── Lifecycle ────────────────────────────────────────────────────

    def record_action(self, line: str) -> None:
        self.action_log.append(line)
        overflow = len(self.action_log) - self.action_log_size
        if overflow > 0:
            del self.action_log[:overflow]

    def reset(self) -> None:
        """Back to a blank idle player; used when the session is torn down."""
        self.queue.clear()
        self.history.clear()
        self.state = PlaybackState.IDLE
        self._set_current(None)
        self.loop_enabled = False
        self.autoplay_enabled = False
        self.active_filter = FilterType.NONE
        self.action_log.clear()
        self.connected = False
