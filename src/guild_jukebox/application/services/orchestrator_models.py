"""DTOs for the session orchestrator."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ...domain.music.entities import QueuedTrack, Requester, Track
from ...domain.music.value_objects import FilterType, PlaybackState
from ...domain.shared.types import DiscordSnowflake, NonNegativeInt, VolumePercent
from ...domain.voting.value_objects import VoteResult


class Invoker(BaseModel):
    """The guild member issuing a command, as seen by the chat gateway."""

    model_config = ConfigDict(frozen=True)

    user_id: DiscordSnowflake
    display_name: str
    text_channel_id: DiscordSnowflake
    voice_channel_id: DiscordSnowflake | None = None
    role_ids: tuple[int, ...] = ()
    is_admin: bool = False

    def as_requester(self) -> Requester:
        return Requester(user_id=self.user_id, display_name=self.display_name or str(self.user_id))


class PlayResult(BaseModel):
    started: QueuedTrack | None = None
    queued: list[QueuedTrack] = Field(default_factory=list)
    position: NonNegativeInt = 0
    skipped_count: NonNegativeInt = 0

    @property
    def total(self) -> int:
        return len(self.queued) + (1 if self.started else 0)


class SkipResult(BaseModel):
    result: VoteResult
    skipped: Track | None = None
    now_playing: Track | None = None
    votes: NonNegativeInt = 0
    required: NonNegativeInt = 0

    @property
    def action_executed(self) -> bool:
        return self.result.action_executed


class QueueView(BaseModel):
    """Read-only snapshot of a guild's queue for listing."""

    current: QueuedTrack | None
    upcoming: list[QueuedTrack]
    history_length: NonNegativeInt
    total_duration_seconds: NonNegativeInt | None
    state: PlaybackState
    loop_enabled: bool
    autoplay_enabled: bool
    active_filter: FilterType
    volume: VolumePercent

    @property
    def total_length(self) -> int:
        return len(self.upcoming)
