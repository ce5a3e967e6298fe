"""Pure projection of a GuildSession into a status-message payload."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from guild_jukebox.domain.music.entities import MAX_VOLUME, MIN_VOLUME, GuildSession
from guild_jukebox.domain.music.services import PlaybackDomainService
from guild_jukebox.domain.music.value_objects import FilterType, PlaybackState
from guild_jukebox.domain.shared.types import DiscordSnowflake, NonNegativeInt, VolumePercent


class DisplayPayload(BaseModel):
    """Everything the chat side needs to draw the status message and its controls."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    state: PlaybackState
    title: str | None = None
    uri: str | None = None
    thumbnail_url: str | None = None
    duration: str | None = None
    artist: str | None = None
    requester_id: int | None = None
    requester_name: str | None = None
    voice_channel_id: DiscordSnowflake
    queue_length: NonNegativeInt = 0
    up_next: str | None = None
    loop_enabled: bool = False
    autoplay_enabled: bool = False
    active_filter: FilterType = FilterType.NONE
    volume: VolumePercent = MAX_VOLUME
    votes: NonNegativeInt = 0
    votes_required: NonNegativeInt = 0
    can_go_back: bool = False
    can_go_forward: bool = False
    can_volume_down: bool = False
    can_volume_up: bool = False
    recent_actions: tuple[str, ...] = ()

    @property
    def is_idle(self) -> bool:
        return self.state == PlaybackState.IDLE

    @property
    def is_paused(self) -> bool:
        return self.state == PlaybackState.PAUSED

    @property
    def filter_name(self) -> str | None:
        if self.active_filter is FilterType.NONE:
            return None
        return self.active_filter.display_name


class StatusProjector:
    """Renders sessions; performs no I/O and never mutates its input."""

    def render(self, session: GuildSession) -> DisplayPayload:
        current = session.current
        track = current.track if current else None
        next_item = session.queue.items[0] if len(session.queue) else None
        idle = session.is_idle

        return DisplayPayload(
            guild_id=session.guild_id,
            state=session.state,
            title=track.title if track else None,
            uri=track.uri if track else None,
            thumbnail_url=track.thumbnail_url if track else None,
            duration=track.duration_formatted if track else None,
            artist=track.artist if track else None,
            requester_id=current.requested_by.user_id if current else None,
            requester_name=current.requested_by.display_name if current else None,
            voice_channel_id=session.voice_channel_id,
            queue_length=len(session.queue),
            up_next=next_item.track.title if next_item else None,
            loop_enabled=session.loop_enabled,
            autoplay_enabled=session.autoplay_enabled,
            active_filter=session.active_filter,
            volume=session.volume,
            votes=session.vote_skip.vote_count,
            votes_required=session.vote_skip.required,
            can_go_back=PlaybackDomainService.can_go_back(session),
            can_go_forward=PlaybackDomainService.can_go_forward(session),
            can_volume_down=not idle and session.volume > MIN_VOLUME,
            can_volume_up=not idle and session.volume < MAX_VOLUME,
            recent_actions=tuple(session.action_log),
        )
