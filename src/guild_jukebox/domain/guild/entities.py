"""Persisted per-guild configuration and per-user favorites."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.shared.datetime_utils import utcnow
from guild_jukebox.domain.shared.exceptions import BusinessRuleViolationError
from guild_jukebox.domain.shared.types import (
    DiscordSnowflake,
    UtcDatetimeField,
    VolumePercent,
)


class GuildConfig(BaseModel):
    """Guild-level player policy: DJ roles, channel restrictions, and defaults."""

    model_config = ConfigDict(strict=True)

    MAX_DJ_ROLES: ClassVar[int] = 5

    guild_id: DiscordSnowflake
    dj_only: bool = False
    dj_role_ids: list[int] = Field(default_factory=list)
    allowed_channel_ids: list[int] = Field(default_factory=list)
    default_volume: VolumePercent | None = None
    request_channel_id: DiscordSnowflake | None = None
    playlists_allowed: bool = True

    def is_dj(self, role_ids: Iterable[int]) -> bool:
        return any(role_id in self.dj_role_ids for role_id in role_ids)

    def allows_channel(self, channel_id: int | None) -> bool:
        """No restriction list means every channel is allowed."""
        if not self.allowed_channel_ids:
            return True
        return channel_id in self.allowed_channel_ids

    def add_dj_role(self, role_id: int) -> None:
        if role_id in self.dj_role_ids:
            raise BusinessRuleViolationError(rule="DJ_ROLE_EXISTS")
        if len(self.dj_role_ids) >= self.MAX_DJ_ROLES:
            raise BusinessRuleViolationError(
                rule="DJ_ROLE_LIMIT", message=f"At most {self.MAX_DJ_ROLES} DJ roles are allowed"
            )
        self.dj_role_ids.append(role_id)

    def remove_dj_role(self, role_id: int) -> None:
        if role_id not in self.dj_role_ids:
            raise BusinessRuleViolationError(rule="DJ_ROLE_MISSING")
        self.dj_role_ids.remove(role_id)

    def toggle_allowed_channel(self, channel_id: int) -> bool:
        """Add or remove a channel from the allow list; returns True when now allowed."""
        if channel_id in self.allowed_channel_ids:
            self.allowed_channel_ids.remove(channel_id)
            return False
        self.allowed_channel_ids.append(channel_id)
        return True


class FavoriteTrack(BaseModel):
    """A track a user saved for later."""

    model_config = ConfigDict(frozen=True, strict=True)

    user_id: DiscordSnowflake
    track: Track
    saved_at: UtcDatetimeField = Field(default_factory=utcnow)

    @classmethod
    def create(cls, user_id: int, track: Track, saved_at: datetime | None = None) -> FavoriteTrack:
        return cls(user_id=user_id, track=track.without_stream(), saved_at=saved_at or utcnow())
