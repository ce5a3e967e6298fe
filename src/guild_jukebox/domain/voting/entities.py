"""Core domain entities for the voting bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from guild_jukebox.domain.shared.messages import ErrorMessages
from guild_jukebox.domain.shared.types import NonNegativeInt
from guild_jukebox.domain.voting.value_objects import VoteResult


class VoteSkipState(BaseModel):
    """Skip votes collected for the track currently playing.

    The voter set belongs to one track only; the owning session clears it
    whenever the current track changes.
    """

    model_config = ConfigDict(strict=True)

    voters: set[int] = Field(default_factory=set)
    required: NonNegativeInt = 0

    @property
    def vote_count(self) -> int:
        return len(self.voters)

    @property
    def is_threshold_met(self) -> bool:
        return self.required > 0 and self.vote_count >= self.required

    def has_voted(self, user_id: int) -> bool:
        return user_id in self.voters

    def cast(self, user_id: int, required: int) -> VoteResult:
        """Record a vote against the given threshold.

        The threshold is refreshed on every vote because listeners may have
        joined or left since the previous one.
        """
        if required < 1:
            raise ValueError(ErrorMessages.INVALID_THRESHOLD)
        self.required = required

        if self.has_voted(user_id):
            return VoteResult.ALREADY_VOTED

        self.voters.add(user_id)
        if self.is_threshold_met:
            return VoteResult.THRESHOLD_MET
        return VoteResult.VOTE_RECORDED

    def clear(self) -> None:
        self.voters.clear()
        self.required = 0
