"""
Voting Domain Services

Domain services containing voting business logic.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..music.entities import QueuedTrack


class VotingDomainService:
    """Domain service for skip-vote business rules.

    Encapsulates the threshold policy and who may bypass voting.
    """

    MINIMUM_THRESHOLD = 1

    @classmethod
    def calculate_threshold(
        cls,
        listener_count: int,
        *,
        percentage: float = 0.5,
        min_voters: int = 1,
    ) -> int:
        """Calculate the vote threshold based on listener count.

        With the default percentage this is a strict majority: more than
        half of the listeners must vote. The result never exceeds the number
        of listeners, so a full channel can always pass a vote.

        Args:
            listener_count: Number of listeners in the voice channel
                           (excluding the bot).
            percentage: Share of listeners that must be exceeded.
            min_voters: Lower bound on the threshold.

        Returns:
            The number of votes required to pass.
        """
        floor = max(cls.MINIMUM_THRESHOLD, min_voters)
        if listener_count <= 0:
            return floor

        threshold = min(int(listener_count * percentage) + 1, listener_count)
        return max(floor, threshold)

    @classmethod
    def can_force_skip(
        cls, user_id: int, current: "QueuedTrack", *, is_privileged: bool = False
    ) -> bool:
        """The requester of the current track and privileged users skip without voting."""
        if is_privileged:
            return True
        return current.was_requested_by(user_id)
