"""
Voting Domain Value Objects

Immutable value objects for the voting bounded context.
"""

from enum import Enum


class VoteResult(Enum):
    """Results of a skip request.

    These results indicate what happened when a user asked to skip.
    """

    # Skip executed
    THRESHOLD_MET = "threshold_met"  # Vote hit threshold
    FORCE_SKIP = "force_skip"  # Requester or privileged user skipped directly

    # Skip not executed
    VOTE_RECORDED = "vote_recorded"  # Vote was counted, more needed
    ALREADY_VOTED = "already_voted"  # User already voted for this track

    @property
    def action_executed(self) -> bool:
        """Check if this result means the skip was performed."""
        return self in {VoteResult.THRESHOLD_MET, VoteResult.FORCE_SKIP}
