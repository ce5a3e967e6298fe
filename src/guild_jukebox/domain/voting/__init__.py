"""
Voting Bounded Context

Domain logic for skip votes and their threshold policy.
"""

from guild_jukebox.domain.voting.entities import VoteSkipState
from guild_jukebox.domain.voting.services import VotingDomainService
from guild_jukebox.domain.voting.value_objects import VoteResult

__all__ = [
    "VoteSkipState",
    "VoteResult",
    "VotingDomainService",
]
