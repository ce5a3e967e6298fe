"""
Unit Tests for Domain Voting Layer

Tests for:
- Value Objects: VoteResult
- Entities: VoteSkipState
- Services: VotingDomainService
"""

import pytest
from conftest import make_track

from guild_jukebox.domain.music.entities import QueuedTrack, Requester
from guild_jukebox.domain.voting.entities import VoteSkipState
from guild_jukebox.domain.voting.services import VotingDomainService
from guild_jukebox.domain.voting.value_objects import VoteResult

# =============================================================================
# VoteResult Value Object Tests
# =============================================================================


class TestVoteResult:
    def test_action_executed(self):
        assert VoteResult.THRESHOLD_MET.action_executed
        assert VoteResult.FORCE_SKIP.action_executed
        assert not VoteResult.VOTE_RECORDED.action_executed
        assert not VoteResult.ALREADY_VOTED.action_executed


# =============================================================================
# VoteSkipState Entity Tests
# =============================================================================


class TestVoteSkipState:
    def test_threshold_of_three(self):
        """Two votes against a threshold of three do not skip; the third does."""
        state = VoteSkipState()

        assert state.cast(1, required=3) is VoteResult.VOTE_RECORDED
        assert state.cast(2, required=3) is VoteResult.VOTE_RECORDED
        assert state.cast(3, required=3) is VoteResult.THRESHOLD_MET
        assert state.vote_count == 3

    def test_duplicate_vote_not_counted(self):
        state = VoteSkipState()
        state.cast(1, required=3)

        assert state.cast(1, required=3) is VoteResult.ALREADY_VOTED
        assert state.vote_count == 1

    def test_threshold_refreshed_on_each_vote(self):
        """A listener leaving lowers the bar for the next voter."""
        state = VoteSkipState()
        state.cast(1, required=3)

        assert state.cast(2, required=2) is VoteResult.THRESHOLD_MET
        assert state.required == 2

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            VoteSkipState().cast(1, required=0)

    def test_clear(self):
        state = VoteSkipState()
        state.cast(1, required=2)
        state.clear()

        assert state.vote_count == 0
        assert state.required == 0
        assert not state.has_voted(1)


# =============================================================================
# VotingDomainService Tests
# =============================================================================


class TestCalculateThreshold:
    @pytest.mark.parametrize(
        ("listeners", "expected"),
        [
            (0, 1),
            (1, 1),
            (2, 2),
            (3, 2),
            (4, 3),
            (5, 3),
            (10, 6),
        ],
    )
    def test_strict_majority(self, listeners, expected):
        assert VotingDomainService.calculate_threshold(listeners) == expected

    def test_never_exceeds_listener_count(self):
        assert VotingDomainService.calculate_threshold(2, percentage=1.0) == 2

    def test_min_voters_floor(self):
        assert VotingDomainService.calculate_threshold(1, min_voters=3) == 3


class TestCanForceSkip:
    @pytest.fixture
    def current(self):
        return QueuedTrack.of(make_track("a"), Requester(user_id=10, display_name="owner"))

    def test_requester_skips(self, current):
        assert VotingDomainService.can_force_skip(10, current)

    def test_other_listener_must_vote(self, current):
        assert not VotingDomainService.can_force_skip(11, current)

    def test_privileged_skips(self, current):
        assert VotingDomainService.can_force_skip(11, current, is_privileged=True)
