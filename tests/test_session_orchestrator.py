"""
Tests for the Session Orchestrator

Tests for:
- Commands: play, play_batch, skip, rewind, pause/resume, volume, filters,
  loop, autoplay, queue view, clear, disconnect, move, favorites
- Events: track ended, track exception, voice state changes
- Guild policy: DJ-only mode and channel restrictions
- Status publishing and per-guild serialization
"""

import asyncio
import logging

import pytest
from conftest import BOT_USER_ID, GUILD_ID, TEXT_CHANNEL_ID, VOICE_CHANNEL_ID, make_track

from guild_jukebox.domain.guild.entities import GuildConfig
from guild_jukebox.domain.music.value_objects import FilterType, PlaybackState, TrackEndReason
from guild_jukebox.domain.shared.exceptions import (
    BusinessRuleViolationError,
    ChannelNotAllowedError,
    DjRoleRequiredError,
    EmptyHistoryError,
    EmptyQueueError,
    FilterNotApplicableError,
    NoActiveSessionError,
    NoVoiceChannelError,
    PlaybackFailedError,
    ResolutionFailedError,
    VolumeUnchangedError,
)
from guild_jukebox.domain.voting.value_objects import VoteResult

U, V, W = 1, 2, 3
TRACK_A_ID = make_track("a").id


@pytest.fixture(autouse=True)
def catalogue(resolver, track_a, track_b, track_c):
    resolver.results.update(
        {
            "song a": [track_a],
            "song b": [track_b],
            "song c": [track_c],
            "mix": [track_a, track_b, track_c],
        }
    )


@pytest.fixture
def session(registry):
    def current():
        return registry.get(GUILD_ID)

    return current


async def play(orchestrator, invoker, query="song a"):
    return await orchestrator.play(GUILD_ID, invoker, query)


# =============================================================================
# play / play_batch
# =============================================================================


class TestPlay:
    async def test_idle_session_starts_playing(
        self, orchestrator, make_invoker, backend, session, track_a
    ):
        result = await play(orchestrator, make_invoker(U))

        assert result.started.track.id == track_a.id
        assert result.queued == []
        assert session().state is PlaybackState.PLAYING
        assert backend.connected == {GUILD_ID: VOICE_CHANNEL_ID}
        assert [t.id for _, t in backend.played] == [track_a.id]

    async def test_busy_session_queues(self, orchestrator, make_invoker, backend, session):
        await play(orchestrator, make_invoker(U))
        result = await play(orchestrator, make_invoker(V), "song b")

        assert result.started is None
        assert result.position == 1
        assert [i.track.title for i in session().queue.items] == ["Track B"]
        assert len(backend.played) == 1

    async def test_queue_keeps_fifo_order(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await play(orchestrator, make_invoker(U), "song c")

        assert [i.track.title for i in session().queue.items] == ["Track B", "Track C"]

    async def test_playlist_plays_first_and_queues_rest(self, orchestrator, make_invoker, session):
        result = await play(orchestrator, make_invoker(U), "mix")

        assert result.started.track.title == "Track A"
        assert [i.track.title for i in result.queued] == ["Track B", "Track C"]
        assert result.total == 3
        assert len(session().queue) == 2

    async def test_playlists_blocked_by_guild(
        self, orchestrator, make_invoker, config_repository, session
    ):
        config_repository.configs[GUILD_ID] = GuildConfig(
            guild_id=GUILD_ID, playlists_allowed=False
        )

        result = await play(orchestrator, make_invoker(U), "mix")

        assert result.total == 1
        assert len(session().queue) == 0

    async def test_duplicates_in_batch_are_skipped(self, orchestrator, make_invoker, track_a, track_b):
        await play(orchestrator, make_invoker(U))
        result = await orchestrator.play_batch(GUILD_ID, make_invoker(U), [track_a, track_b])

        assert [i.track.title for i in result.queued] == ["Track B"]
        assert result.skipped_count == 1

    async def test_empty_batch(self, orchestrator, make_invoker):
        with pytest.raises(EmptyQueueError):
            await orchestrator.play_batch(GUILD_ID, make_invoker(U), [])

    async def test_requires_voice_channel(self, orchestrator, make_invoker, registry):
        with pytest.raises(NoVoiceChannelError):
            await play(orchestrator, make_invoker(U, voice_channel_id=None))
        assert len(registry) == 0

    async def test_other_voice_channel_rejected(self, orchestrator, make_invoker):
        await play(orchestrator, make_invoker(U))
        with pytest.raises(NoVoiceChannelError):
            await play(orchestrator, make_invoker(V, voice_channel_id=VOICE_CHANNEL_ID + 1), "song b")

    async def test_nothing_found(self, orchestrator, make_invoker, registry):
        with pytest.raises(ResolutionFailedError):
            await play(orchestrator, make_invoker(U), "no such song")
        assert len(registry) == 0

    async def test_resolve_timeout(self, orchestrator, make_invoker, resolver, registry):
        resolver.delay = 5.0
        with pytest.raises(ResolutionFailedError):
            await play(orchestrator, make_invoker(U))
        assert len(registry) == 0

    async def test_backend_refuses_track(self, orchestrator, make_invoker, backend, registry):
        backend.play_succeeds = False
        with pytest.raises(PlaybackFailedError):
            await play(orchestrator, make_invoker(U))
        assert GUILD_ID not in registry
        assert not backend.is_connected(GUILD_ID)

    async def test_publishes_status(self, orchestrator, make_invoker, gateway):
        await play(orchestrator, make_invoker(U))

        channel_id, payload = gateway.sent[-1]
        assert channel_id == TEXT_CHANNEL_ID
        assert payload.title == "Track A"
        assert payload.recent_actions

    async def test_concurrent_plays_join_once(self, orchestrator, make_invoker, backend, session):
        results = await asyncio.gather(
            play(orchestrator, make_invoker(U)),
            play(orchestrator, make_invoker(V), "song b"),
        )

        assert backend.call_names().count("join") == 1
        assert sum(1 for r in results if r.started) == 1
        assert len(session().queue) == 1


# =============================================================================
# Natural track end
# =============================================================================


class TestTrackEnded:
    async def test_empty_queue_goes_idle(self, orchestrator, make_invoker, backend, session, track_a):
        await play(orchestrator, make_invoker(U))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        current = session()
        assert current.is_idle
        assert current.current is None
        assert [t.id for t in current.history.tracks] == [track_a.id]
        assert not backend.is_connected(GUILD_ID)

    async def test_queued_track_follows(
        self, orchestrator, make_invoker, session, track_a, track_b
    ):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        current = session()
        assert current.current_track.id == track_b.id
        assert [t.id for t in current.history.tracks] == [track_a.id]
        assert len(current.queue) == 0

    async def test_loop_replays(self, orchestrator, make_invoker, backend, session, track_a):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await orchestrator.toggle_loop(GUILD_ID, make_invoker(U))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        assert session().current_track.id == track_a.id
        assert len(session().history) == 0
        assert [t.id for _, t in backend.played] == [track_a.id, track_a.id]

    async def test_load_failure_does_not_loop(self, orchestrator, make_invoker, session, track_b):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await orchestrator.toggle_loop(GUILD_ID, make_invoker(U))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.LOAD_FAILED)

        assert session().current_track.id == track_b.id

    async def test_autoplay_picks_related(
        self, orchestrator, make_invoker, resolver, session, track_a, track_c
    ):
        resolver.related_track = track_c
        await play(orchestrator, make_invoker(U))
        await orchestrator.toggle_autoplay(GUILD_ID, make_invoker(U))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        assert session().current_track.id == track_c.id
        assert [t.id for t in session().history.tracks] == [track_a.id]
        _, excluded = resolver.related_calls[-1]
        assert track_a.id in excluded

    async def test_autoplay_without_match_goes_idle(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))
        await orchestrator.toggle_autoplay(GUILD_ID, make_invoker(U))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        assert session().is_idle

    async def test_manual_stop_ignored(self, orchestrator, make_invoker, session, track_a):
        await play(orchestrator, make_invoker(U))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.STOPPED)

        assert session().current_track.id == track_a.id

    async def test_unknown_guild_ignored(self, orchestrator, registry):
        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)
        assert len(registry) == 0

    async def test_idle_resets_filter_and_publishes_final(
        self, orchestrator, make_invoker, gateway, status_refresher, session
    ):
        await play(orchestrator, make_invoker(U))
        await orchestrator.apply_filter(GUILD_ID, make_invoker(U), FilterType.NIGHTCORE)

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        assert session().active_filter is FilterType.NONE
        assert gateway.payloads[-1].is_idle
        assert status_refresher.message_for(GUILD_ID) is None

    async def test_play_after_idle_rejoins_with_history(
        self, orchestrator, make_invoker, backend, session
    ):
        await play(orchestrator, make_invoker(U))
        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        await play(orchestrator, make_invoker(U), "song b")

        assert backend.call_names().count("join") == 2
        assert session().connected
        assert len(session().history) == 1

    async def test_end_of_other_track_is_ignored(
        self, orchestrator, make_invoker, session, track_a, track_b
    ):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")

        await orchestrator.on_track_ended(GUILD_ID, track_b.id, TrackEndReason.FINISHED)

        assert session().current_track.id == track_a.id
        assert len(session().queue) == 1

    async def test_late_end_after_skip_does_not_advance_twice(
        self, orchestrator, make_invoker, registry, session, track_a, track_b, track_c
    ):
        """A's natural end races U's skip; the skip wins the lock, so A's end is stale."""
        await orchestrator.play_batch(GUILD_ID, make_invoker(U), [track_a, track_b, track_c])

        async with registry.lock(GUILD_ID):
            skip = asyncio.create_task(orchestrator.skip(GUILD_ID, make_invoker(U)))
            await asyncio.sleep(0.01)
            ended = asyncio.create_task(
                orchestrator.on_track_ended(GUILD_ID, track_a.id, TrackEndReason.FINISHED)
            )
            await asyncio.sleep(0.01)
        await asyncio.gather(skip, ended)

        assert session().current_track.title == "Track B"
        assert [i.track.id for i in session().queue.items] == [track_c.id]

    async def test_late_end_after_rewind_is_ignored(
        self, orchestrator, make_invoker, registry, session, track_a, track_b
    ):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await orchestrator.skip(GUILD_ID, make_invoker(U))

        async with registry.lock(GUILD_ID):
            rewind = asyncio.create_task(orchestrator.rewind(GUILD_ID, make_invoker(U)))
            await asyncio.sleep(0.01)
            ended = asyncio.create_task(
                orchestrator.on_track_ended(GUILD_ID, track_b.id, TrackEndReason.FINISHED)
            )
            await asyncio.sleep(0.01)
        await asyncio.gather(rewind, ended)

        assert session().current_track.id == track_a.id
        assert session().is_playing


# =============================================================================
# Stream URLs
# =============================================================================


class TestStreamResolution:
    async def test_stream_timeout_on_queue_advance_goes_idle(
        self, orchestrator, make_invoker, resolver, backend, registry, session, gateway, track_a
    ):
        await play(orchestrator, make_invoker(U))
        await orchestrator.play_batch(
            GUILD_ID, make_invoker(U), [make_track("b", stream_url=None)]
        )
        resolver.stream_delay = 5.0

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        assert GUILD_ID in registry
        assert session().is_idle
        assert [t.id for t in session().history.tracks] == [track_a.id]
        assert [t.id for _, t in backend.played] == [track_a.id]
        assert not backend.is_connected(GUILD_ID)
        channel_id, text = gateway.notices[-1]
        assert channel_id == TEXT_CHANNEL_ID
        assert "Couldn't load a stream for **Track B**" in text

    async def test_missing_stream_is_fetched_before_play(
        self, orchestrator, make_invoker, resolver, backend, session
    ):
        bare = make_track("b", stream_url=None)
        resolver.stream_urls[bare.id] = "https://stream.example.com/fresh"

        await orchestrator.play_batch(GUILD_ID, make_invoker(U), [bare])

        assert backend.played[-1][1].stream_url == "https://stream.example.com/fresh"
        assert session().current_track.stream_url is None

    async def test_play_reports_unresolvable_stream(
        self, orchestrator, make_invoker, resolver, backend, registry, session
    ):
        resolver.results["bare"] = [make_track("b", stream_url=None)]

        with pytest.raises(ResolutionFailedError):
            await play(orchestrator, make_invoker(U), "bare")

        assert GUILD_ID in registry
        assert session().is_idle
        assert len(session().history) == 0
        assert backend.played == []
        assert not backend.is_connected(GUILD_ID)


# =============================================================================
# skip / rewind
# =============================================================================


class TestSkip:
    async def test_requester_skips_immediately(self, orchestrator, make_invoker, session, track_b):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")

        result = await orchestrator.skip(GUILD_ID, make_invoker(U))

        assert result.result is VoteResult.FORCE_SKIP
        assert result.now_playing.id == track_b.id

    async def test_three_listener_vote(self, orchestrator, make_invoker, backend, session, track_a):
        """U plays; V's vote is recorded; W's vote skips and the player idles."""
        backend.listeners = [U, V, W]
        await play(orchestrator, make_invoker(U))

        first = await orchestrator.skip(GUILD_ID, make_invoker(V))
        assert first.result is VoteResult.VOTE_RECORDED
        assert (first.votes, first.required) == (1, 2)
        assert session().current_track.id == track_a.id

        second = await orchestrator.skip(GUILD_ID, make_invoker(W))
        assert second.result is VoteResult.THRESHOLD_MET
        assert second.skipped.id == track_a.id
        assert second.now_playing is None
        assert session().is_idle

    async def test_threshold_of_three(self, orchestrator, make_invoker, backend, session):
        backend.listeners = [U, 2, 3, 4, 5]
        await play(orchestrator, make_invoker(U))

        assert not (await orchestrator.skip(GUILD_ID, make_invoker(2))).action_executed
        assert not (await orchestrator.skip(GUILD_ID, make_invoker(3))).action_executed
        assert (await orchestrator.skip(GUILD_ID, make_invoker(4))).action_executed

    async def test_duplicate_vote(self, orchestrator, make_invoker, backend):
        backend.listeners = [U, V, W, 4]
        await play(orchestrator, make_invoker(U))
        await orchestrator.skip(GUILD_ID, make_invoker(V))

        result = await orchestrator.skip(GUILD_ID, make_invoker(V))

        assert result.result is VoteResult.ALREADY_VOTED
        assert result.votes == 1

    async def test_admin_force_skips(self, orchestrator, make_invoker, backend):
        backend.listeners = [U, V, W]
        await play(orchestrator, make_invoker(U))

        result = await orchestrator.skip(GUILD_ID, make_invoker(V, is_admin=True))

        assert result.result is VoteResult.FORCE_SKIP

    async def test_skip_ignores_loop(self, orchestrator, make_invoker, session, track_b):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await orchestrator.toggle_loop(GUILD_ID, make_invoker(U))

        await orchestrator.skip(GUILD_ID, make_invoker(U))

        assert session().current_track.id == track_b.id

    async def test_votes_reset_on_track_change(self, orchestrator, make_invoker, backend, session):
        backend.listeners = [U, V, W, 4, 5]
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await orchestrator.skip(GUILD_ID, make_invoker(V))

        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        assert session().vote_skip.vote_count == 0

    async def test_no_session(self, orchestrator, make_invoker):
        with pytest.raises(NoActiveSessionError):
            await orchestrator.skip(GUILD_ID, make_invoker(U))

    async def test_listener_must_be_in_channel(self, orchestrator, make_invoker):
        await play(orchestrator, make_invoker(U))
        with pytest.raises(NoVoiceChannelError):
            await orchestrator.skip(GUILD_ID, make_invoker(V, voice_channel_id=None))


class TestRewind:
    async def test_empty_history_leaves_state(self, orchestrator, make_invoker, backend, session):
        await play(orchestrator, make_invoker(U))
        before = session().model_dump()
        plays = len(backend.played)

        with pytest.raises(EmptyHistoryError):
            await orchestrator.rewind(GUILD_ID, make_invoker(U))

        assert session().model_dump() == before
        assert len(backend.played) == plays

    async def test_plays_previous_track(self, orchestrator, make_invoker, backend, session, track_a):
        await play(orchestrator, make_invoker(U))
        await play(orchestrator, make_invoker(U), "song b")
        await orchestrator.skip(GUILD_ID, make_invoker(U))

        item = await orchestrator.rewind(GUILD_ID, make_invoker(V))

        assert item.track.id == track_a.id
        assert item.requested_by.user_id == U
        assert session().current_track.id == track_a.id
        assert len(session().history) == 0
        assert len(session().queue) == 0
        assert backend.played[-1][1].id == track_a.id


# =============================================================================
# Player settings
# =============================================================================


class TestPlayerControls:
    async def test_pause_and_resume(self, orchestrator, make_invoker, backend):
        await play(orchestrator, make_invoker(U))

        assert await orchestrator.pause_or_resume(GUILD_ID, make_invoker(U)) is PlaybackState.PAUSED
        assert await orchestrator.pause_or_resume(GUILD_ID, make_invoker(U)) is PlaybackState.PLAYING
        assert backend.call_names()[-2:] == ["pause", "resume"]

    async def test_pause_refused_by_backend(
        self, orchestrator, make_invoker, backend, session, caplog
    ):
        await play(orchestrator, make_invoker(U))
        backend.pause_succeeds = False

        with caplog.at_level(logging.WARNING), pytest.raises(PlaybackFailedError):
            await orchestrator.pause_or_resume(GUILD_ID, make_invoker(U))

        assert session().is_playing
        assert backend.call_names()[-1] == "pause"
        assert any("could not pause" in record.getMessage() for record in caplog.records)

    async def test_resume_refused_stays_paused(self, orchestrator, make_invoker, backend, session):
        await play(orchestrator, make_invoker(U))
        await orchestrator.pause_or_resume(GUILD_ID, make_invoker(U))
        backend.pause_succeeds = False

        with pytest.raises(PlaybackFailedError):
            await orchestrator.pause_or_resume(GUILD_ID, make_invoker(U))

        assert session().is_paused

    async def test_volume_clamps_at_zero(self, orchestrator, make_invoker, backend):
        await play(orchestrator, make_invoker(U))
        await orchestrator.set_volume(GUILD_ID, make_invoker(U), absolute=5)

        volume = await orchestrator.set_volume(GUILD_ID, make_invoker(U), delta=-10)

        assert volume == 0
        assert backend.calls[-1] == ("set_volume", GUILD_ID, 0)

    async def test_volume_unchanged(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))
        with pytest.raises(VolumeUnchangedError):
            await orchestrator.set_volume(GUILD_ID, make_invoker(U), absolute=session().volume)

    async def test_volume_needs_exactly_one_argument(self, orchestrator, make_invoker):
        with pytest.raises(ValueError):
            await orchestrator.set_volume(GUILD_ID, make_invoker(U), delta=1, absolute=1)

    async def test_apply_and_clear_filter(self, orchestrator, make_invoker, backend, session):
        await play(orchestrator, make_invoker(U))

        await orchestrator.apply_filter(GUILD_ID, make_invoker(U), FilterType.BASSBOOST)
        assert session().active_filter is FilterType.BASSBOOST

        await orchestrator.clear_filters(GUILD_ID, make_invoker(U))
        assert session().active_filter is FilterType.NONE
        assert backend.calls[-1] == ("apply_filter", GUILD_ID, FilterType.NONE)

    async def test_filter_on_idle_session(self, orchestrator, make_invoker):
        await play(orchestrator, make_invoker(U))
        await orchestrator.on_track_ended(GUILD_ID, TRACK_A_ID, TrackEndReason.FINISHED)

        with pytest.raises(FilterNotApplicableError):
            await orchestrator.apply_filter(GUILD_ID, make_invoker(U), FilterType.POP)

    async def test_loop_toggles_back(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))
        original = session().loop_enabled

        await orchestrator.toggle_loop(GUILD_ID, make_invoker(U))
        await orchestrator.toggle_loop(GUILD_ID, make_invoker(U))

        assert session().loop_enabled == original

    async def test_autoplay_disabled_by_deployment(
        self,
        make_invoker,
        registry,
        backend,
        resolver,
        status_refresher,
        config_repository,
        favorites_repository,
        player_settings,
        voting_settings,
    ):
        from guild_jukebox.application.services.session_orchestrator import SessionOrchestrator

        orchestrator = SessionOrchestrator(
            registry=registry,
            audio_backend=backend,
            track_resolver=resolver,
            status_refresher=status_refresher,
            guild_config_repository=config_repository,
            favorites_repository=favorites_repository,
            player_settings=player_settings.model_copy(update={"autoplay_allowed": False}),
            voting_settings=voting_settings,
        )
        await play(orchestrator, make_invoker(U))

        with pytest.raises(BusinessRuleViolationError):
            await orchestrator.toggle_autoplay(GUILD_ID, make_invoker(U))

    async def test_status_tracks_changes(self, orchestrator, make_invoker, gateway):
        await play(orchestrator, make_invoker(U))
        await orchestrator.toggle_loop(GUILD_ID, make_invoker(U))

        assert gateway.payloads[-1].loop_enabled


# =============================================================================
# Queue and connection
# =============================================================================


class TestQueueAndConnection:
    async def test_queue_view(self, orchestrator, make_invoker):
        await play(orchestrator, make_invoker(U), "mix")

        view = await orchestrator.get_queue_view(GUILD_ID)

        assert view.current.track.title == "Track A"
        assert [i.track.title for i in view.upcoming] == ["Track B", "Track C"]
        assert view.total_duration_seconds == 360
        assert view.total_length == 2

    async def test_queue_view_without_session(self, orchestrator):
        with pytest.raises(NoActiveSessionError):
            await orchestrator.get_queue_view(GUILD_ID)

    async def test_clear_queue(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U), "mix")

        assert await orchestrator.clear_queue(GUILD_ID, make_invoker(U)) == 2
        assert len(session().queue) == 0
        assert session().current is not None

    async def test_clear_empty_queue(self, orchestrator, make_invoker):
        await play(orchestrator, make_invoker(U))
        with pytest.raises(EmptyQueueError):
            await orchestrator.clear_queue(GUILD_ID, make_invoker(U))

    async def test_disconnect(self, orchestrator, make_invoker, backend, registry, gateway):
        await play(orchestrator, make_invoker(U))

        channel_id = await orchestrator.disconnect(GUILD_ID, make_invoker(U))

        assert channel_id == VOICE_CHANNEL_ID
        assert GUILD_ID not in registry
        assert not backend.is_connected(GUILD_ID)
        assert gateway.payloads[-1].is_idle

    async def test_disconnect_without_session(self, orchestrator, make_invoker):
        with pytest.raises(NoActiveSessionError):
            await orchestrator.disconnect(GUILD_ID, make_invoker(U))

    async def test_move(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))
        target = VOICE_CHANNEL_ID + 10

        assert await orchestrator.move(GUILD_ID, make_invoker(U, voice_channel_id=target)) == target
        assert session().voice_channel_id == target

    async def test_move_to_same_channel(self, orchestrator, make_invoker):
        await play(orchestrator, make_invoker(U))
        with pytest.raises(BusinessRuleViolationError):
            await orchestrator.move(GUILD_ID, make_invoker(U))


# =============================================================================
# Backend and gateway events
# =============================================================================


class TestBackendEvents:
    async def test_track_exception_tears_down(
        self, orchestrator, make_invoker, backend, registry, gateway
    ):
        await play(orchestrator, make_invoker(U))
        await orchestrator.apply_filter(GUILD_ID, make_invoker(U), FilterType.VAPORWAVE)

        await orchestrator.on_track_exception(GUILD_ID, "decoder error")

        assert "stop" in backend.call_names()
        assert GUILD_ID not in registry
        assert not backend.is_connected(GUILD_ID)
        channel_id, text = gateway.notices[-1]
        assert channel_id == TEXT_CHANNEL_ID
        assert "decoder error" in text

    async def test_bot_disconnected(self, orchestrator, make_invoker, registry, gateway):
        await play(orchestrator, make_invoker(U))

        await orchestrator.on_voice_state_changed(GUILD_ID, BOT_USER_ID, VOICE_CHANNEL_ID, None)

        assert GUILD_ID not in registry
        assert len(gateway.notices) == 1

    async def test_repeated_disconnect_events_teardown_once(
        self, orchestrator, make_invoker, gateway
    ):
        await play(orchestrator, make_invoker(U))

        await orchestrator.on_voice_state_changed(GUILD_ID, BOT_USER_ID, VOICE_CHANNEL_ID, None)
        await orchestrator.on_voice_state_changed(GUILD_ID, BOT_USER_ID, VOICE_CHANNEL_ID, None)

        assert len(gateway.notices) == 1

    async def test_bot_moved(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))

        await orchestrator.on_voice_state_changed(GUILD_ID, BOT_USER_ID, VOICE_CHANNEL_ID, 555)

        assert session().voice_channel_id == 555
        assert session().is_playing

    async def test_other_members_ignored(self, orchestrator, make_invoker, session):
        await play(orchestrator, make_invoker(U))

        await orchestrator.on_voice_state_changed(GUILD_ID, V, VOICE_CHANNEL_ID, None)

        assert session().connected

    async def test_callbacks_registered(self, orchestrator, backend):
        assert backend.track_end_callback == orchestrator.on_track_ended
        assert backend.track_exception_callback == orchestrator.on_track_exception


# =============================================================================
# Guild policy
# =============================================================================


class TestGuildPolicy:
    async def test_dj_only_blocks_members(self, orchestrator, make_invoker, config_repository):
        config_repository.configs[GUILD_ID] = GuildConfig(
            guild_id=GUILD_ID, dj_only=True, dj_role_ids=[77]
        )

        with pytest.raises(DjRoleRequiredError):
            await play(orchestrator, make_invoker(U))

        result = await play(orchestrator, make_invoker(U, role_ids=(77,)))
        assert result.started is not None

    async def test_channel_restriction(self, orchestrator, make_invoker, config_repository):
        config_repository.configs[GUILD_ID] = GuildConfig(
            guild_id=GUILD_ID, allowed_channel_ids=[TEXT_CHANNEL_ID + 1]
        )

        with pytest.raises(ChannelNotAllowedError):
            await play(orchestrator, make_invoker(U))

        result = await play(orchestrator, make_invoker(U, is_admin=True))
        assert result.started is not None

    async def test_guild_default_volume(self, orchestrator, make_invoker, config_repository, session):
        config_repository.configs[GUILD_ID] = GuildConfig(guild_id=GUILD_ID, default_volume=80)

        await play(orchestrator, make_invoker(U))

        assert session().volume == 80


# =============================================================================
# Favorites
# =============================================================================


class TestFavorites:
    async def test_add_current_track(self, orchestrator, make_invoker, track_a):
        await play(orchestrator, make_invoker(U))

        track = await orchestrator.add_favorite(GUILD_ID, make_invoker(V))
        assert track.id == track_a.id

        with pytest.raises(BusinessRuleViolationError):
            await orchestrator.add_favorite(GUILD_ID, make_invoker(V))

        favorites = await orchestrator.list_favorites(V)
        assert [f.track.id for f in favorites] == [track_a.id]

    async def test_add_without_track(self, orchestrator, make_invoker):
        with pytest.raises(NoActiveSessionError):
            await orchestrator.add_favorite(GUILD_ID, make_invoker(U))

    async def test_play_favorites(
        self, orchestrator, make_invoker, favorites_repository, track_b, track_c
    ):
        await favorites_repository.add(U, track_b)
        await favorites_repository.add(U, track_c)

        result = await orchestrator.play_favorites(GUILD_ID, make_invoker(U))

        assert result.started.track.id == track_b.id
        assert [i.track.id for i in result.queued] == [track_c.id]

    async def test_play_favorites_when_empty(self, orchestrator, make_invoker):
        with pytest.raises(BusinessRuleViolationError):
            await orchestrator.play_favorites(GUILD_ID, make_invoker(U))

    async def test_remove_favorite(self, orchestrator, make_invoker, favorites_repository, track_b):
        await favorites_repository.add(U, track_b)

        removed = await orchestrator.remove_favorite(make_invoker(U), track_b.id.value)

        assert removed.track.id == track_b.id
        with pytest.raises(BusinessRuleViolationError):
            await orchestrator.remove_favorite(make_invoker(U), track_b.id.value)


# =============================================================================
# Search
# =============================================================================


class TestSearch:
    async def test_lists_matches_without_playing(
        self, orchestrator, make_invoker, resolver, backend, registry
    ):
        tracks = await orchestrator.search(GUILD_ID, make_invoker(U), "mix", limit=2)

        assert [t.title for t in tracks] == ["Track A", "Track B"]
        assert resolver.search_calls == [("mix", 2)]
        assert backend.played == []
        assert len(registry) == 0

    async def test_picked_result_plays(self, orchestrator, make_invoker, session, track_b):
        tracks = await orchestrator.search(GUILD_ID, make_invoker(U), "mix", limit=5)

        result = await orchestrator.play_batch(GUILD_ID, make_invoker(U), [tracks[1]])

        assert result.started.track.id == track_b.id
        assert session().current_track.id == track_b.id

    async def test_no_matches(self, orchestrator, make_invoker):
        with pytest.raises(ResolutionFailedError):
            await orchestrator.search(GUILD_ID, make_invoker(U), "no such song", limit=5)

    async def test_timeout(self, orchestrator, make_invoker, resolver):
        resolver.delay = 5.0
        with pytest.raises(ResolutionFailedError):
            await orchestrator.search(GUILD_ID, make_invoker(U), "mix", limit=5)

    async def test_rejects_urls(self, orchestrator, make_invoker, resolver):
        with pytest.raises(BusinessRuleViolationError):
            await orchestrator.search(
                GUILD_ID, make_invoker(U), "https://www.youtube.com/watch?v=tracka", limit=5
            )
        assert resolver.search_calls == []

    async def test_requires_voice_channel(self, orchestrator, make_invoker):
        with pytest.raises(NoVoiceChannelError):
            await orchestrator.search(
                GUILD_ID, make_invoker(U, voice_channel_id=None), "mix", limit=5
            )
