"""Session Orchestrator - the single writer of per-guild player state.

Every public operation follows the same shape: check guild policy, take the
guild's lock, validate the session, mutate it, drive the audio backend, and
capture a status snapshot. Snapshots are published after the lock is
released so a slow message edit never holds up the guild.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from ...domain.music.entities import GuildSession, QueuedTrack, Track
from ...domain.music.services import PlaybackDomainService
from ...domain.music.value_objects import (
    FilterType,
    NextTrackDecision,
    PlaybackState,
    TeardownReason,
    TrackEndReason,
    TrackId,
)
from ...domain.shared.exceptions import (
    BackendDisconnectedError,
    BusinessRuleViolationError,
    ChannelNotAllowedError,
    DjRoleRequiredError,
    DomainError,
    EmptyQueueError,
    FilterNotApplicableError,
    NoActiveSessionError,
    NoVoiceChannelError,
    PlaybackFailedError,
    ResolutionFailedError,
    VoiceJoinFailedError,
)
from ...domain.shared.messages import DiscordUIMessages, LogTemplates
from ...domain.voting.services import VotingDomainService
from ...domain.voting.value_objects import VoteResult
from .orchestrator_models import Invoker, PlayResult, QueueView, SkipResult

if TYPE_CHECKING:
    from ...config.settings import PlayerSettings, VotingSettings
    from ...domain.guild.entities import FavoriteTrack, GuildConfig
    from ...domain.guild.repository import FavoritesRepository, GuildConfigRepository
    from ..interfaces.audio_backend import AudioBackend
    from ..interfaces.track_resolver import TrackResolver
    from .session_registry import GuildSessionRegistry
    from .status_refresher import StatusRefresher, StatusSnapshot

logger = logging.getLogger(__name__)


class SessionOrchestrator:
    """Coordinates commands and backend events for every guild session."""

    def __init__(
        self,
        *,
        registry: GuildSessionRegistry,
        audio_backend: AudioBackend,
        track_resolver: TrackResolver,
        status_refresher: StatusRefresher,
        guild_config_repository: GuildConfigRepository,
        favorites_repository: FavoritesRepository,
        player_settings: PlayerSettings,
        voting_settings: VotingSettings,
    ) -> None:
        self._registry = registry
        self._backend = audio_backend
        self._resolver = track_resolver
        self._status = status_refresher
        self._configs = guild_config_repository
        self._favorites = favorites_repository
        self._player = player_settings
        self._voting = voting_settings

        self._backend.set_track_end_callback(self.on_track_ended)
        self._backend.set_track_exception_callback(self.on_track_exception)

    # ── Locking and status ───────────────────────────────────────────

    @asynccontextmanager
    async def _guild(self, guild_id: int) -> AsyncIterator[list[StatusSnapshot]]:
        """Hold the guild lock; snapshots appended inside are published after release."""
        pending: list[StatusSnapshot] = []
        try:
            async with self._registry.lock(guild_id):
                yield pending
        finally:
            for snapshot in pending:
                await self._status.publish(snapshot)

    def _capture(self, session: GuildSession, pending: list[StatusSnapshot]) -> None:
        pending.append(self._status.capture(session, final=session.is_idle))

    # ── Preconditions ────────────────────────────────────────────────

    async def _authorize(self, guild_id: int, invoker: Invoker) -> GuildConfig:
        config = await self._configs.get(guild_id)
        if not invoker.is_admin and not config.allows_channel(invoker.text_channel_id):
            raise ChannelNotAllowedError(invoker.text_channel_id)
        if config.dj_only and not self._is_privileged(config, invoker):
            raise DjRoleRequiredError()
        return config

    @staticmethod
    def _is_privileged(config: GuildConfig, invoker: Invoker) -> bool:
        return invoker.is_admin or config.is_dj(invoker.role_ids)

    @staticmethod
    def _require_listener(session: GuildSession, invoker: Invoker) -> None:
        if invoker.voice_channel_id is None:
            raise NoVoiceChannelError()
        if invoker.voice_channel_id != session.voice_channel_id and not invoker.is_admin:
            raise NoVoiceChannelError(DiscordUIMessages.STATE_MUST_BE_IN_VOICE)

    def _require_active(self, guild_id: int, invoker: Invoker) -> GuildSession:
        session = self._registry.get(guild_id)
        if session is None or session.is_idle or not session.connected:
            raise NoActiveSessionError(guild_id)
        self._require_listener(session, invoker)
        return session

    # ── Playback internals ───────────────────────────────────────────

    async def _resolve(self, query: str, *, limit: int | None = None) -> list[Track]:
        """Resolve *query*, or search it for up to *limit* results, under the resolve timeout."""
        timeout = self._player.resolve_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                if limit is None:
                    tracks = await self._resolver.resolve(query)
                else:
                    tracks = await self._resolver.search(query, limit)
        except TimeoutError:
            logger.warning(LogTemplates.RESOLVE_TIMEOUT, query, timeout)
            raise ResolutionFailedError(query) from None

        if not tracks:
            logger.info(LogTemplates.RESOLVE_FAILED, query)
            raise ResolutionFailedError(query)
        return tracks

    async def _with_stream(self, track: Track) -> Track:
        """Return *track* carrying a stream URL, looked up under the resolve timeout."""
        if track.stream_url:
            return track

        timeout = self._player.resolve_timeout_seconds
        stream_url: str | None = None
        try:
            async with asyncio.timeout(timeout):
                stream_url = await self._resolver.resolve_stream_url(track)
        except TimeoutError:
            logger.warning(LogTemplates.STREAM_RESOLVE_TIMEOUT, track.title, timeout)

        if not stream_url:
            raise ResolutionFailedError(
                track.title, f"Couldn't load a stream for **{track.title}**."
            )
        return track.model_copy(update={"stream_url": stream_url})

    async def _play_current(self, session: GuildSession, pending: list[StatusSnapshot]) -> None:
        """Hand the session's current track to the backend.

        A track with no reachable stream sends the session idle and raises
        ResolutionFailedError; a backend refusal tears the session down.
        """
        item = session.current
        if item is None:
            return

        try:
            track = await self._with_stream(item.track)
        except ResolutionFailedError:
            logger.warning(LogTemplates.STREAM_RESOLVE_FAILED, item.track.title, session.guild_id)
            await self._go_idle(session, archive=False)
            self._capture(session, pending)
            raise

        started = await self._backend.play(
            session.guild_id,
            track,
            volume=session.volume,
            filter_type=session.active_filter,
        )
        if started:
            logger.info(
                LogTemplates.TRACK_STARTED,
                item.track.title,
                session.guild_id,
                item.requested_by.display_name,
            )
            return

        if not self._backend.is_connected(session.guild_id):
            await self._teardown(session, pending, TeardownReason.BACKEND_DISCONNECTED)
            raise BackendDisconnectedError(session.guild_id)

        await self._teardown(session, pending, TeardownReason.PLAYBACK_FAILED)
        raise PlaybackFailedError(item.track.title)

    async def _find_related(self, session: GuildSession) -> Track | None:
        current = session.current_track
        if current is None:
            return None

        exclude = {track.id for track in session.history.tracks}
        exclude.add(current.id)
        try:
            async with asyncio.timeout(self._player.resolve_timeout_seconds):
                related = await self._resolver.related(current, exclude=exclude)
        except TimeoutError:
            logger.warning(LogTemplates.AUTOPLAY_LOOKUP_FAILED, current.title, session.guild_id)
            return None

        if related is None:
            logger.info(LogTemplates.AUTOPLAY_NO_RELATED, current.title, session.guild_id)
        return related

    async def _advance(
        self, session: GuildSession, pending: list[StatusSnapshot], *, honour_loop: bool
    ) -> None:
        """Run the loop → queue → autoplay → idle chain for the session."""
        decision = PlaybackDomainService.decide_next(
            session,
            honour_loop=honour_loop,
            autoplay_allowed=self._player.autoplay_allowed,
        )
        logger.debug(LogTemplates.NEXT_TRACK_DECISION, session.guild_id, decision.value)

        if decision is NextTrackDecision.REPLAY:
            session.replay()
            await self._play_current(session, pending)
            return

        if decision is NextTrackDecision.FROM_QUEUE:
            item = session.queue.dequeue_front()
            if item is not None:
                session.start(item)
                await self._play_current(session, pending)
                return

        if decision is NextTrackDecision.AUTOPLAY and session.current is not None:
            requester = session.current.requested_by
            related = await self._find_related(session)
            if related is not None:
                session.start(QueuedTrack.of(related, requester))
                session.record_action(DiscordUIMessages.ACTION_AUTOPLAYED.format(title=related.title))
                await self._play_current(session, pending)
                return

        await self._go_idle(session)

    async def _go_idle(self, session: GuildSession, *, archive: bool = True) -> None:
        finished = session.finish(archive=archive)
        if self._player.reset_filter_on_idle:
            session.active_filter = FilterType.NONE
        if self._player.reset_volume_on_idle:
            session.volume = self._player.default_volume

        await self._backend.leave(session.guild_id)
        session.connected = False
        logger.info(LogTemplates.SESSION_IDLE, session.guild_id, finished.title if finished else None)

    async def _teardown(
        self, session: GuildSession, pending: list[StatusSnapshot], reason: TeardownReason
    ) -> None:
        """Destroy the session: blank state, leave voice, drop it from the registry."""
        guild_id = session.guild_id
        session.reset()
        self._registry.remove(guild_id)
        await self._backend.leave(guild_id)
        pending.append(self._status.capture(session, final=True))
        logger.info(LogTemplates.SESSION_TORN_DOWN, guild_id, reason.value)

    # ── Commands: playback ───────────────────────────────────────────

    async def play(self, guild_id: int, invoker: Invoker, query: str) -> PlayResult:
        """Resolve *query* and play or queue the result.

        Playlists play their first entry and queue the rest unless the guild
        blocks playlists, in which case only the first entry is used.

        Raises:
            NoVoiceChannelError: The invoker is not in a voice channel.
            ResolutionFailedError: Nothing matched, or resolving timed out.
        """
        config = await self._authorize(guild_id, invoker)
        if invoker.voice_channel_id is None:
            raise NoVoiceChannelError()

        tracks = await self._resolve(query)
        if not config.playlists_allowed:
            tracks = tracks[:1]
        return await self._play_tracks(guild_id, invoker, tracks, config)

    async def play_batch(self, guild_id: int, invoker: Invoker, tracks: list[Track]) -> PlayResult:
        """Play or queue already-resolved tracks, attributed to the invoker."""
        config = await self._authorize(guild_id, invoker)
        if not tracks:
            raise EmptyQueueError()
        return await self._play_tracks(guild_id, invoker, tracks, config)

    async def search(
        self, guild_id: int, invoker: Invoker, query: str, *, limit: int
    ) -> list[Track]:
        """List up to *limit* matches for *query* so the invoker can pick one.

        Nothing is played; the pick goes through ``play_batch``.

        Raises:
            NoVoiceChannelError: The invoker is not in a voice channel.
            ResolutionFailedError: Nothing matched, or searching timed out.
        """
        await self._authorize(guild_id, invoker)
        if invoker.voice_channel_id is None:
            raise NoVoiceChannelError()
        if self._resolver.is_url(query):
            raise BusinessRuleViolationError(
                rule="SEARCH_URL", message=DiscordUIMessages.SEARCH_URL_REJECTED
            )

        tracks = (await self._resolve(query, limit=limit))[:limit]
        logger.info(LogTemplates.SEARCH_RESULTS, query, guild_id, len(tracks))
        return tracks

    async def _play_tracks(
        self, guild_id: int, invoker: Invoker, tracks: list[Track], config: GuildConfig
    ) -> PlayResult:
        requester = invoker.as_requester()
        items = [QueuedTrack.of(track, requester) for track in tracks]
        result = PlayResult()

        async with self._guild(guild_id) as pending:
            existing = self._registry.get(guild_id)
            if existing is not None and existing.connected:
                self._require_listener(existing, invoker)

            session = await self._registry.get_or_create(
                guild_id,
                voice_channel_id=invoker.voice_channel_id,
                text_channel_id=invoker.text_channel_id,
                default_volume=config.default_volume,
            )

            if session.is_idle:
                first, rest = items[0], items[1:]
                session.start(first)
                result.started = first
                result.queued = session.enqueue_all(rest)
                session.record_action(
                    DiscordUIMessages.ACTION_STARTED.format(
                        user=invoker.display_name, title=first.track.title
                    )
                )
                await self._play_current(session, pending)
            elif len(items) == 1:
                result.position = session.enqueue(items[0]) + 1
                result.queued = [items[0]]
            else:
                result.queued = session.enqueue_all(items)
                if not result.queued:
                    raise BusinessRuleViolationError(
                        rule="NOTHING_QUEUED",
                        message="None of those tracks could be queued.",
                    )

            if result.queued:
                session.record_action(
                    DiscordUIMessages.ACTION_QUEUED.format(
                        user=invoker.display_name, count=len(result.queued)
                    )
                )
            result.skipped_count = len(items) - result.total
            self._capture(session, pending)

        return result

    async def skip(self, guild_id: int, invoker: Invoker) -> SkipResult:
        """Skip now for the requester, DJs, and admins; otherwise cast a vote.

        The threshold is recomputed from the current listeners on each vote.
        """
        config = await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            current = session.current
            if current is None:
                raise NoActiveSessionError(guild_id)

            force = not self._player.vote_skip_enabled or VotingDomainService.can_force_skip(
                invoker.user_id, current, is_privileged=self._is_privileged(config, invoker)
            )
            if force:
                result = VoteResult.FORCE_SKIP
            else:
                listeners = await self._backend.get_listeners(guild_id)
                required = VotingDomainService.calculate_threshold(
                    len(listeners),
                    percentage=self._voting.skip_threshold_percentage,
                    min_voters=self._voting.min_voters,
                )
                result = session.vote_skip.cast(invoker.user_id, required)
                logger.info(
                    LogTemplates.VOTE_RECORDED, guild_id, session.vote_skip.vote_count, required
                )

            if not result.action_executed:
                self._capture(session, pending)
                return SkipResult(
                    result=result,
                    votes=session.vote_skip.vote_count,
                    required=session.vote_skip.required,
                )

            votes, required = session.vote_skip.vote_count, session.vote_skip.required
            session.record_action(DiscordUIMessages.ACTION_SKIPPED.format(user=invoker.display_name))
            logger.info(LogTemplates.TRACK_SKIPPED, current.track.title, guild_id)
            await self._advance(session, pending, honour_loop=False)
            self._capture(session, pending)

            return SkipResult(
                result=result,
                skipped=current.track,
                now_playing=session.current_track,
                votes=votes,
                required=required,
            )

    async def rewind(self, guild_id: int, invoker: Invoker) -> QueuedTrack:
        """Play the most recent history entry; the current track is dropped."""
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            item = session.rewind(invoker.as_requester())
            session.record_action(DiscordUIMessages.ACTION_REWOUND.format(user=invoker.display_name))
            logger.info(LogTemplates.TRACK_REWOUND, item.track.title, guild_id)
            await self._play_current(session, pending)
            self._capture(session, pending)
            return item

    async def pause_or_resume(self, guild_id: int, invoker: Invoker) -> PlaybackState:
        """Toggle pause.

        Raises:
            PlaybackFailedError: The backend refused; the session state is unchanged.
        """
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            if session.is_paused:
                action, line = "resume", DiscordUIMessages.ACTION_RESUMED
                applied = await self._backend.resume(guild_id)
            else:
                action, line = "pause", DiscordUIMessages.ACTION_PAUSED
                applied = await self._backend.pause(guild_id)

            if not applied:
                logger.warning(LogTemplates.BACKEND_STATE_MISMATCH, action, guild_id)
                raise PlaybackFailedError(
                    session.current_track.title if session.current_track else "track",
                    f"I couldn't {action} playback right now.",
                )

            if action == "resume":
                session.resume()
            else:
                session.pause()
            session.record_action(line.format(user=invoker.display_name))
            self._capture(session, pending)
            return session.state

    async def set_volume(
        self,
        guild_id: int,
        invoker: Invoker,
        *,
        delta: int | None = None,
        absolute: int | None = None,
    ) -> int:
        """Change the volume by *delta* or to *absolute*, clamped to [0, 100].

        Raises:
            VolumeUnchangedError: The clamped result equals the current volume.
        """
        if (delta is None) == (absolute is None):
            raise ValueError("Pass exactly one of delta or absolute")
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            volume = session.adjust_volume(delta) if delta is not None else session.set_volume(absolute)
            await self._backend.set_volume(guild_id, volume)
            session.record_action(
                DiscordUIMessages.ACTION_VOLUME.format(user=invoker.display_name, volume=volume)
            )
            self._capture(session, pending)
            return volume

    async def apply_filter(self, guild_id: int, invoker: Invoker, filter_type: FilterType) -> FilterType:
        """Replace the active filter. ``FilterType.NONE`` clears it."""
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._registry.require(guild_id)
            if session.is_idle or not session.connected:
                raise FilterNotApplicableError()
            self._require_listener(session, invoker)

            session.apply_filter(filter_type)
            await self._backend.apply_filter(guild_id, filter_type)
            if filter_type is FilterType.NONE:
                line = DiscordUIMessages.ACTION_FILTERS_CLEARED.format(user=invoker.display_name)
            else:
                line = DiscordUIMessages.ACTION_FILTER.format(
                    user=invoker.display_name, name=filter_type.display_name
                )
            session.record_action(line)
            self._capture(session, pending)
            return filter_type

    async def clear_filters(self, guild_id: int, invoker: Invoker) -> FilterType:
        return await self.apply_filter(guild_id, invoker, FilterType.NONE)

    async def toggle_loop(self, guild_id: int, invoker: Invoker) -> bool:
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            enabled = session.toggle_loop()
            session.record_action(
                DiscordUIMessages.ACTION_LOOP.format(
                    user=invoker.display_name, state="on" if enabled else "off"
                )
            )
            self._capture(session, pending)
            return enabled

    async def toggle_autoplay(self, guild_id: int, invoker: Invoker) -> bool:
        if not self._player.autoplay_allowed:
            raise BusinessRuleViolationError(
                rule="AUTOPLAY_DISABLED", message="Autoplay is disabled on this bot."
            )
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            enabled = session.toggle_autoplay()
            session.record_action(
                DiscordUIMessages.ACTION_AUTOPLAY.format(
                    user=invoker.display_name, state="on" if enabled else "off"
                )
            )
            self._capture(session, pending)
            return enabled

    # ── Commands: queue and connection ───────────────────────────────

    async def get_queue_view(self, guild_id: int) -> QueueView:
        async with self._registry.lock(guild_id):
            session = self._registry.require(guild_id)
            return QueueView(
                current=session.current,
                upcoming=list(session.queue.items),
                history_length=len(session.history),
                total_duration_seconds=session.queue.total_duration_seconds(),
                state=session.state,
                loop_enabled=session.loop_enabled,
                autoplay_enabled=session.autoplay_enabled,
                active_filter=session.active_filter,
                volume=session.volume,
            )

    async def clear_queue(self, guild_id: int, invoker: Invoker) -> int:
        """Empty the queue and return how many tracks were removed."""
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._require_active(guild_id, invoker)
            count = session.queue.clear()
            if count == 0:
                raise EmptyQueueError()
            session.record_action(
                DiscordUIMessages.ACTION_QUEUE_CLEARED.format(user=invoker.display_name)
            )
            self._capture(session, pending)
            return count

    async def disconnect(self, guild_id: int, invoker: Invoker) -> int:
        """Leave voice and destroy the session; returns the channel that was left."""
        await self._authorize(guild_id, invoker)

        async with self._guild(guild_id) as pending:
            session = self._registry.require(guild_id)
            if session.connected:
                self._require_listener(session, invoker)
            channel_id = session.voice_channel_id
            await self._teardown(session, pending, TeardownReason.DISCONNECT_COMMAND)
            return channel_id

    async def move(self, guild_id: int, invoker: Invoker) -> int:
        """Move the player into the invoker's voice channel."""
        await self._authorize(guild_id, invoker)
        target = invoker.voice_channel_id
        if target is None:
            raise NoVoiceChannelError()

        async with self._guild(guild_id) as pending:
            session = self._registry.get(guild_id)
            if session is None or not session.connected:
                raise NoActiveSessionError(guild_id)
            if session.voice_channel_id == target:
                raise BusinessRuleViolationError(
                    rule="ALREADY_IN_CHANNEL", message="I'm already in your voice channel."
                )
            if not await self._backend.move(guild_id, target):
                raise VoiceJoinFailedError(target)

            session.voice_channel_id = target
            session.record_action(DiscordUIMessages.ACTION_MOVED.format(user=invoker.display_name))
            self._capture(session, pending)
            return target

    # ── Commands: favorites ──────────────────────────────────────────

    async def add_favorite(self, guild_id: int, invoker: Invoker) -> Track:
        async with self._registry.lock(guild_id):
            session = self._registry.get(guild_id)
            track = session.current_track if session else None
        if track is None:
            raise NoActiveSessionError(guild_id)

        if not await self._favorites.add(invoker.user_id, track):
            raise BusinessRuleViolationError(
                rule="FAVORITE_EXISTS", message="That track is already in your favorites."
            )
        logger.info(LogTemplates.FAVORITE_ADDED, invoker.user_id, track.title)
        return track

    async def list_favorites(self, user_id: int) -> list[FavoriteTrack]:
        return await self._favorites.list_for_user(user_id)

    async def play_favorites(self, guild_id: int, invoker: Invoker) -> PlayResult:
        favorites = await self._favorites.list_for_user(invoker.user_id)
        if not favorites:
            raise BusinessRuleViolationError(
                rule="NO_FAVORITES", message="You have no saved favorites yet."
            )
        if invoker.voice_channel_id is None:
            raise NoVoiceChannelError()
        return await self.play_batch(guild_id, invoker, [f.track for f in favorites])

    async def remove_favorite(self, invoker: Invoker, track_id: str) -> FavoriteTrack:
        removed = await self._favorites.remove(invoker.user_id, track_id)
        if removed is None:
            raise BusinessRuleViolationError(
                rule="FAVORITE_MISSING", message=DiscordUIMessages.FAVORITE_NOT_FOUND
            )
        logger.info(LogTemplates.FAVORITE_REMOVED, invoker.user_id, track_id)
        return removed

    # ── Backend and gateway events ───────────────────────────────────

    async def on_track_ended(
        self, guild_id: int, track_id: TrackId, reason: TrackEndReason
    ) -> None:
        """Advance the player after a natural end; manual stops are ignored.

        The event only counts while *track_id* is still the current track. An end
        that lost the race against a skip or rewind must not advance again.
        """
        if not reason.may_start_next:
            logger.debug(LogTemplates.TRACK_END_IGNORED, guild_id, reason.value)
            return

        channel_id: int | None = None
        try:
            async with self._guild(guild_id) as pending:
                session = self._registry.get(guild_id)
                if session is None or session.current is None or not session.connected:
                    logger.debug(LogTemplates.TRACK_END_IGNORED, guild_id, reason.value)
                    return
                if session.current.track.id != track_id:
                    logger.debug(
                        LogTemplates.TRACK_END_STALE,
                        track_id,
                        guild_id,
                        session.current.track.id,
                    )
                    return
                channel_id = session.text_channel_id
                # A track that failed to load would fail again on replay.
                honour_loop = reason is TrackEndReason.FINISHED
                await self._advance(session, pending, honour_loop=honour_loop)
                self._capture(session, pending)
        except DomainError as e:
            logger.warning(LogTemplates.EVENT_HANDLER_FAILED, "track end", guild_id)
            if channel_id is not None:
                await self._status.notify(
                    channel_id, DiscordUIMessages.ERROR_PREFIX.format(message=e.message)
                )
        except Exception:
            logger.exception(LogTemplates.EVENT_HANDLER_FAILED, "track end", guild_id)

    async def on_track_exception(self, guild_id: int, error: str) -> None:
        """Fatal for the session: stop, clear filters, tell the channel, leave."""
        logger.warning(LogTemplates.TRACK_EXCEPTION, guild_id, error)
        notice: tuple[int, str] | None = None
        try:
            async with self._guild(guild_id) as pending:
                session = self._registry.get(guild_id)
                if session is None:
                    return
                title = session.current_track.title if session.current_track else "track"
                await self._backend.stop(guild_id)
                session.active_filter = FilterType.NONE
                notice = (
                    session.text_channel_id,
                    DiscordUIMessages.NOTICE_TRACK_EXCEPTION.format(title=title, error=error),
                )
                await self._teardown(session, pending, TeardownReason.TRACK_EXCEPTION)
        except Exception:
            logger.exception(LogTemplates.EVENT_HANDLER_FAILED, "track exception", guild_id)

        if notice is not None:
            await self._status.notify(*notice)

    async def on_voice_state_changed(
        self,
        guild_id: int,
        user_id: int,
        before_channel_id: int | None,
        after_channel_id: int | None,
    ) -> None:
        """Follow the bot's own voice moves; losing voice tears the session down once."""
        if user_id != self._backend.self_user_id or before_channel_id == after_channel_id:
            return

        notice: tuple[int, str] | None = None
        try:
            async with self._guild(guild_id) as pending:
                session = self._registry.get(guild_id)
                if session is None or not session.connected:
                    return

                if after_channel_id is None:
                    logger.warning(LogTemplates.BACKEND_DISCONNECTED, guild_id)
                    notice = (session.text_channel_id, DiscordUIMessages.NOTICE_DISCONNECTED)
                    await self._teardown(session, pending, TeardownReason.BACKEND_DISCONNECTED)
                    return

                logger.info(
                    LogTemplates.VOICE_CHANNEL_CHANGED,
                    session.voice_channel_id,
                    after_channel_id,
                    guild_id,
                )
                session.voice_channel_id = after_channel_id
                session.touch()
                self._capture(session, pending)
        except Exception:
            logger.exception(LogTemplates.EVENT_HANDLER_FAILED, "voice state", guild_id)

        if notice is not None:
            await self._status.notify(*notice)
