"""
Music Domain Services

Domain services containing playback business logic that doesn't naturally
fit within a single entity.
"""

from __future__ import annotations

from guild_jukebox.domain.music.entities import GuildSession
from guild_jukebox.domain.music.value_objects import NextTrackDecision


class PlaybackDomainService:
    """Domain service for the what-plays-next chain."""

    @staticmethod
    def decide_next(
        session: GuildSession,
        *,
        honour_loop: bool = True,
        autoplay_allowed: bool = True,
    ) -> NextTrackDecision:
        """Pick what follows the current track.

        Precedence is loop, then queue, then autoplay, then idle. A manual
        skip passes ``honour_loop=False`` so looping never traps the user on
        the skipped track.

        Args:
            session: The guild session, read under its lock.
            honour_loop: Whether loop mode may replay the current track.
            autoplay_allowed: Deployment-wide switch for autoplay.

        Returns:
            The decision; the caller performs the backend calls.
        """
        if session.current is None:
            return NextTrackDecision.IDLE

        if honour_loop and session.loop_enabled:
            return NextTrackDecision.REPLAY

        if len(session.queue) > 0:
            return NextTrackDecision.FROM_QUEUE

        if autoplay_allowed and session.autoplay_enabled:
            return NextTrackDecision.AUTOPLAY

        return NextTrackDecision.IDLE

    @staticmethod
    def can_go_back(session: GuildSession) -> bool:
        return len(session.history) > 0

    @staticmethod
    def can_go_forward(session: GuildSession) -> bool:
        return len(session.queue) > 0 or session.autoplay_enabled
