"""Keeps one status message per guild in sync with the session it describes."""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from guild_jukebox.application.interfaces.status_gateway import StatusMessageGoneError
from guild_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from guild_jukebox.domain.music.entities import GuildSession

    from ..interfaces.status_gateway import StatusGateway, StatusMessageRef
    from .status_projector import DisplayPayload, StatusProjector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusSnapshot:
    """A rendered payload stamped with the order it was captured in."""

    guild_id: int
    channel_id: int
    version: int
    payload: DisplayPayload
    final: bool = False


@dataclass
class _GuildStatus:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    message: StatusMessageRef | None = None
    published_version: int = 0


class StatusRefresher:
    """Versioned, per-guild serialized status publishing.

    ``capture`` is called while the guild's session lock is held so the
    payload reflects a consistent state. ``publish`` runs after the lock is
    released; a snapshot older than the last one published is dropped.
    """

    def __init__(self, *, gateway: StatusGateway, projector: StatusProjector) -> None:
        self._gateway = gateway
        self._projector = projector
        self._versions = itertools.count(1)
        self._guilds: dict[int, _GuildStatus] = {}

    def _state(self, guild_id: int) -> _GuildStatus:
        state = self._guilds.get(guild_id)
        if state is None:
            state = self._guilds[guild_id] = _GuildStatus()
        return state

    def message_for(self, guild_id: int) -> StatusMessageRef | None:
        state = self._guilds.get(guild_id)
        return state.message if state else None

    def capture(self, session: GuildSession, *, final: bool = False) -> StatusSnapshot:
        return StatusSnapshot(
            guild_id=session.guild_id,
            channel_id=session.text_channel_id,
            version=next(self._versions),
            payload=self._projector.render(session),
            final=final,
        )

    async def publish(self, snapshot: StatusSnapshot) -> bool:
        """Push *snapshot* to the chat side. Returns False if it was stale or undeliverable."""
        state = self._state(snapshot.guild_id)
        async with state.lock:
            if snapshot.version <= state.published_version:
                logger.debug(
                    LogTemplates.STATUS_STALE_DROPPED,
                    snapshot.version,
                    snapshot.guild_id,
                    state.published_version,
                )
                return False
            state.published_version = snapshot.version

            delivered = await self._deliver(state, snapshot)
            if snapshot.final:
                # The idle rendering stays up; the next session gets a fresh message.
                state.message = None
            return delivered

    async def _deliver(self, state: _GuildStatus, snapshot: StatusSnapshot) -> bool:
        ref = state.message
        if ref is not None and ref.channel_id != snapshot.channel_id:
            await self._gateway.delete_status(ref)
            ref = state.message = None

        if ref is not None:
            try:
                await self._gateway.edit_status(ref, snapshot.payload)
                return True
            except StatusMessageGoneError as e:
                logger.info(LogTemplates.STATUS_EDIT_FAILED, snapshot.guild_id, e)
                state.message = None

        state.message = await self._gateway.send_status(snapshot.channel_id, snapshot.payload)
        if state.message is None:
            logger.warning(LogTemplates.STATUS_SEND_FAILED, snapshot.guild_id)
            return False
        return True

    async def refresh(self, session: GuildSession, *, final: bool = False) -> bool:
        return await self.publish(self.capture(session, final=final))

    async def notify(self, channel_id: int, text: str) -> None:
        await self._gateway.send_notice(channel_id, text)

    async def forget(self, guild_id: int, *, delete_message: bool = False) -> None:
        """Drop the guild's tracked message, optionally deleting it first."""
        state = self._guilds.get(guild_id)
        if state is None:
            return
        async with state.lock:
            if delete_message and state.message is not None:
                await self._gateway.delete_status(state.message)
            state.message = None
