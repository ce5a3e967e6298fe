"""Periodic cleanup of sessions that have sat idle for too long."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel

from guild_jukebox.domain.shared.messages import LogTemplates
from guild_jukebox.domain.shared.types import NonNegativeInt

if TYPE_CHECKING:
    from ...application.services.session_registry import GuildSessionRegistry
    from ...application.services.status_refresher import StatusRefresher
    from ...config.settings import CleanupSettings

logger = logging.getLogger(__name__)


class CleanupJob:
    def __init__(
        self,
        *,
        registry: GuildSessionRegistry,
        status_refresher: StatusRefresher,
        settings: CleanupSettings,
    ) -> None:
        self._registry = registry
        self._status = status_refresher
        self._settings = settings
        self._running = False
        self._task: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._running:
            logger.warning(LogTemplates.CLEANUP_ALREADY_RUNNING)
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(LogTemplates.CLEANUP_STARTED)

    async def stop(self) -> None:
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info(LogTemplates.CLEANUP_STOPPED)

    async def _run_loop(self) -> None:
        interval_seconds = self._settings.cleanup_interval_minutes * 60

        while self._running:
            try:
                await self.run_cleanup()
            except Exception as e:
                logger.error(LogTemplates.CLEANUP_SESSIONS_FAILED, e)

            await asyncio.sleep(interval_seconds)

    async def run_cleanup(self) -> CleanupStats:
        logger.debug(LogTemplates.CLEANUP_CYCLE_RUNNING)

        pruned = self._registry.prune_idle(
            timedelta(minutes=self._settings.idle_session_minutes)
        )
        for guild_id in pruned:
            await self._status.forget(guild_id)

        stats = CleanupStats(sessions_cleaned=len(pruned))
        if stats.sessions_cleaned:
            logger.info(LogTemplates.CLEANUP_COMPLETED, stats.sessions_cleaned)
        return stats

    @property
    def is_running(self) -> bool:
        return self._running


class CleanupStats(BaseModel):
    sessions_cleaned: NonNegativeInt = 0
