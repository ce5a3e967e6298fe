"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for repositories, adapters, and services.
Components are created on first access and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.audio_backend import AudioBackend
    from ..application.interfaces.status_gateway import StatusGateway
    from ..application.interfaces.track_resolver import TrackResolver
    from ..application.services.session_orchestrator import SessionOrchestrator
    from ..application.services.session_registry import GuildSessionRegistry
    from ..application.services.status_projector import StatusProjector
    from ..application.services.status_refresher import StatusRefresher
    from ..domain.guild.repository import FavoritesRepository, GuildConfigRepository
    from ..infrastructure.audio.ffmpeg_player import FFmpegSourceFactory
    from ..infrastructure.persistence.cleanup import CleanupJob
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. Anything that
    talks to Discord needs ``set_bot`` to have been called first.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence layer
    _database: Database | None = None
    _guild_config_repository: GuildConfigRepository | None = None
    _favorites_repository: FavoritesRepository | None = None

    # Infrastructure adapters
    _track_resolver: TrackResolver | None = None
    _source_factory: FFmpegSourceFactory | None = None
    _audio_backend: AudioBackend | None = None
    _status_gateway: StatusGateway | None = None

    # Application services
    _session_registry: GuildSessionRegistry | None = None
    _status_projector: StatusProjector | None = None
    _status_refresher: StatusRefresher | None = None
    _session_orchestrator: SessionOrchestrator | None = None

    # Background jobs
    _cleanup_job: CleanupJob | None = None

    def set_bot(self, bot: Bot) -> None:
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Persistence ===

    @property
    def database(self) -> Database:
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    @property
    def guild_config_repository(self) -> GuildConfigRepository:
        if self._guild_config_repository is None:
            from ..infrastructure.persistence.repositories.guild_config_repository import (
                SQLiteGuildConfigRepository,
            )

            self._guild_config_repository = SQLiteGuildConfigRepository(self.database)
        return self._guild_config_repository

    @property
    def favorites_repository(self) -> FavoritesRepository:
        if self._favorites_repository is None:
            from ..infrastructure.persistence.repositories.favorites_repository import (
                SQLiteFavoritesRepository,
            )

            self._favorites_repository = SQLiteFavoritesRepository(self.database)
        return self._favorites_repository

    # === Infrastructure adapters ===

    @property
    def track_resolver(self) -> TrackResolver:
        if self._track_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpTrackResolver

            self._track_resolver = YtDlpTrackResolver(self.settings.audio)
        return self._track_resolver

    @property
    def source_factory(self) -> FFmpegSourceFactory:
        if self._source_factory is None:
            from ..infrastructure.audio.ffmpeg_player import FFmpegSourceFactory

            self._source_factory = FFmpegSourceFactory(self.settings.audio)
        return self._source_factory

    @property
    def audio_backend(self) -> AudioBackend:
        if self._audio_backend is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordAudioBackend

            self._audio_backend = DiscordAudioBackend(
                self.bot,
                source_factory=self.source_factory,
            )
        return self._audio_backend

    @property
    def status_gateway(self) -> StatusGateway:
        if self._status_gateway is None:
            from ..infrastructure.discord.services.status_gateway import DiscordStatusGateway

            self._status_gateway = DiscordStatusGateway(self.bot, self)
        return self._status_gateway

    # === Application services ===

    @property
    def session_registry(self) -> GuildSessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import GuildSessionRegistry

            self._session_registry = GuildSessionRegistry(
                audio_backend=self.audio_backend, settings=self.settings.player
            )
        return self._session_registry

    @property
    def status_projector(self) -> StatusProjector:
        if self._status_projector is None:
            from ..application.services.status_projector import StatusProjector

            self._status_projector = StatusProjector()
        return self._status_projector

    @property
    def status_refresher(self) -> StatusRefresher:
        if self._status_refresher is None:
            from ..application.services.status_refresher import StatusRefresher

            self._status_refresher = StatusRefresher(
                gateway=self.status_gateway, projector=self.status_projector
            )
        return self._status_refresher

    @property
    def session_orchestrator(self) -> SessionOrchestrator:
        if self._session_orchestrator is None:
            from ..application.services.session_orchestrator import SessionOrchestrator

            self._session_orchestrator = SessionOrchestrator(
                registry=self.session_registry,
                audio_backend=self.audio_backend,
                track_resolver=self.track_resolver,
                status_refresher=self.status_refresher,
                guild_config_repository=self.guild_config_repository,
                favorites_repository=self.favorites_repository,
                player_settings=self.settings.player,
                voting_settings=self.settings.voting,
            )
        return self._session_orchestrator

    # === Background jobs ===

    @property
    def cleanup_job(self) -> CleanupJob:
        if self._cleanup_job is None:
            from ..infrastructure.persistence.cleanup import CleanupJob

            self._cleanup_job = CleanupJob(
                registry=self.session_registry,
                status_refresher=self.status_refresher,
                settings=self.settings.cleanup,
            )
        return self._cleanup_job

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Open the database and wire the orchestrator to the audio backend's events."""
        await self.database.initialize()
        _ = self.session_orchestrator

    async def shutdown(self) -> None:
        if self._cleanup_job is not None and self._cleanup_job.is_running:
            await self._cleanup_job.stop()
        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
