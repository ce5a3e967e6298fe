import asyncio
import itertools

import pytest
import pytest_asyncio

from guild_jukebox.application.interfaces.audio_backend import AudioBackend
from guild_jukebox.application.interfaces.status_gateway import (
    StatusGateway,
    StatusMessageGoneError,
    StatusMessageRef,
)
from guild_jukebox.application.interfaces.track_resolver import TrackResolver
from guild_jukebox.domain.guild.entities import FavoriteTrack, GuildConfig
from guild_jukebox.domain.guild.repository import FavoritesRepository, GuildConfigRepository
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import TrackId

BOT_USER_ID = 999
GUILD_ID = 111
VOICE_CHANNEL_ID = 222
TEXT_CHANNEL_ID = 333


def make_track(name: str = "a", *, duration: int | None = 180, **overrides) -> Track:
    """Build a playable track whose id and title derive from *name*."""
    fields = {
        "id": TrackId(f"track{name.upper()}"),
        "title": f"Track {name.upper()}",
        "uri": f"https://www.youtube.com/watch?v=track{name}",
        "stream_url": f"https://stream.example.com/{name}",
        "duration_seconds": duration,
    }
    fields.update(overrides)
    return Track(**fields)


# ============================================================================
# In-memory fakes for the application ports
# ============================================================================


class FakeAudioBackend(AudioBackend):
    """Records calls; every guild starts disconnected."""

    def __init__(self) -> None:
        self.connected: dict[int, int] = {}
        self.listeners: list[int] = [1, 2]
        self.played: list[tuple[int, Track]] = []
        self.calls: list[tuple] = []
        self.play_succeeds = True
        self.join_succeeds = True
        self.pause_succeeds = True
        self.track_end_callback = None
        self.track_exception_callback = None

    @property
    def self_user_id(self) -> int | None:
        return BOT_USER_ID

    async def join(self, guild_id, voice_channel_id):
        self.calls.append(("join", guild_id, voice_channel_id))
        if not self.join_succeeds:
            return False
        self.connected[guild_id] = voice_channel_id
        return True

    async def leave(self, guild_id):
        self.calls.append(("leave", guild_id))
        return self.connected.pop(guild_id, None) is not None

    async def move(self, guild_id, voice_channel_id):
        self.calls.append(("move", guild_id, voice_channel_id))
        if guild_id not in self.connected:
            return False
        self.connected[guild_id] = voice_channel_id
        return True

    async def play(self, guild_id, track, *, volume, filter_type, start_seconds=None):
        self.calls.append(("play", guild_id, track.id, volume, filter_type))
        if not self.play_succeeds:
            return False
        self.played.append((guild_id, track))
        return True

    async def stop(self, guild_id):
        self.calls.append(("stop", guild_id))
        return True

    async def pause(self, guild_id):
        self.calls.append(("pause", guild_id))
        return self.pause_succeeds

    async def resume(self, guild_id):
        self.calls.append(("resume", guild_id))
        return self.pause_succeeds

    async def set_volume(self, guild_id, volume):
        self.calls.append(("set_volume", guild_id, volume))
        return True

    async def apply_filter(self, guild_id, filter_type):
        self.calls.append(("apply_filter", guild_id, filter_type))
        return True

    def is_connected(self, guild_id):
        return guild_id in self.connected

    async def get_listeners(self, guild_id):
        return list(self.listeners)

    def set_track_end_callback(self, callback):
        self.track_end_callback = callback

    def set_track_exception_callback(self, callback):
        self.track_exception_callback = callback

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeTrackResolver(TrackResolver):
    """Maps queries to canned results; the delays simulate slow lookups."""

    def __init__(self) -> None:
        self.results: dict[str, list[Track]] = {}
        self.related_track: Track | None = None
        self.related_calls: list[tuple[Track, set]] = []
        self.stream_urls: dict[TrackId, str] = {}
        self.search_calls: list[tuple[str, int]] = []
        self.delay: float = 0.0
        self.stream_delay: float = 0.0

    async def resolve(self, query):
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.results.get(query, []))

    async def search(self, query, limit=5):
        self.search_calls.append((query, limit))
        if self.delay:
            await asyncio.sleep(self.delay)
        return list(self.results.get(query, []))[:limit]

    async def related(self, track, *, exclude=()):
        self.related_calls.append((track, set(exclude)))
        if self.related_track is not None and self.related_track.id in exclude:
            return None
        return self.related_track

    async def resolve_stream_url(self, track):
        if self.stream_delay:
            await asyncio.sleep(self.stream_delay)
        return track.stream_url or self.stream_urls.get(track.id)

    def is_url(self, query):
        return query.startswith(("http://", "https://"))


class RecordingStatusGateway(StatusGateway):
    """Keeps every sent, edited, and deleted payload in order."""

    def __init__(self) -> None:
        self._ids = itertools.count(1000)
        self.sent: list[tuple[int, object]] = []
        self.edited: list[tuple[StatusMessageRef, object]] = []
        self.deleted: list[StatusMessageRef] = []
        self.notices: list[tuple[int, str]] = []
        self.edit_fails = False
        self.send_fails = False
        self.edit_delay: float = 0.0

    async def send_status(self, channel_id, payload):
        if self.send_fails:
            return None
        self.sent.append((channel_id, payload))
        return StatusMessageRef(channel_id=channel_id, message_id=next(self._ids))

    async def edit_status(self, ref, payload):
        if self.edit_delay:
            await asyncio.sleep(self.edit_delay)
        if self.edit_fails:
            raise StatusMessageGoneError(f"message {ref.message_id} is gone")
        self.edited.append((ref, payload))

    async def delete_status(self, ref):
        self.deleted.append(ref)

    async def send_notice(self, channel_id, text):
        self.notices.append((channel_id, text))

    @property
    def payloads(self) -> list:
        """Every payload delivered, sends and edits combined, in delivery order."""
        return [payload for _, payload in self.sent] + [payload for _, payload in self.edited]


class InMemoryGuildConfigRepository(GuildConfigRepository):
    def __init__(self) -> None:
        self.configs: dict[int, GuildConfig] = {}

    async def get(self, guild_id):
        return self.configs.get(guild_id, GuildConfig(guild_id=guild_id)).model_copy(deep=True)

    async def update(self, guild_id, mutator):
        config = await self.get(guild_id)
        mutator(config)
        self.configs[guild_id] = config
        return config.model_copy(deep=True)

    async def delete(self, guild_id):
        return self.configs.pop(guild_id, None) is not None


class InMemoryFavoritesRepository(FavoritesRepository):
    def __init__(self) -> None:
        self.favorites: dict[int, list[FavoriteTrack]] = {}

    async def add(self, user_id, track):
        saved = self.favorites.setdefault(user_id, [])
        if any(f.track.id == track.id for f in saved):
            return False
        saved.append(FavoriteTrack.create(user_id, track))
        return True

    async def remove(self, user_id, track_id):
        saved = self.favorites.get(user_id, [])
        for favorite in saved:
            if favorite.track.id.value == track_id:
                saved.remove(favorite)
                return favorite
        return None

    async def list_for_user(self, user_id):
        return list(self.favorites.get(user_id, []))


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from guild_jukebox.infrastructure.persistence.database import Database

    db = Database("sqlite://")
    await db.initialize()
    yield db
    await db.close()


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


@pytest.fixture
def track_a():
    return make_track("a")


@pytest.fixture
def track_b():
    return make_track("b")


@pytest.fixture
def track_c():
    return make_track("c")


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
def player_settings():
    from guild_jukebox.config.settings import PlayerSettings

    return PlayerSettings(default_volume=50, volume_step=10, resolve_timeout_seconds=0.5)


@pytest.fixture
def voting_settings():
    from guild_jukebox.config.settings import VotingSettings

    return VotingSettings()


@pytest.fixture
def backend():
    return FakeAudioBackend()


@pytest.fixture
def resolver():
    return FakeTrackResolver()


@pytest.fixture
def gateway():
    return RecordingStatusGateway()


@pytest.fixture
def config_repository():
    return InMemoryGuildConfigRepository()


@pytest.fixture
def favorites_repository():
    return InMemoryFavoritesRepository()


@pytest.fixture
def registry(backend, player_settings):
    from guild_jukebox.application.services.session_registry import GuildSessionRegistry

    return GuildSessionRegistry(audio_backend=backend, settings=player_settings)


@pytest.fixture
def status_refresher(gateway):
    from guild_jukebox.application.services.status_projector import StatusProjector
    from guild_jukebox.application.services.status_refresher import StatusRefresher

    return StatusRefresher(gateway=gateway, projector=StatusProjector())


@pytest.fixture
def orchestrator(
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

    return SessionOrchestrator(
        registry=registry,
        audio_backend=backend,
        track_resolver=resolver,
        status_refresher=status_refresher,
        guild_config_repository=config_repository,
        favorites_repository=favorites_repository,
        player_settings=player_settings,
        voting_settings=voting_settings,
    )


@pytest.fixture
def make_invoker():
    """Factory for command invokers standing in the default voice channel."""
    from guild_jukebox.application.services.orchestrator_models import Invoker

    def factory(user_id: int = 1, **overrides):
        fields = {
            "user_id": user_id,
            "display_name": f"user{user_id}",
            "text_channel_id": TEXT_CHANNEL_ID,
            "voice_channel_id": VOICE_CHANNEL_ID,
        }
        fields.update(overrides)
        return Invoker(**fields)

    return factory
