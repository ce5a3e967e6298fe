"""SQLite repository implementations."""

from guild_jukebox.infrastructure.persistence.repositories.favorites_repository import (
    SQLiteFavoritesRepository,
)
from guild_jukebox.infrastructure.persistence.repositories.guild_config_repository import (
    SQLiteGuildConfigRepository,
)

__all__ = [
    "SQLiteFavoritesRepository",
    "SQLiteGuildConfigRepository",
]
