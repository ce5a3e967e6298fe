"""
Guild Bounded Context

Persisted guild configuration and user favorites. These live outside the
in-memory player session.
"""

from guild_jukebox.domain.guild.entities import FavoriteTrack, GuildConfig
from guild_jukebox.domain.guild.repository import FavoritesRepository, GuildConfigRepository

__all__ = [
    "GuildConfig",
    "FavoriteTrack",
    "GuildConfigRepository",
    "FavoritesRepository",
]
