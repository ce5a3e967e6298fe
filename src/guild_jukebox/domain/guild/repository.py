"""
Guild Domain Repository Interfaces

Abstract base classes defining the contracts for data persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from guild_jukebox.domain.guild.entities import FavoriteTrack, GuildConfig
from guild_jukebox.domain.music.entities import Track


class GuildConfigRepository(ABC):
    """Abstract repository for per-guild configuration documents."""

    @abstractmethod
    async def get(self, guild_id: int) -> GuildConfig:
        """Return the stored config, or defaults when the guild has none yet."""
        ...

    @abstractmethod
    async def update(self, guild_id: int, mutator: Callable[[GuildConfig], None]) -> GuildConfig:
        """Load, apply *mutator*, and persist the config atomically.

        Args:
            guild_id: The Discord guild ID.
            mutator: Callback editing the config in place. Exceptions it
                raises abort the update.

        Returns:
            The persisted config.
        """
        ...

    @abstractmethod
    async def delete(self, guild_id: int) -> bool:
        """Forget a guild's config. Returns True if something was deleted."""
        ...


class FavoritesRepository(ABC):
    """Abstract repository for user favorites."""

    @abstractmethod
    async def add(self, user_id: int, track: Track) -> bool:
        """Save a track. Returns False when it was already saved."""
        ...

    @abstractmethod
    async def remove(self, user_id: int, track_id: str) -> FavoriteTrack | None:
        """Delete a saved track and return it, or None if it was not saved."""
        ...

    @abstractmethod
    async def list_for_user(self, user_id: int) -> list[FavoriteTrack]:
        """All of a user's favorites, oldest first."""
        ...
