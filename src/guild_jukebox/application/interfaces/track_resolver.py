"""Port interface for resolving queries and URLs into tracks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Collection
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import NonEmptyStr, PositiveInt

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.value_objects import TrackId


class TrackResolver(ABC):
    """Interface for turning user input into playable tracks."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> list["Track"]:
        """Resolve a URL (track or playlist) or a search query.

        Search queries yield at most one track; playlist URLs yield every entry.
        """
        ...

    @abstractmethod
    async def search(self, query: NonEmptyStr, limit: PositiveInt = 5) -> list["Track"]:
        """Return up to *limit* matches for a text query, best first."""
        ...

    @abstractmethod
    async def related(
        self, track: "Track", *, exclude: Collection["TrackId"] = ()
    ) -> "Track | None":
        """Find a track related to *track* that is not in *exclude*."""
        ...

    @abstractmethod
    async def resolve_stream_url(self, track: "Track") -> str | None:
        """Fetch a fresh stream URL for a track whose URL is missing or expired."""
        ...

    @abstractmethod
    def is_url(self, query: NonEmptyStr) -> bool:
        ...
