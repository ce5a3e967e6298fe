"""SQLite implementation of the favorites repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from guild_jukebox.domain.guild.entities import FavoriteTrack
from guild_jukebox.domain.guild.repository import FavoritesRepository
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import TrackId
from guild_jukebox.domain.shared.constants import DatabaseTables
from guild_jukebox.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database

TABLE = DatabaseTables.FAVORITE_TRACKS


class SQLiteFavoritesRepository(FavoritesRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def add(self, user_id: int, track: Track) -> bool:
        favorite = FavoriteTrack.create(user_id, track)
        inserted = await self._db.execute(
            f"""
            INSERT INTO {TABLE}
                (user_id, track_id, title, uri, duration_seconds, thumbnail_url, artist, saved_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, track_id) DO NOTHING
            """,
            (
                user_id,
                favorite.track.id.value,
                favorite.track.title,
                favorite.track.uri,
                favorite.track.duration_seconds,
                favorite.track.thumbnail_url,
                favorite.track.artist,
                UtcDateTime(favorite.saved_at).iso,
            ),
        )
        return inserted > 0

    async def remove(self, user_id: int, track_id: str) -> FavoriteTrack | None:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM {TABLE} WHERE user_id = ? AND track_id = ?",
                (user_id, track_id),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            await conn.execute(
                f"DELETE FROM {TABLE} WHERE user_id = ? AND track_id = ?",
                (user_id, track_id),
            )

        return self._row_to_favorite(dict(row))

    async def list_for_user(self, user_id: int) -> list[FavoriteTrack]:
        rows = await self._db.fetch_all(
            f"SELECT * FROM {TABLE} WHERE user_id = ? ORDER BY id ASC", (user_id,)
        )
        return [self._row_to_favorite(row) for row in rows]

    @staticmethod
    def _row_to_favorite(row: dict[str, Any]) -> FavoriteTrack:
        track = Track(
            id=TrackId(row["track_id"]),
            title=row["title"],
            uri=row["uri"],
            duration_seconds=row["duration_seconds"],
            thumbnail_url=row["thumbnail_url"],
            artist=row["artist"],
        )
        return FavoriteTrack(
            user_id=row["user_id"],
            track=track,
            saved_at=UtcDateTime.from_iso(row["saved_at"]).dt,
        )
