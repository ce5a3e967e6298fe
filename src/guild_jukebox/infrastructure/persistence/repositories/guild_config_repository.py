"""SQLite implementation of the guild configuration repository."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from guild_jukebox.domain.guild.entities import GuildConfig
from guild_jukebox.domain.guild.repository import GuildConfigRepository
from guild_jukebox.domain.shared.constants import DatabaseTables
from guild_jukebox.domain.shared.datetime_utils import UtcDateTime
from guild_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    import aiosqlite

    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteGuildConfigRepository(GuildConfigRepository):
    def __init__(self, database: Database) -> None:
        self._db = database
        # Serializes read-modify-write cycles issued from this process.
        self._write_lock = asyncio.Lock()

    async def get(self, guild_id: int) -> GuildConfig:
        async with self._db.connection() as conn:
            return await self._load(conn, guild_id)

    async def update(self, guild_id: int, mutator: Callable[[GuildConfig], None]) -> GuildConfig:
        async with self._write_lock, self._db.transaction() as conn:
            config = await self._load(conn, guild_id)
            mutator(config)
            await self._store(conn, config)

        logger.info(LogTemplates.GUILD_CONFIG_UPDATED, guild_id)
        return config

    async def delete(self, guild_id: int) -> bool:
        deleted = await self._db.execute(
            f"DELETE FROM {DatabaseTables.GUILD_CONFIGS} WHERE guild_id = ?", (guild_id,)
        )
        return deleted > 0

    async def _load(self, conn: aiosqlite.Connection, guild_id: int) -> GuildConfig:
        cursor = await conn.execute(
            f"SELECT * FROM {DatabaseTables.GUILD_CONFIGS} WHERE guild_id = ?", (guild_id,)
        )
        row = await cursor.fetchone()
        if row is None:
            return GuildConfig(guild_id=guild_id)

        return GuildConfig(
            guild_id=guild_id,
            dj_only=bool(row["dj_only"]),
            dj_role_ids=await self._ids(conn, DatabaseTables.GUILD_DJ_ROLES, "role_id", guild_id),
            allowed_channel_ids=await self._ids(
                conn, DatabaseTables.GUILD_ALLOWED_CHANNELS, "channel_id", guild_id
            ),
            default_volume=row["default_volume"],
            request_channel_id=row["request_channel_id"],
            playlists_allowed=bool(row["playlists_allowed"]),
        )

    @staticmethod
    async def _ids(conn: aiosqlite.Connection, table: str, column: str, guild_id: int) -> list[int]:
        cursor = await conn.execute(
            f"SELECT {column} FROM {table} WHERE guild_id = ? ORDER BY position ASC",  # noqa: S608
            (guild_id,),
        )
        return [row[0] for row in await cursor.fetchall()]

    async def _store(self, conn: aiosqlite.Connection, config: GuildConfig) -> None:
        await conn.execute(
            f"""
            INSERT INTO {DatabaseTables.GUILD_CONFIGS}
                (guild_id, dj_only, default_volume, request_channel_id, playlists_allowed, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(guild_id) DO UPDATE SET
                dj_only = excluded.dj_only,
                default_volume = excluded.default_volume,
                request_channel_id = excluded.request_channel_id,
                playlists_allowed = excluded.playlists_allowed,
                updated_at = excluded.updated_at
            """,
            (
                config.guild_id,
                int(config.dj_only),
                config.default_volume,
                config.request_channel_id,
                int(config.playlists_allowed),
                UtcDateTime.now().iso,
            ),
        )
        await self._replace_ids(
            conn, DatabaseTables.GUILD_DJ_ROLES, "role_id", config.guild_id, config.dj_role_ids
        )
        await self._replace_ids(
            conn,
            DatabaseTables.GUILD_ALLOWED_CHANNELS,
            "channel_id",
            config.guild_id,
            config.allowed_channel_ids,
        )

    @staticmethod
    async def _replace_ids(
        conn: aiosqlite.Connection, table: str, column: str, guild_id: int, ids: list[int]
    ) -> None:
        await conn.execute(f"DELETE FROM {table} WHERE guild_id = ?", (guild_id,))  # noqa: S608
        rows: list[tuple[Any, ...]] = [(guild_id, value, i) for i, value in enumerate(ids)]
        if rows:
            await conn.executemany(
                f"INSERT INTO {table} (guild_id, {column}, position) VALUES (?, ?, ?)",  # noqa: S608
                rows,
            )
