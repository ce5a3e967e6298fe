"""SQLite database with per-operation connections and WAL mode."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from guild_jukebox.domain.shared.constants import DatabaseTables, SQLPragmas
from guild_jukebox.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import DatabaseSettings

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class Database:
    def __init__(self, url: str, settings: DatabaseSettings | None = None) -> None:
        if url.startswith("sqlite:///"):
            self._db_path = url[len("sqlite:///") :]
        elif url.startswith("sqlite://"):
            self._db_path = url[len("sqlite://") :] or MEMORY_PATH
        else:
            self._db_path = url

        self._initialized = False
        self._keepalive_conn: aiosqlite.Connection | None = None
        self._busy_timeout = settings.busy_timeout_ms if settings else 5000
        self._connection_timeout = settings.connection_timeout_s if settings else 10

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_memory(self) -> bool:
        return self._db_path == MEMORY_PATH

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if self._initialized:
            return

        if not self.is_memory:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        # The shared in-memory DB is destroyed once its last connection closes.
        if self.is_memory and self._keepalive_conn is None:
            self._keepalive_conn = await self._connect()

        conn = self._keepalive_conn
        if conn is None:
            async with self.transaction() as tx:
                await self._ensure_schema(tx)
        else:
            await self._ensure_schema(conn)
            await conn.commit()

        self._initialized = True
        logger.info(LogTemplates.DATABASE_INITIALIZED, self._db_path)

    async def _ensure_schema(self, conn: aiosqlite.Connection) -> None:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.GUILD_CONFIGS} (
                guild_id INTEGER PRIMARY KEY,
                dj_only INTEGER NOT NULL DEFAULT 0,
                default_volume INTEGER,
                request_channel_id INTEGER,
                playlists_allowed INTEGER NOT NULL DEFAULT 1,
                updated_at TEXT NOT NULL
            )
            """
        )
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.GUILD_DJ_ROLES} (
                guild_id INTEGER NOT NULL,
                role_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                PRIMARY KEY (guild_id, role_id),
                FOREIGN KEY(guild_id) REFERENCES {DatabaseTables.GUILD_CONFIGS}(guild_id)
                    ON DELETE CASCADE
            )
            """
        )
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.GUILD_ALLOWED_CHANNELS} (
                guild_id INTEGER NOT NULL,
                channel_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                PRIMARY KEY (guild_id, channel_id),
                FOREIGN KEY(guild_id) REFERENCES {DatabaseTables.GUILD_CONFIGS}(guild_id)
                    ON DELETE CASCADE
            )
            """
        )
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.FAVORITE_TRACKS} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                track_id TEXT NOT NULL,
                title TEXT NOT NULL,
                uri TEXT NOT NULL,
                duration_seconds INTEGER,
                thumbnail_url TEXT,
                artist TEXT,
                saved_at TEXT NOT NULL,
                UNIQUE (user_id, track_id)
            )
            """
        )
        await conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_favorite_tracks_user "
            f"ON {DatabaseTables.FAVORITE_TRACKS}(user_id, id)"
        )

        await self._ensure_column(
            conn, DatabaseTables.FAVORITE_TRACKS, "thumbnail_url", "TEXT"
        )

    async def _ensure_column(
        self,
        conn: aiosqlite.Connection,
        table: str,
        column: str,
        column_type_sql: str,
    ) -> None:
        rows = await conn.execute_fetchall(SQLPragmas.TABLE_INFO.format(table=table))
        if column in {r[1] for r in rows}:
            return

        await conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type_sql}")
        logger.info(LogTemplates.TABLE_MIGRATED, table, column)

    async def _connect(self) -> aiosqlite.Connection:
        # ":memory:" is per-connection; a shared-cache URI lets every connection see one DB.
        if self.is_memory:
            db_path = f"file:guild-jukebox-{id(self)}?mode=memory&cache=shared"
            uri = True
        else:
            db_path = self._db_path
            uri = False

        conn = await aiosqlite.connect(
            db_path,
            detect_types=0,
            uri=uri,
            timeout=self._connection_timeout,
        )
        conn.row_factory = aiosqlite.Row

        await conn.execute(SQLPragmas.JOURNAL_MODE_WAL)
        await conn.execute(SQLPragmas.FOREIGN_KEYS_ON)
        await conn.execute(SQLPragmas.BUSY_TIMEOUT.format(timeout=self._busy_timeout))

        return conn

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        conn = await self._connect()
        try:
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a transaction context manager with auto-commit/rollback."""
        async with self.connection() as conn:
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    async def execute(self, sql: str, parameters: tuple[Any, ...] = ()) -> int:
        """Run one statement in its own transaction and return the affected row count."""
        async with self.transaction() as conn:
            cursor = await conn.execute(sql, parameters)
            return cursor.rowcount

    async def fetch_one(
        self, sql: str, parameters: tuple[Any, ...] = ()
    ) -> dict[str, Any] | None:
        async with self.connection() as conn:
            cursor = await conn.execute(sql, parameters)
            row = await cursor.fetchone()
            return dict(row) if row else None

    async def fetch_all(self, sql: str, parameters: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        async with self.connection() as conn:
            cursor = await conn.execute(sql, parameters)
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def close(self) -> None:
        """Close the keepalive connection of an in-memory DB; file DBs hold none."""
        if self._keepalive_conn is not None:
            try:
                await self._keepalive_conn.close()
            finally:
                self._keepalive_conn = None
        self._initialized = False
        logger.info(LogTemplates.DATABASE_CLOSED)
