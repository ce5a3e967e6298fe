"""Centralized constants for database schema, SQLite pragmas, and audio defaults."""

from __future__ import annotations


class DatabaseTables:
    """Database table names."""

    GUILD_CONFIGS = "guild_configs"
    GUILD_DJ_ROLES = "guild_dj_roles"
    GUILD_ALLOWED_CHANNELS = "guild_allowed_channels"
    FAVORITE_TRACKS = "favorite_tracks"


class SQLPragmas:
    """SQLite PRAGMA statements applied to each connection."""

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"
    TABLE_INFO = "PRAGMA table_info({table})"


class AudioConstants:
    """Audio and FFmpeg configuration constants."""

    FFMPEG_BEFORE_OPTIONS_DEFAULT = "-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5"
    FFMPEG_OPTIONS_DEFAULT = "-vn"
    FFMPEG_USER_AGENT_HEADER = '-headers "User-Agent: {user_agent}"'
    FFMPEG_SEEK = "-ss {seconds:.2f}"
    FADE_IN_FILTER = "afade=t=in:ss=0:d={duration}"
    FADE_IN_SECONDS = 0.5

    # Matches yt-dlp's Android client user-agent to avoid YouTube 403 responses
    ANDROID_USER_AGENT = "com.google.android.youtube/19.44.38 (Linux; U; Android 14) gzip"

