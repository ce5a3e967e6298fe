"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite repositories)
- Discord (bot, cogs, adapters, status messages)
- Audio (yt-dlp, FFmpeg)
"""

from guild_jukebox.infrastructure.discord.adapters.voice_adapter import DiscordAudioBackend
from guild_jukebox.infrastructure.discord.bot import create_bot
from guild_jukebox.infrastructure.persistence.database import Database

__all__ = [
    "create_bot",
    "DiscordAudioBackend",
    "Database",
]
