"""Discord cogs - command handlers."""

from guild_jukebox.infrastructure.discord.cogs.config_cog import ConfigCog
from guild_jukebox.infrastructure.discord.cogs.event_cog import EventCog
from guild_jukebox.infrastructure.discord.cogs.favorites_cog import FavoritesCog
from guild_jukebox.infrastructure.discord.cogs.playback_cog import PlaybackCog
from guild_jukebox.infrastructure.discord.cogs.queue_cog import QueueCog
from guild_jukebox.infrastructure.discord.cogs.skip_cog import SkipCog

__all__ = [
    "PlaybackCog",
    "QueueCog",
    "SkipCog",
    "FavoritesCog",
    "ConfigCog",
    "EventCog",
]
