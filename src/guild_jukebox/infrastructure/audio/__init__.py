"""Audio infrastructure - yt-dlp resolver, ffmpeg sources, and filter chains."""

from guild_jukebox.infrastructure.audio.ffmpeg_player import FFmpegConfig, FFmpegSourceFactory
from guild_jukebox.infrastructure.audio.filters import filter_chain, playback_speed
from guild_jukebox.infrastructure.audio.ytdlp_resolver import YtDlpTrackResolver

__all__ = [
    "FFmpegConfig",
    "FFmpegSourceFactory",
    "YtDlpTrackResolver",
    "filter_chain",
    "playback_speed",
]
