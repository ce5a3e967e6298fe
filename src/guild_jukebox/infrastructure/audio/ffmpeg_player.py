"""
FFmpeg Audio Sources

Builds discord.py FFmpeg sources with volume, fade-in, seek, and filter options.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import discord

from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.value_objects import FilterType
from guild_jukebox.domain.shared.constants import AudioConstants

from .filters import filter_chain

if TYPE_CHECKING:
    from ...domain.music.entities import Track
    from ...domain.music.value_objects import StartSeconds


@dataclass
class FFmpegConfig:
    """Options layered on top of the configured ffmpeg before/options strings."""

    fade_in_seconds: float = AudioConstants.FADE_IN_SECONDS
    user_agent: str = AudioConstants.ANDROID_USER_AGENT

    def get_before_options(self, base: str, start_seconds: StartSeconds | None = None) -> str:
        opts = [base] if base else []
        # User-Agent must match yt-dlp's Android client to prevent YouTube 403
        opts.append(AudioConstants.FFMPEG_USER_AGENT_HEADER.format(user_agent=self.user_agent))
        if start_seconds is not None:
            opts.append(AudioConstants.FFMPEG_SEEK.format(seconds=float(start_seconds)))
        return " ".join(opts)

    def get_options(self, base: str, filter_type: FilterType) -> str:
        filters = []
        if self.fade_in_seconds > 0:
            filters.append(AudioConstants.FADE_IN_FILTER.format(duration=self.fade_in_seconds))
        chain = filter_chain(filter_type)
        if chain:
            filters.append(chain)

        opts = [base] if base else []
        if filters:
            opts.append(f'-af "{",".join(filters)}"')
        return " ".join(opts)


class FFmpegSourceFactory:
    """Creates volume-controllable ffmpeg sources for tracks."""

    def __init__(
        self, settings: AudioSettings | None = None, config: FFmpegConfig | None = None
    ) -> None:
        self._settings = settings or AudioSettings()
        self._config = config or FFmpegConfig()

    def build_options(
        self, filter_type: FilterType, start_seconds: StartSeconds | None = None
    ) -> tuple[str, str]:
        """Return ``(before_options, options)`` for ffmpeg."""
        base_before = self._settings.ffmpeg_options.get(
            "before_options", AudioConstants.FFMPEG_BEFORE_OPTIONS_DEFAULT
        )
        base_opts = self._settings.ffmpeg_options.get(
            "options", AudioConstants.FFMPEG_OPTIONS_DEFAULT
        )
        return (
            self._config.get_before_options(base_before, start_seconds),
            self._config.get_options(base_opts, filter_type),
        )

    def create_source(
        self,
        track: Track,
        *,
        volume: int,
        filter_type: FilterType = FilterType.NONE,
        start_seconds: StartSeconds | None = None,
    ) -> discord.PCMVolumeTransformer:
        """Create an audio source for a track.

        Args:
            track: The track to play; must carry a stream URL.
            volume: Volume percentage, 100 meaning unity gain.
            filter_type: Filter to bake into the ffmpeg graph.
            start_seconds: Optional offset to seek to before decoding.

        Raises:
            ValueError: If the track has no stream URL.
        """
        if not track.stream_url:
            raise ValueError(f"Track '{track.title}' has no stream URL")

        before_options, options = self.build_options(filter_type, start_seconds)
        source = discord.FFmpegPCMAudio(
            track.stream_url,
            before_options=before_options,
            options=options,
        )
        return discord.PCMVolumeTransformer(source, volume=volume / 100)
