"""TrackResolver implementation using yt-dlp for URL resolution, search, and autoplay."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Collection
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from guild_jukebox.application.interfaces.track_resolver import TrackResolver
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.music.entities import Track
from guild_jukebox.domain.music.value_objects import TrackId
from guild_jukebox.domain.shared.messages import LogTemplates

from .models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    AudioFormatInfo,
    CacheEntry,
    ExtractorArgs,
    YouTubeExtractorConfig,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

PLAYLIST_MAX_ENTRIES: Final[int] = 100
MIX_MAX_ENTRIES: Final[int] = 25
YOUTUBE_MIX_URL: Final[str] = "https://www.youtube.com/watch?v={video_id}&list=RD{video_id}"

_info_cache: dict[str, CacheEntry] = {}

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]

PLAYLIST_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"[?&]list="),
    re.compile(r"/playlist\?"),
    re.compile(r"/sets/"),
]

YOUTUBE_VIDEO_ID: Final[re.Pattern[str]] = re.compile(r"^[a-zA-Z0-9_-]{11}$")


class YtDlpTrackResolver(TrackResolver):
    """Blocking yt-dlp calls run in worker threads via ``asyncio.to_thread``."""

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._format = self._settings.ytdlp_format or "bestaudio/best"

        self._base_opts = YtDlpOpts(
            format=self._format,
            extractor_args=ExtractorArgs(
                youtube=YouTubeExtractorConfig(pot_server_url=self._settings.pot_server_url)
            ),
        )

        logger.info(LogTemplates.YTDLP_POT_CONFIGURED, self._settings.pot_server_url)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _get_playlist_opts(self, max_entries: int) -> YtDlpOpts:
        return self._get_opts(
            noplaylist=False, extract_flat="in_playlist", playlistend=max_entries
        )

    # ── Conversion ──────────────────────────────────────────────────

    def _info_to_track(self, info: YtDlpTrackInfo, *, require_stream: bool = True) -> Track | None:
        """Build a Track; flat playlist entries come without a stream URL."""
        try:
            url = info.webpage_url or info.url
            if not url or not url.startswith(("http://", "https://")):
                logger.warning(LogTemplates.YTDLP_NO_URL_IN_INFO_DICT)
                return None

            stream_url = self._extract_stream_url(info) if require_stream else None
            if require_stream and not stream_url:
                logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
                return None

            return Track(
                id=TrackId.from_url(url),
                title=info.title,
                uri=url,
                duration_seconds=info.duration,
                stream_url=stream_url,
                thumbnail_url=info.thumbnail,
                artist=info.display_artist,
            )
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_INFO_TO_TRACK)
            return None

    def _extract_stream_url(self, info: YtDlpTrackInfo) -> str | None:
        if info.url and info.url != info.webpage_url:
            return info.url
        return self._extract_stream_from_formats(info.formats)

    @staticmethod
    def _extract_stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        audio_formats = [f for f in formats if f.acodec != "none" and f.url]
        if audio_formats:
            return audio_formats[-1].url
        return None

    @staticmethod
    def _parse_entries(data: Any) -> list[YtDlpTrackInfo]:
        if not isinstance(data, dict):
            return []
        entries = data.get("entries", [])
        if not isinstance(entries, list):
            return []
        return [YtDlpTrackInfo.model_validate(dict(e)) for e in entries if e]

    # ── Blocking yt-dlp calls ───────────────────────────────────────

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = _info_cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            _info_cache.pop(url, None)

        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(url, download=False)
                result = YtDlpTrackInfo.model_validate(dict(data)) if isinstance(data, dict) else None
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            return None

        _info_cache[url] = CacheEntry(info=result, cached_at=now)
        if len(_info_cache) > CACHE_MAX_SIZE:
            expired = [k for k, entry in _info_cache.items() if now - entry.cached_at >= CACHE_TTL]
            for k in expired:
                _info_cache.pop(k, None)
            if expired:
                logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))
        return result

    def _search_sync(self, query: str, limit: int = 1) -> list[YtDlpTrackInfo]:
        try:
            with YoutubeDL(params=cast(Any, self._get_opts().model_dump())) as ydl:
                data = ydl.extract_info(f"ytsearch{limit}:{query}", download=False)
                return self._parse_entries(data)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            return []

    def _extract_playlist_sync(self, url: str, max_entries: int) -> list[YtDlpTrackInfo]:
        try:
            opts = self._get_playlist_opts(max_entries).model_dump()
            with YoutubeDL(params=cast(Any, opts)) as ydl:
                data = ydl.extract_info(url, download=False)
                return self._parse_entries(data)
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_PLAYLIST, url)
            return []

    # ── TrackResolver ───────────────────────────────────────────────

    async def resolve(self, query: str) -> list[Track]:
        query = query.strip()
        if not query:
            return []

        if self.is_url(query) and self.is_playlist(query):
            entries = await asyncio.to_thread(
                self._extract_playlist_sync, query, PLAYLIST_MAX_ENTRIES
            )
            tracks = [self._info_to_track(e, require_stream=False) for e in entries]
            return [t for t in tracks if t is not None]

        if self.is_url(query):
            info = await asyncio.to_thread(self._extract_info_sync, query)
            track = self._info_to_track(info) if info else None
            return [track] if track else []

        return await self.search(query, limit=1)

    async def search(self, query: str, limit: int = 5) -> list[Track]:
        results = await asyncio.to_thread(self._search_sync, query, limit)
        tracks = [self._info_to_track(info) for info in results]
        return [t for t in tracks if t is not None]

    async def related(self, track: Track, *, exclude: Collection[TrackId] = ()) -> Track | None:
        """Pick the first unplayed entry of the YouTube mix for *track*.

        Tracks that are not YouTube videos fall back to a search on their
        artist and title.
        """
        excluded = {t.value for t in exclude} | {track.id.value}

        if YOUTUBE_VIDEO_ID.match(track.id.value):
            mix_url = YOUTUBE_MIX_URL.format(video_id=track.id.value)
            entries = await asyncio.to_thread(self._extract_playlist_sync, mix_url, MIX_MAX_ENTRIES)
            for entry in entries:
                candidate = self._info_to_track(entry, require_stream=False)
                if candidate is not None and candidate.id.value not in excluded:
                    return candidate

        query = f"{track.artist} {track.title}" if track.artist else track.title
        for candidate in await self.search(query, limit=self._settings.search_limit):
            if candidate.id.value not in excluded:
                return candidate
        return None

    async def resolve_stream_url(self, track: Track) -> str | None:
        info = await asyncio.to_thread(self._extract_info_sync, track.uri)
        if info is None:
            return None
        stream_url = self._extract_stream_url(info)
        if stream_url is None:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, track.title)
        return stream_url

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    def is_playlist(self, url: str) -> bool:
        return any(pattern.search(url) for pattern in PLAYLIST_PATTERNS)
