"""Utility functions for formatting Discord messages."""

from __future__ import annotations

from collections.abc import Sequence
from functools import cache
from typing import TYPE_CHECKING, TypeVar

from guild_jukebox.domain.shared.messages import DiscordUIMessages

if TYPE_CHECKING:
    from ..application.services.orchestrator_models import PlayResult

T = TypeVar("T")


@cache
def format_duration(seconds: int | float | None) -> str:
    if seconds is None:
        return "–"

    total_seconds = int(seconds)
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def format_track_line(
    position: int | None, title: str, uri: str, duration_seconds: int | None, suffix: str = ""
) -> str:
    """One linked line of a track listing, numbered unless *position* is None."""
    line = f"[{truncate(title, 60)}]({uri}) `{format_duration(duration_seconds)}`"
    if position is not None:
        line = f"`{position}.` {line}"
    return f"{line} {suffix}" if suffix else line


def page_count(total: int, per_page: int) -> int:
    return max(1, -(-total // per_page))


def paginate(items: Sequence[T], page: int, per_page: int) -> tuple[Sequence[T], int, int]:
    """Slice *items* for a 1-based *page*, clamping out-of-range pages.

    Returns:
        ``(page_items, page, total_pages)`` with the page actually shown.
    """
    total_pages = page_count(len(items), per_page)
    page = min(max(page, 1), total_pages)
    start = (page - 1) * per_page
    return items[start : start + per_page], page, total_pages


def format_play_result(result: PlayResult) -> str:
    """Reply text for a play, search pick, or favorites batch."""
    if result.started and result.queued:
        message = DiscordUIMessages.PLAY_BATCH_STARTED.format(
            title=truncate(result.started.track.title, 80), count=len(result.queued)
        )
    elif result.started:
        message = DiscordUIMessages.PLAY_STARTED.format(title=truncate(result.started.track.title, 80))
    elif len(result.queued) == 1:
        message = DiscordUIMessages.PLAY_QUEUED.format(
            title=truncate(result.queued[0].track.title, 80), position=result.position
        )
    else:
        message = DiscordUIMessages.PLAY_BATCH_QUEUED.format(count=len(result.queued))

    if result.skipped_count:
        message += DiscordUIMessages.PLAY_SKIPPED_SUFFIX.format(count=result.skipped_count)
    return message
