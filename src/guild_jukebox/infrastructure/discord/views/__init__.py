"""Discord UI views."""

from guild_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView
from guild_jukebox.infrastructure.discord.views.player_controls_view import (
    FilterSelect,
    PlayerControlsView,
)
from guild_jukebox.infrastructure.discord.views.search_view import (
    SearchResultsView,
    SearchSelect,
)

__all__ = [
    "BaseInteractiveView",
    "FilterSelect",
    "PlayerControlsView",
    "SearchResultsView",
    "SearchSelect",
]
