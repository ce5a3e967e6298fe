"""Dropdown of search results; picking one plays or queues it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from guild_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from guild_jukebox.infrastructure.discord.guards.voice_guards import build_invoker
from guild_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView
from guild_jukebox.utils.reply import format_play_result, truncate

if TYPE_CHECKING:
    from ....application.services.session_orchestrator import SessionOrchestrator
    from ....config.container import Container
    from ....domain.music.entities import Track

logger = logging.getLogger(__name__)

# View timeout in seconds (2 minutes)
_VIEW_TIMEOUT = 120.0

_NUMBER_EMOJI = ("1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣", "🔟")


class SearchSelect(discord.ui.Select["SearchResultsView"]):
    def __init__(self, tracks: list[Track]) -> None:
        options = [
            discord.SelectOption(
                label=truncate(track.title, 100),
                value=str(index),
                description=truncate(
                    f"{track.artist} · {track.duration_formatted}"
                    if track.artist
                    else track.duration_formatted,
                    100,
                ),
                emoji=_NUMBER_EMOJI[index] if index < len(_NUMBER_EMOJI) else None,
            )
            for index, track in enumerate(tracks)
        ]
        super().__init__(
            placeholder=DiscordUIMessages.SEARCH_PLACEHOLDER,
            options=options,
            min_values=1,
            max_values=1,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        assert self.view is not None
        await self.view.play_choice(interaction, int(self.values[0]))


class SearchResultsView(BaseInteractiveView):
    """One-shot picker: the first successful choice disables the dropdown."""

    def __init__(self, *, guild_id: int, container: Container, tracks: list[Track]) -> None:
        super().__init__(timeout=_VIEW_TIMEOUT)
        self.guild_id = guild_id
        self.container = container
        self.tracks = list(tracks)
        self.add_item(SearchSelect(self.tracks))

    @property
    def orchestrator(self) -> SessionOrchestrator:
        return self.container.session_orchestrator

    async def play_choice(self, interaction: discord.Interaction, index: int) -> None:
        invoker = await build_invoker(interaction, self.container.settings.discord.owner_ids)
        if invoker is None:
            return

        # Starting playback can exceed the 3-second interaction deadline.
        await interaction.response.defer()
        result = await self.orchestrator.play_batch(self.guild_id, invoker, [self.tracks[index]])

        self._disable_buttons()
        self.stop()
        await interaction.edit_original_response(content=format_play_result(result), view=self)

    async def on_timeout(self) -> None:
        self._disable_buttons()
        if self._message is None:
            return
        try:
            await self._message.edit(content=DiscordUIMessages.SEARCH_EXPIRED, view=self)
        except discord.HTTPException as exc:
            logger.debug(LogTemplates.VIEW_EXPIRE_FAILED, self._message.id, exc)
