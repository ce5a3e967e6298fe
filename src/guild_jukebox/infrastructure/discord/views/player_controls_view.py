"""Button and filter controls attached to the guild's status message."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord

from guild_jukebox.domain.music.value_objects import FilterType
from guild_jukebox.domain.shared.messages import DiscordUIMessages
from guild_jukebox.infrastructure.discord.guards.voice_guards import build_invoker
from guild_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView

if TYPE_CHECKING:
    from ....application.services.orchestrator_models import Invoker
    from ....application.services.session_orchestrator import SessionOrchestrator
    from ....application.services.status_projector import DisplayPayload
    from ....config.container import Container

logger = logging.getLogger(__name__)


class FilterSelect(discord.ui.Select["PlayerControlsView"]):
    """Dropdown of audio filters; picking "None" clears the active one."""

    def __init__(self, active: FilterType, *, disabled: bool) -> None:
        options = [
            discord.SelectOption(
                label=DiscordUIMessages.STATUS_NO_FILTER,
                value=FilterType.NONE.value,
                default=active is FilterType.NONE,
            )
        ]
        options.extend(
            discord.SelectOption(
                label=filter_type.display_name,
                value=filter_type.value,
                default=filter_type is active,
            )
            for filter_type in FilterType.selectable()
        )
        super().__init__(
            placeholder=DiscordUIMessages.FILTER_PLACEHOLDER,
            options=options,
            min_values=1,
            max_values=1,
            disabled=disabled,
            row=2,
        )

    async def callback(self, interaction: discord.Interaction) -> None:
        assert self.view is not None
        invoker = await self.view.invoker_for(interaction)
        if invoker is None:
            return
        await interaction.response.defer()

        filter_type = FilterType(self.values[0])
        orchestrator = self.view.orchestrator
        if filter_type is FilterType.NONE:
            await orchestrator.clear_filters(self.view.guild_id, invoker)
        else:
            await orchestrator.apply_filter(self.view.guild_id, invoker, filter_type)


class PlayerControlsView(BaseInteractiveView):
    """Controls are rebuilt from each payload, so enabled states always match the embed."""

    def __init__(self, *, payload: DisplayPayload, container: Container) -> None:
        super().__init__(timeout=None)
        self.guild_id = payload.guild_id
        self.container = container
        self._volume_step = container.settings.player.volume_step

        self._sync(payload)
        self.add_item(FilterSelect(payload.active_filter, disabled=payload.is_idle))

    @property
    def orchestrator(self) -> SessionOrchestrator:
        return self.container.session_orchestrator

    def _sync(self, payload: DisplayPayload) -> None:
        idle = payload.is_idle
        self.previous_button.disabled = not payload.can_go_back
        self.pause_button.disabled = idle
        self.pause_button.label = (
            DiscordUIMessages.BUTTON_RESUME if payload.is_paused else DiscordUIMessages.BUTTON_PAUSE
        )
        self.stop_button.disabled = idle
        self.next_button.disabled = idle or not payload.can_go_forward
        self.volume_down_button.disabled = not payload.can_volume_down
        self.volume_up_button.disabled = not payload.can_volume_up
        self.loop_button.disabled = idle
        self.loop_button.style = _toggle_style(payload.loop_enabled)
        self.autoplay_button.disabled = idle
        self.autoplay_button.style = _toggle_style(payload.autoplay_enabled)

    async def invoker_for(self, interaction: discord.Interaction) -> Invoker | None:
        return await build_invoker(interaction, self.container.settings.discord.owner_ids)

    async def _begin(self, interaction: discord.Interaction) -> Invoker | None:
        invoker = await self.invoker_for(interaction)
        if invoker is not None:
            await interaction.response.defer()
        return invoker

    @discord.ui.button(label=DiscordUIMessages.BUTTON_PREVIOUS, style=discord.ButtonStyle.secondary, row=0)
    async def previous_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.rewind(self.guild_id, invoker)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_PAUSE, style=discord.ButtonStyle.primary, row=0)
    async def pause_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.pause_or_resume(self.guild_id, invoker)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_STOP, style=discord.ButtonStyle.danger, row=0)
    async def stop_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.disconnect(self.guild_id, invoker)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_NEXT, style=discord.ButtonStyle.secondary, row=0)
    async def next_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        invoker = await self.invoker_for(interaction)
        if invoker is None:
            return
        await interaction.response.defer()

        result = await self.orchestrator.skip(self.guild_id, invoker)
        if not result.action_executed:
            await interaction.followup.send(
                DiscordUIMessages.SKIP_VOTE_RECORDED.format(
                    votes=result.votes, needed=result.required
                ),
                ephemeral=True,
            )

    @discord.ui.button(label=DiscordUIMessages.BUTTON_VOLUME_DOWN, style=discord.ButtonStyle.secondary, row=1)
    async def volume_down_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.set_volume(self.guild_id, invoker, delta=-self._volume_step)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_VOLUME_UP, style=discord.ButtonStyle.secondary, row=1)
    async def volume_up_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.set_volume(self.guild_id, invoker, delta=self._volume_step)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_LOOP, style=discord.ButtonStyle.secondary, row=1)
    async def loop_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.toggle_loop(self.guild_id, invoker)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_AUTOPLAY, style=discord.ButtonStyle.secondary, row=1)
    async def autoplay_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[PlayerControlsView]
    ) -> None:
        if invoker := await self._begin(interaction):
            await self.orchestrator.toggle_autoplay(self.guild_id, invoker)


def _toggle_style(enabled: bool) -> discord.ButtonStyle:
    return discord.ButtonStyle.success if enabled else discord.ButtonStyle.secondary
