from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional, Sequence

import discord

from .pagination import PAGE_SIZE, Paginator

_log = logging.getLogger(__name__)

# message id -> view currently listening for that message's components
_bound: dict[int, discord.ui.View] = {}


def bound_view(message_id: int) -> Optional[discord.ui.View]:
    return _bound.get(message_id)


def release_message(message_id: int) -> None:
    """Stop and forget the view bound to *message_id* (message was deleted)."""

    view = _bound.pop(message_id, None)
    if view is not None:
        view.stop()
        _log.debug("Released view for deleted message %s", message_id)


class NoticeView(discord.ui.LayoutView):
    """A single accented container with markdown text."""

    def __init__(self, content: str, colour: discord.Colour):
        super().__init__()
        container = discord.ui.Container(
            discord.ui.TextDisplay(content),
            accent_colour=colour,
        )
        self.add_item(container)


class ScopedView(discord.ui.View):
    """A view owned by one user and bound to one message.

    The binding is dropped on ``stop()``, on timeout, or when the bot sees
    the message deleted.
    """

    rejection = "You can only control your own pagination."

    def __init__(self, owner_id: int, *, timeout: float):
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.message: Optional[discord.Message] = None

    def bind(self, message: discord.Message) -> None:
        self.message = message
        _bound[message.id] = self

    def _unbind(self) -> None:
        if self.message is not None and _bound.get(self.message.id) is self:
            del _bound[self.message.id]

    def stop(self) -> None:
        self._unbind()
        super().stop()

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id == self.owner_id:
            return True
        await interaction.response.send_message(self.rejection, ephemeral=True)
        return False


Renderer = Callable[[Paginator], Awaitable[discord.Embed]]


class PaginatorView(ScopedView):
    """Previous/Next buttons over a :class:`Paginator`."""

    def __init__(
        self,
        items: Sequence,
        render: Renderer,
        *,
        owner_id: int,
        timeout: float,
        page_size: int = PAGE_SIZE,
    ):
        super().__init__(owner_id, timeout=timeout)
        self.paginator = Paginator(items, page_size)
        self.render = render
        self.sync_buttons()

    def sync_buttons(self) -> None:
        self.previous_page.disabled = not self.paginator.has_previous
        self.next_page.disabled = not self.paginator.has_next

    async def start(self, interaction: discord.Interaction) -> None:
        """Show the first page as the (deferred) interaction's response."""

        embed = await self.render(self.paginator)
        message = await interaction.edit_original_response(embed=embed, view=self)
        self.bind(message)

    async def _show(self, interaction: discord.Interaction) -> None:
        self.sync_buttons()
        embed = await self.render(self.paginator)
        await interaction.response.edit_message(embed=embed, view=self)

    @discord.ui.button(label="Previous", style=discord.ButtonStyle.primary)
    async def previous_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.paginator.previous()
        await self._show(interaction)

    @discord.ui.button(label="Next", style=discord.ButtonStyle.primary)
    async def next_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.paginator.next()
        await self._show(interaction)

    async def on_timeout(self) -> None:
        for child in self.children:
            child.disabled = True
        self._unbind()
        if self.message is None:
            return
        try:
            await self.message.edit(view=self)
        except discord.HTTPException as exc:
            _log.error("Failed to disable pagination buttons: %s", exc)


class ConfirmView(ScopedView):
    """One-shot Yes/Cancel prompt; ``value`` is True, False or None (timed out)."""

    rejection = "You can only interact with your own confirmation."

    def __init__(
        self,
        *,
        owner_id: int,
        confirm_label: str,
        confirm_text: str,
        cancel_text: str,
        timeout_text: str,
        timeout: float = 30,
    ):
        super().__init__(owner_id, timeout=timeout)
        self.value: Optional[bool] = None
        self.confirm_text = confirm_text
        self.cancel_text = cancel_text
        self.timeout_text = timeout_text
        self.confirm.label = confirm_label

    @discord.ui.button(label="Confirm", style=discord.ButtonStyle.danger)
    async def confirm(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.value = True
        await interaction.response.edit_message(content=self.confirm_text, embed=None, view=None)
        self.stop()

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.secondary)
    async def cancel(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.value = False
        await interaction.response.edit_message(content=self.cancel_text, embed=None, view=None)
        self.stop()

    async def on_timeout(self) -> None:
        self._unbind()
        if self.message is None:
            return
        try:
            await self.message.edit(content=self.timeout_text, embed=None, view=None)
        except discord.HTTPException as exc:
            _log.error("Failed to update confirmation after timeout: %s", exc)
