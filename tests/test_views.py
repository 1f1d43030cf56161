from __future__ import annotations

import asyncio
from types import SimpleNamespace

import discord

from keeper.utils import views
from keeper.utils.views import ConfirmView, PaginatorView

from conftest import Recorder, make_interaction


async def _render(paginator) -> discord.Embed:
    return discord.Embed(description=", ".join(map(str, paginator.page_items())))


def _message(mid: int = 4242) -> SimpleNamespace:
    return SimpleNamespace(id=mid, edit=Recorder())


def test_buttons_follow_page_position() -> None:
    async def scenario():
        single = PaginatorView(range(3), _render, owner_id=1, timeout=60)
        multi = PaginatorView(range(25), _render, owner_id=1, timeout=60)
        return single, multi

    single, multi = asyncio.run(scenario())

    assert single.previous_page.disabled and single.next_page.disabled
    assert multi.previous_page.disabled and not multi.next_page.disabled


def test_start_renders_first_page_and_binds_message() -> None:
    interaction = make_interaction(user_id=1)

    async def scenario():
        view = PaginatorView(range(15), _render, owner_id=1, timeout=60)
        await view.start(interaction)
        return view

    view = asyncio.run(scenario())
    try:
        _, kwargs = interaction.edit_original_response.last
        assert kwargs["view"] is view
        assert kwargs["embed"].description == ", ".join(map(str, range(10)))
        assert views.bound_view(4242) is view
    finally:
        views.release_message(4242)


def test_next_button_edits_message_with_following_page() -> None:
    interaction = make_interaction(user_id=1)

    async def scenario():
        view = PaginatorView(range(15), _render, owner_id=1, timeout=60)
        await view.next_page.callback(interaction)
        return view

    view = asyncio.run(scenario())

    _, kwargs = interaction.response.edit_message.last
    assert kwargs["embed"].description == ", ".join(map(str, range(10, 15)))
    assert view.previous_page.disabled is False
    assert view.next_page.disabled is True


def test_timeout_disables_buttons_and_unbinds() -> None:
    message = _message(7001)

    async def scenario():
        view = PaginatorView(range(30), _render, owner_id=1, timeout=60)
        view.bind(message)
        await view.on_timeout()
        return view

    view = asyncio.run(scenario())

    assert all(child.disabled for child in view.children)
    assert views.bound_view(7001) is None
    assert message.edit.last[1] == {"view": view}


def test_deleted_message_releases_view() -> None:
    async def scenario():
        view = PaginatorView(range(30), _render, owner_id=1, timeout=60)
        view.bind(_message(7002))
        views.release_message(7002)
        return view

    view = asyncio.run(scenario())

    assert view.is_finished()
    assert views.bound_view(7002) is None
    # releasing twice is harmless
    views.release_message(7002)


def test_other_users_are_rejected() -> None:
    stranger = make_interaction(user_id=2)
    owner = make_interaction(user_id=1)

    async def scenario():
        view = PaginatorView(range(30), _render, owner_id=1, timeout=60)
        return await view.interaction_check(stranger), await view.interaction_check(owner)

    rejected, accepted = asyncio.run(scenario())

    assert rejected is False
    assert accepted is True
    args, kwargs = stranger.response.send_message.last
    assert args == ("You can only control your own pagination.",)
    assert kwargs == {"ephemeral": True}


def _confirm_view() -> ConfirmView:
    return ConfirmView(
        owner_id=1,
        confirm_label="Yes, Unban All",
        confirm_text="Working...",
        cancel_text="Cancelled.",
        timeout_text="Timed out.",
    )


def test_confirm_sets_value_and_clears_components() -> None:
    interaction = make_interaction(user_id=1)

    async def scenario():
        view = _confirm_view()
        await view.confirm.callback(interaction)
        return view

    view = asyncio.run(scenario())

    assert view.value is True
    assert view.confirm.label == "Yes, Unban All"
    assert view.is_finished()
    assert interaction.response.edit_message.last[1] == {"content": "Working...", "embed": None, "view": None}


def test_cancel_and_timeout() -> None:
    interaction = make_interaction(user_id=1)
    message = _message(7003)

    async def scenario():
        cancelled = _confirm_view()
        await cancelled.cancel.callback(interaction)
        timed_out = _confirm_view()
        timed_out.bind(message)
        await timed_out.on_timeout()
        return cancelled, timed_out

    cancelled, timed_out = asyncio.run(scenario())

    assert cancelled.value is False
    assert timed_out.value is None
    assert message.edit.last[1] == {"content": "Timed out.", "embed": None, "view": None}
    assert views.bound_view(7003) is None
