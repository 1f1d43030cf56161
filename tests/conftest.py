"""Shared fixtures and Discord stand-ins."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from keeper.utils.stores import Stores


class Recorder:
    """Async callable that remembers every call and returns a fixed value."""

    def __init__(self, result: Any = None) -> None:
        self.calls: list[tuple[tuple, dict]] = []
        self.result = result

    async def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        return self.result

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def last(self) -> tuple[tuple, dict]:
        return self.calls[-1]


class StubUser:
    def __init__(self, uid: int, name: str, *, bot: bool = False) -> None:
        self.id = uid
        self.name = name
        self.bot = bot
        self.mention = f"<@{uid}>"

    def __str__(self) -> str:
        return self.name


def make_interaction(*, user_id: int = 1, guild=None, done: bool = False) -> SimpleNamespace:
    state = {"done": done}
    return SimpleNamespace(
        id=555,
        user=SimpleNamespace(id=user_id),
        guild=guild,
        guild_id=getattr(guild, "id", None),
        command=None,
        response=SimpleNamespace(
            is_done=lambda: state["done"],
            send_message=Recorder(),
            defer=Recorder(),
            edit_message=Recorder(),
        ),
        followup=SimpleNamespace(send=Recorder()),
        edit_original_response=Recorder(SimpleNamespace(id=4242)),
    )


@pytest.fixture
def stores(tmp_path: Path) -> Stores:
    return Stores(tmp_path / "data")
