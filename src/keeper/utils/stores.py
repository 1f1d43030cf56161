"""Typed access to the bot's four JSON documents.

Every mutating method is a coroutine that runs under the document's lock;
readers call ``load`` directly and always see the file's current content.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, RootModel, field_validator

from .storage import Document

DEFAULT_WELCOME_MESSAGE = "Welcome {username} to {servername}!"

MemberKind = Literal["humans", "bots"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class AfkEntry(BaseModel):
    id: str
    reason: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # hand-edited files may drop the offset
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class AfkData(BaseModel):
    users: list[AfkEntry] = Field(default_factory=list)


class AutoroleSettings(BaseModel):
    humans: list[str] = Field(default_factory=list)
    bots: list[str] = Field(default_factory=list)


class AutoroleData(BaseModel):
    guilds: dict[str, AutoroleSettings] = Field(default_factory=dict)


class Blacklist(RootModel[list[str]]):
    root: list[str] = Field(default_factory=list)


class WelcomeConfig(BaseModel):
    enabled: bool = False
    channel: Optional[str] = None
    message: str = DEFAULT_WELCOME_MESSAGE
    format: Literal["text", "embed"] = "text"


class WelcomeData(RootModel[dict[str, WelcomeConfig]]):
    root: dict[str, WelcomeConfig] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class AfkStore:
    def __init__(self, path: Path):
        self.document = Document(path, AfkData)

    def load(self) -> AfkData:
        return self.document.load()

    def get(self, user_id: int | str) -> Optional[AfkEntry]:
        uid = str(user_id)
        return next((u for u in self.load().users if u.id == uid), None)

    async def set(self, user_id: int | str, reason: str, *, now: Optional[datetime] = None) -> bool:
        """Mark *user_id* AFK. Returns ``True`` when an existing entry was updated."""

        uid = str(user_id)
        stamp = now or _utcnow()
        async with self.document.edit() as data:
            for entry in data.users:
                if entry.id == uid:
                    entry.reason = reason
                    entry.timestamp = stamp
                    return True
            data.users.append(AfkEntry(id=uid, reason=reason, timestamp=stamp))
            return False

    async def clear(self, user_id: int | str) -> Optional[AfkEntry]:
        """Remove and return the entry for *user_id*, if there is one."""

        uid = str(user_id)
        async with self.document.edit() as data:
            for index, entry in enumerate(data.users):
                if entry.id == uid:
                    return data.users.pop(index)
            return None

    def oldest_first(self) -> list[AfkEntry]:
        return sorted(self.load().users, key=lambda e: e.timestamp)


class AutoroleStore:
    def __init__(self, path: Path):
        self.document = Document(path, AutoroleData)

    def get(self, guild_id: int | str) -> Optional[AutoroleSettings]:
        return self.document.load().guilds.get(str(guild_id))

    def roles_for(self, guild_id: int | str, kind: MemberKind) -> list[str]:
        settings = self.get(guild_id)
        return list(getattr(settings, kind)) if settings else []

    async def add(self, guild_id: int | str, kind: MemberKind, role_id: int | str) -> bool:
        """Add *role_id* to the list; ``False`` if it was already configured."""

        rid = str(role_id)
        async with self.document.edit() as data:
            roles = getattr(data.guilds.setdefault(str(guild_id), AutoroleSettings()), kind)
            if rid in roles:
                return False
            roles.append(rid)
            return True

    async def remove(self, guild_id: int | str, kind: MemberKind, role_id: int | str) -> bool:
        rid = str(role_id)
        async with self.document.edit() as data:
            roles = getattr(data.guilds.setdefault(str(guild_id), AutoroleSettings()), kind)
            if rid not in roles:
                return False
            roles.remove(rid)
            return True

    async def reset(self, guild_id: int | str, *kinds: MemberKind) -> None:
        async with self.document.edit() as data:
            settings = data.guilds.setdefault(str(guild_id), AutoroleSettings())
            for kind in kinds or ("humans", "bots"):
                setattr(settings, kind, [])


class BlacklistStore:
    def __init__(self, path: Path):
        self.document = Document(path, Blacklist)

    def all(self) -> list[str]:
        return list(self.document.load().root)

    def contains(self, guild_id: int | str) -> bool:
        return str(guild_id) in self.document.load().root

    async def add(self, guild_id: int | str) -> bool:
        gid = str(guild_id)
        async with self.document.edit() as data:
            if gid in data.root:
                return False
            data.root.append(gid)
            return True

    async def remove(self, guild_id: int | str) -> bool:
        gid = str(guild_id)
        async with self.document.edit() as data:
            if gid not in data.root:
                return False
            data.root = [g for g in data.root if g != gid]
            return True


class WelcomeStore:
    def __init__(self, path: Path):
        self.document = Document(path, WelcomeData)

    def get(self, guild_id: int | str) -> WelcomeConfig:
        """Return the guild's config, or an unsaved default one."""

        return self.document.load().root.get(str(guild_id)) or WelcomeConfig()

    def exists(self, guild_id: int | str) -> bool:
        return str(guild_id) in self.document.load().root

    async def put(self, guild_id: int | str, config: WelcomeConfig) -> None:
        async with self.document.edit() as data:
            data.root[str(guild_id)] = config

    async def delete(self, guild_id: int | str) -> bool:
        async with self.document.edit() as data:
            return data.root.pop(str(guild_id), None) is not None


class Stores:
    """All flat-file stores rooted in one data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.afk = AfkStore(self.data_dir / "afk.json")
        self.autorole = AutoroleStore(self.data_dir / "autorole.json")
        self.blacklist = BlacklistStore(self.data_dir / "blacklist.json")
        self.welcome = WelcomeStore(self.data_dir / "welcome.json")
