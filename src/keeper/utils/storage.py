from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Generic, TypeVar

from pydantic import BaseModel, ValidationError

_log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# One lock per resolved file path, shared by every Document pointing at it.
_locks: dict[Path, asyncio.Lock] = {}


def _lock_for(path: Path) -> asyncio.Lock:
    key = path.resolve()
    lock = _locks.get(key)
    if lock is None:
        lock = _locks[key] = asyncio.Lock()
    return lock


class Document(Generic[M]):
    """A whole-file JSON document validated by a pydantic model.

    ``load`` never raises for a missing, empty, malformed or wrongly shaped
    file: the model's default instance is written in its place and returned.
    ``save`` logs write failures and swallows them.

    Read-modify-write cycles should use :meth:`edit`, which serialises them
    per file so concurrent handlers cannot lose each other's updates.
    """

    def __init__(self, path: Path, model: type[M]):
        self.path = Path(path)
        self.model = model

    def load(self) -> M:
        try:
            raw = self.path.read_text(encoding="utf-8")
            if not raw.strip():
                raise ValueError("empty document")
            return self.model.model_validate(json.loads(raw))
        except FileNotFoundError:
            _log.info("%s does not exist yet, creating it", self.path)
        except (ValueError, ValidationError) as exc:
            # json.JSONDecodeError is a ValueError as well
            _log.warning("%s is corrupt (%s), resetting to defaults", self.path, exc)

        default = self.model()
        self.save(default)
        return default

    def save(self, data: M) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(data.model_dump(mode="json"), ensure_ascii=False, indent=4),
                encoding="utf-8",
            )
        except OSError:
            _log.exception("Failed to write %s", self.path)

    @asynccontextmanager
    async def edit(self) -> AsyncIterator[M]:
        """Load, yield for mutation, and save while holding the file's lock.

        If the body raises, nothing is written.
        """

        async with _lock_for(self.path):
            data = self.load()
            yield data
            self.save(data)
