"""Read-only lookups against third-party HTTP APIs.

A single attempt per call; callers turn the exceptions below into user
messages.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

_log = logging.getLogger(__name__)

CAT_API_URL = "https://api.thecatapi.com/v1/images/search"
DOG_API_URL = "https://dog.ceo/api/breeds/image/random"
MEME_API_URL = "https://meme-api.com/gimme"
GITHUB_USER_URL = "https://api.github.com/users/{username}"
POKEAPI_URL = "https://pokeapi.co/api/v2/pokemon/{name}/"

USER_AGENT = "KeeperDiscordBot"


class LookupFailed(Exception):
    """The upstream API could not be reached or answered with an error."""


class LookupNotFound(LookupFailed):
    """The upstream API answered 404 for the requested resource."""


class Lookups:
    def __init__(self, *, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def _get_json(self, url: str) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            _log.error("Request to %s failed: %s", url, exc)
            raise LookupFailed(str(exc)) from exc

        if response.status_code == 404:
            raise LookupNotFound(url)
        if response.is_error:
            _log.error("%s answered %s %s", url, response.status_code, response.reason_phrase)
            raise LookupFailed(f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            _log.error("%s returned invalid JSON", url)
            raise LookupFailed("invalid JSON") from exc

    async def fetch_bytes(self, url: str) -> bytes:
        """Download a file (emoji images)."""

        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            _log.error("Download of %s failed: %s", url, exc)
            raise LookupFailed(str(exc)) from exc
        return response.content

    # ------------------------------------------------------------------
    # Animals / fun
    # ------------------------------------------------------------------

    async def random_cat(self) -> str:
        data = await self._get_json(CAT_API_URL)
        try:
            return data[0]["url"]
        except (IndexError, KeyError, TypeError) as exc:
            raise LookupFailed("unexpected cat API payload") from exc

    async def random_dog(self) -> str:
        data = await self._get_json(DOG_API_URL)
        try:
            return data["message"]
        except (KeyError, TypeError) as exc:
            raise LookupFailed("unexpected dog API payload") from exc

    async def random_meme(self) -> dict[str, Any]:
        data = await self._get_json(MEME_API_URL)
        if not isinstance(data, dict) or "url" not in data:
            raise LookupFailed("unexpected meme API payload")
        return data

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def github_user(self, username: str) -> dict[str, Any]:
        return await self._get_json(GITHUB_USER_URL.format(username=username))

    async def pokemon(self, name: str) -> dict[str, Any]:
        return await self._get_json(POKEAPI_URL.format(name=name.lower()))


def title_words(slug: str) -> str:
    """``mr-mime`` -> ``Mr Mime``."""

    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))
