from __future__ import annotations

from typing import Any

import aiohttp


def join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


async def get_json(session: aiohttp.ClientSession, url: str, **kwargs: Any) -> Any:
    """GET url and decode the JSON body. Non-2xx responses raise aiohttp.ClientResponseError."""
    async with session.get(url, **kwargs) as response:
        response.raise_for_status()
        # Several of these APIs answer with text/plain or no content type at all.
        return await response.json(content_type=None)


async def post_json(session: aiohttp.ClientSession, url: str, payload: Any, **kwargs: Any) -> Any:
    async with session.post(url, json=payload, **kwargs) as response:
        response.raise_for_status()
        return await response.json(content_type=None)


def expect_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"unexpected {what} response: expected an object, got {type(data).__name__}")
    return data


def expect_list(data: Any, what: str) -> list[Any]:
    if not isinstance(data, list):
        raise ValueError(f"unexpected {what} response: expected a list, got {type(data).__name__}")
    return data
