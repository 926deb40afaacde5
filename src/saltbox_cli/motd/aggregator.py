from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import aiohttp

from saltbox_cli.constants import DEFAULT_INSTANCE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

InstanceT = TypeVar("InstanceT")
InfoT = TypeVar("InfoT")

Fetch = Callable[[aiohttp.ClientSession, InstanceT], Awaitable[InfoT]]


async def gather_instances(
    kind: str,
    instances: Sequence[InstanceT],
    fetch: Fetch,
    *,
    default_timeout: float = DEFAULT_INSTANCE_TIMEOUT_SECONDS,
) -> list[InfoT]:
    """
    Poll every configured and enabled instance concurrently.

    Each instance gets its own HTTP session bounded by the instance timeout,
    and the whole fetch is bounded by the same value. An instance that fails
    for any reason is logged at DEBUG and left out of the result. Results are
    sorted by name so the output does not depend on completion order.
    """
    pending: list[Awaitable[Optional[InfoT]]] = []
    for index, instance in enumerate(instances):
        if not getattr(instance, "enabled", True):
            logger.debug("motd.instance_skipped kind=%s index=%d reason=disabled", kind, index)
            continue
        if not instance.is_configured():
            logger.debug("motd.instance_skipped kind=%s index=%d reason=unconfigured", kind, index)
            continue
        timeout = instance.effective_timeout(default_timeout)
        pending.append(_fetch_one(kind, index, instance, fetch, timeout))

    if not pending:
        return []

    results = await asyncio.gather(*pending)
    infos = [info for info in results if info is not None]
    infos.sort(key=lambda info: info.name)
    logger.debug("motd.gathered kind=%s requested=%d succeeded=%d", kind, len(pending), len(infos))
    return infos


async def _fetch_one(
    kind: str,
    index: int,
    instance: InstanceT,
    fetch: Fetch,
    timeout: float,
) -> Optional[InfoT]:
    started = time.monotonic()
    try:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=timeout),
            # Cookie-based logins must also work against bare IP addresses.
            cookie_jar=aiohttp.CookieJar(unsafe=True),
        ) as session:
            info = await asyncio.wait_for(fetch(session, instance), timeout=timeout)
    except Exception as e:
        logger.debug(
            "motd.instance_failed kind=%s index=%d url=%s error=%r elapsed=%.3fs",
            kind,
            index,
            instance.url,
            e,
            time.monotonic() - started,
        )
        return None
    logger.debug(
        "motd.instance_fetched kind=%s index=%d name=%s elapsed=%.3fs",
        kind,
        index,
        info.name,
        time.monotonic() - started,
    )
    return info


__all__ = ["Fetch", "gather_instances"]
