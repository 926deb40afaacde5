from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

Provider = Callable[[], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class InfoSource:
    key: str
    provider: Provider
    timeout: float = 1.0
    order: int = 0
    # Shown instead of a value when the provider exceeds its timeout.
    timeout_message: str = ""

    def message_on_timeout(self) -> str:
        return self.timeout_message or f"{self.key} info timed out"


@dataclass(frozen=True, slots=True)
class Result:
    key: str
    value: str
    order: int


async def gather_info(sources: Sequence[InfoSource]) -> list[Result]:
    """
    Run every source concurrently and return one Result per source, sorted by order.

    A source that exceeds its timeout yields its timeout message; a source
    that raises yields an "Error: ..." line. Neither affects the others.
    """
    results = await asyncio.gather(*(_run_source(source) for source in sources))
    return sorted(results, key=lambda result: result.order)


async def _run_source(source: InfoSource) -> Result:
    started = time.monotonic()
    try:
        value = await asyncio.wait_for(source.provider(), timeout=source.timeout)
    except asyncio.TimeoutError:
        logger.debug("motd.source_timeout key=%s timeout=%.1fs", source.key, source.timeout)
        value = source.message_on_timeout()
    except Exception as e:
        logger.debug("motd.source_failed key=%s error=%r", source.key, e)
        value = f"Error: {source.key} provider failed ({e})"
    logger.debug("motd.source_done key=%s elapsed=%.3fs", source.key, time.monotonic() - started)
    return Result(key=source.key, value=value, order=source.order)


__all__ = ["InfoSource", "Provider", "Result", "gather_info"]
