from __future__ import annotations

import asyncio
from functools import partial

import aiohttp

from saltbox_cli.config.models import ApiKeyInstance, MotdConfig
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_mapping, get_json, join_url
from saltbox_cli.motd.formatting import format_instances, summarize_queue
from saltbox_cli.motd.models import QueueInfo

PAGE_SIZE = 100

# kind -> (default display name, queue API path)
ARR_APPS: dict[str, tuple[str, str]] = {
    "sonarr": ("Sonarr", "api/v3/queue"),
    "radarr": ("Radarr", "api/v3/queue"),
    "lidarr": ("Lidarr", "api/v1/queue"),
    "readarr": ("Readarr", "api/v1/queue"),
}


async def fetch_queue(session: aiohttp.ClientSession, instance: ApiKeyInstance, *, kind: str) -> QueueInfo:
    """Collect the status of every queue record, following pagination until totalRecords is reached."""
    default_name, path = ARR_APPS[kind]
    url = join_url(instance.url, path)
    headers = {"X-Api-Key": instance.apikey, "Accept": "application/json"}

    statuses: list[str] = []
    page = 1
    while True:
        data = expect_mapping(
            await get_json(session, url, params={"page": page, "pageSize": PAGE_SIZE}, headers=headers),
            f"{default_name} queue",
        )
        records = data.get("records") or []
        statuses.extend(str(record.get("status") or "unknown") for record in records)
        total = int(data.get("totalRecords") or 0)
        if not records or len(statuses) >= total:
            break
        page += 1

    return QueueInfo(name=instance.display_name(default_name), statuses=statuses)


async def queue_info(config: MotdConfig) -> str:
    """Queue summary across all *arr apps. Entries are always labelled since apps are mixed."""
    batches = await asyncio.gather(
        *(
            gather_instances(kind, getattr(config, kind).active_instances(), partial(fetch_queue, kind=kind))
            for kind in ARR_APPS
        )
    )
    queues = [queue for batch in batches for queue in batch]
    queues.sort(key=lambda queue: queue.name)
    return format_instances(queues, summarize_queue, always_label=True)
