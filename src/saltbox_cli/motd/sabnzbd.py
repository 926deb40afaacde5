from __future__ import annotations

import aiohttp

from saltbox_cli.config.models import ApiKeyInstance, MotdConfig
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_mapping, get_json, join_url
from saltbox_cli.motd.formatting import format_instances, summarize_usenet
from saltbox_cli.motd.models import UsenetInfo

DEFAULT_NAME = "SABnzbd"


async def fetch_queue(session: aiohttp.ClientSession, instance: ApiKeyInstance) -> UsenetInfo:
    data = expect_mapping(
        await get_json(
            session,
            join_url(instance.url, "api"),
            params={"mode": "queue", "output": "json", "apikey": instance.apikey},
        ),
        "SABnzbd queue",
    )
    queue = expect_mapping(data.get("queue"), "SABnzbd queue")
    # SABnzbd already reports speed and sizes as display strings ("1.2 M", "3.4 GB").
    return UsenetInfo(
        name=instance.display_name(DEFAULT_NAME),
        paused=str(queue.get("status") or "").lower() == "paused",
        speed=str(queue.get("speed") or "0"),
        queue_count=int(queue.get("noofslots_total") or 0),
        size_total=str(queue.get("size") or ""),
        size_left=str(queue.get("sizeleft") or ""),
    )


async def sabnzbd_info(config: MotdConfig) -> str:
    infos = await gather_instances("sabnzbd", config.sabnzbd.active_instances(), fetch_queue)
    return format_instances(infos, summarize_usenet)
