from __future__ import annotations

from typing import Any

import aiohttp

from saltbox_cli.config.models import MotdConfig, UserPassInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_list, expect_mapping, join_url, post_json
from saltbox_cli.motd.formatting import format_bytes, format_instances, summarize_usenet
from saltbox_cli.motd.models import UsenetInfo

DEFAULT_NAME = "NZBGet"

_MEGABYTE = 1024 * 1024


async def call(session: aiohttp.ClientSession, instance: UserPassInstance, method: str) -> Any:
    data = expect_mapping(
        await post_json(
            session,
            join_url(instance.url, "jsonrpc"),
            {"method": method, "params": [], "id": 1},
            auth=aiohttp.BasicAuth(instance.user, instance.password),
        ),
        f"NZBGet {method}",
    )
    if data.get("error"):
        raise ValueError(f"NZBGet {method} failed: {data['error']}")
    return data.get("result")


async def fetch_queue(session: aiohttp.ClientSession, instance: UserPassInstance) -> UsenetInfo:
    status = expect_mapping(await call(session, instance, "status"), "NZBGet status")
    groups = expect_list(await call(session, instance, "listgroups"), "NZBGet listgroups")

    total_mb = sum(int(group.get("FileSizeMB") or 0) for group in groups)
    left_mb = sum(int(group.get("RemainingSizeMB") or 0) for group in groups)
    paused_groups = sum(1 for group in groups if group.get("Status") == "PAUSED")

    paused = bool(status.get("ServerPaused"))
    # A queue where every group is paused counts as paused even if the server is not.
    if not paused and groups and paused_groups == len(groups):
        paused = True

    return UsenetInfo(
        name=instance.display_name(DEFAULT_NAME),
        paused=paused,
        speed=format_bytes(int(status.get("DownloadRate") or 0)),
        queue_count=len(groups),
        size_total=format_bytes(total_mb * _MEGABYTE),
        size_left=format_bytes(left_mb * _MEGABYTE),
    )


async def nzbget_info(config: MotdConfig) -> str:
    infos = await gather_instances("nzbget", config.nzbget.active_instances(), fetch_queue)
    return format_instances(infos, summarize_usenet)
