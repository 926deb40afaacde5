from __future__ import annotations

import logging
import xmlrpc.client
from typing import Any, Optional

import aiohttp

from saltbox_cli.config.models import MotdConfig, RTorrentInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.formatting import format_instances, summarize_torrents
from saltbox_cli.motd.models import TorrentInfo

logger = logging.getLogger(__name__)

DEFAULT_NAME = "rTorrent"
DEFAULT_TIMEOUT_SECONDS = 20.0
VERSION_CHECK_TIMEOUT_SECONDS = 1.0


async def call(
    session: aiohttp.ClientSession,
    instance: RTorrentInstance,
    method: str,
    *params: Any,
    timeout: Optional[float] = None,
) -> Any:
    """Perform one XML-RPC call. Faults are raised as xmlrpc.client.Fault."""
    body = xmlrpc.client.dumps(params, methodname=method)
    options: dict[str, Any] = {}
    if instance.user:
        options["auth"] = aiohttp.BasicAuth(instance.user, instance.password)
    if timeout is not None:
        options["timeout"] = aiohttp.ClientTimeout(total=timeout)
    async with session.post(
        instance.url,
        data=body.encode("utf-8"),
        headers={"Content-Type": "text/xml"},
        **options,
    ) as response:
        response.raise_for_status()
        payload = await response.read()
    result, _ = xmlrpc.client.loads(payload)
    return result[0] if result else None


async def fetch_torrents(session: aiohttp.ClientSession, instance: RTorrentInstance) -> TorrentInfo:
    """
    Ask the daemon for its version with a short timeout first so an unreachable instance
    fails fast, then list the main view and the global throttle rates.
    """
    version = await call(session, instance, "system.client_version", timeout=VERSION_CHECK_TIMEOUT_SECONDS)
    logger.debug("rtorrent.connected url=%s version=%s", instance.url, version)

    rows = await call(session, instance, "d.multicall2", "", "main", "d.complete=", "d.message=", "d.is_active=")
    down_rate = await call(session, instance, "throttle.global_down.rate", "")
    up_rate = await call(session, instance, "throttle.global_up.rate", "")

    downloading = seeding = stopped = errored = 0
    for complete, message, is_active in rows or []:
        if message:
            errored += 1
        elif is_active:
            if complete:
                seeding += 1
            else:
                downloading += 1
        else:
            stopped += 1

    return TorrentInfo(
        name=instance.display_name(DEFAULT_NAME),
        downloading=downloading,
        seeding=seeding,
        stopped=stopped,
        errored=errored,
        download_rate=int(down_rate or 0),
        upload_rate=int(up_rate or 0),
    )


async def rtorrent_info(config: MotdConfig) -> str:
    infos = await gather_instances(
        "rtorrent",
        config.rtorrent.active_instances(),
        fetch_torrents,
        default_timeout=DEFAULT_TIMEOUT_SECONDS,
    )
    return format_instances(infos, summarize_torrents)
