from __future__ import annotations

import aiohttp

from saltbox_cli.config.models import MotdConfig, UserPassInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_mapping, get_json, join_url
from saltbox_cli.motd.formatting import format_instances, summarize_torrents
from saltbox_cli.motd.models import TorrentInfo

DEFAULT_NAME = "qBittorrent"

DOWNLOADING_STATES = frozenset({"downloading", "forcedDL", "metaDL", "checkingDL", "queuedDL", "stalledDL"})
SEEDING_STATES = frozenset({"uploading", "forcedUP", "checkingUP", "queuedUP", "stalledUP"})
STOPPED_STATES = frozenset({"pausedDL", "pausedUP", "stoppedDL", "stoppedUP"})
ERROR_STATES = frozenset({"error", "missingFiles"})


class QbittorrentLoginError(Exception):
    pass


async def _login(session: aiohttp.ClientSession, instance: UserPassInstance) -> None:
    async with session.post(
        join_url(instance.url, "api/v2/auth/login"),
        data={"username": instance.user, "password": instance.password},
    ) as response:
        response.raise_for_status()
        body = (await response.text()).strip()
    if body != "Ok.":
        raise QbittorrentLoginError(f"failed to login to qbittorrent: {body or 'empty response'}")


async def fetch_torrents(session: aiohttp.ClientSession, instance: UserPassInstance) -> TorrentInfo:
    """Log in, then read a full sync snapshot (rid=0). The session cookie jar carries the SID."""
    await _login(session, instance)
    data = expect_mapping(
        await get_json(session, join_url(instance.url, "api/v2/sync/maindata"), params={"rid": 0}),
        "qBittorrent maindata",
    )

    downloading = seeding = stopped = errored = 0
    for torrent in (data.get("torrents") or {}).values():
        state = torrent.get("state")
        if state in DOWNLOADING_STATES:
            downloading += 1
        elif state in SEEDING_STATES:
            seeding += 1
        elif state in STOPPED_STATES:
            stopped += 1
        elif state in ERROR_STATES:
            errored += 1

    server_state = data.get("server_state") or {}
    return TorrentInfo(
        name=instance.display_name(DEFAULT_NAME),
        downloading=downloading,
        seeding=seeding,
        stopped=stopped,
        errored=errored,
        download_rate=int(server_state.get("dl_info_speed") or 0),
        upload_rate=int(server_state.get("up_info_speed") or 0),
    )


async def qbittorrent_info(config: MotdConfig) -> str:
    infos = await gather_instances("qbittorrent", config.qbittorrent.active_instances(), fetch_torrents)
    return format_instances(infos, summarize_torrents)
