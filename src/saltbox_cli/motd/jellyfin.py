from __future__ import annotations

import aiohttp

from saltbox_cli.config.models import MotdConfig, TokenInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_list, get_json, join_url
from saltbox_cli.motd.formatting import format_instances, summarize_streams
from saltbox_cli.motd.models import StreamInfo

DEFAULT_NAME = "Jellyfin"


async def fetch_streams(session: aiohttp.ClientSession, instance: TokenInstance) -> StreamInfo:
    """
    Count sessions that have something playing.

    No TranscodingInfo means direct play. With TranscodingInfo present, a
    non-direct video stream is a transcode, a non-direct audio stream is a
    direct stream, and both direct means only the container changed (remux).
    """
    sessions = expect_list(
        await get_json(
            session,
            join_url(instance.url, "Sessions"),
            headers={
                "Authorization": f'MediaBrowser Token="{instance.token}"',
                "Accept": "application/json",
            },
        ),
        "Jellyfin sessions",
    )

    active = direct_play = direct_stream = remux = transcode = 0
    for item in sessions:
        if not item.get("NowPlayingItem"):
            continue
        active += 1
        info = item.get("TranscodingInfo")
        if not info:
            direct_play += 1
        elif not info.get("IsVideoDirect", False):
            transcode += 1
        elif not info.get("IsAudioDirect", False):
            direct_stream += 1
        else:
            remux += 1

    return StreamInfo(
        name=instance.display_name(DEFAULT_NAME),
        active=active,
        direct_play=direct_play,
        direct_stream=direct_stream,
        remux=remux,
        transcode=transcode,
    )


async def jellyfin_info(config: MotdConfig) -> str:
    infos = await gather_instances("jellyfin", config.jellyfin.active_instances(), fetch_streams)
    return format_instances(infos, summarize_streams)
