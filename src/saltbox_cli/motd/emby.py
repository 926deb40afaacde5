from __future__ import annotations

import aiohttp

from saltbox_cli.config.models import MotdConfig, TokenInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_list, get_json, join_url
from saltbox_cli.motd.formatting import format_instances, summarize_streams
from saltbox_cli.motd.models import StreamInfo

DEFAULT_NAME = "Emby"

_PLAY_METHODS = {
    "directplay": "direct_play",
    "directstream": "direct_stream",
    "transcode": "transcode",
}


async def fetch_streams(session: aiohttp.ClientSession, instance: TokenInstance) -> StreamInfo:
    sessions = expect_list(
        await get_json(
            session,
            join_url(instance.url, "emby/Sessions"),
            params={"api_key": instance.token},
            headers={"Accept": "application/json"},
        ),
        "Emby sessions",
    )

    active = 0
    counts = {"direct_play": 0, "direct_stream": 0, "transcode": 0}
    for item in sessions:
        play_state = item.get("PlayState") or {}
        # Paused sessions are not counted.
        if not item.get("NowPlayingItem") or play_state.get("IsPaused"):
            continue
        active += 1
        bucket = _PLAY_METHODS.get(str(play_state.get("PlayMethod") or "").lower())
        if bucket is not None:
            counts[bucket] += 1

    return StreamInfo(name=instance.display_name(DEFAULT_NAME), active=active, **counts)


async def emby_info(config: MotdConfig) -> str:
    infos = await gather_instances("emby", config.emby.active_instances(), fetch_streams)
    return format_instances(infos, summarize_streams)
