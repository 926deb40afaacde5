from __future__ import annotations

from functools import partial
from typing import Any

import aiohttp

from saltbox_cli.config.models import MotdConfig, TokenInstance
from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.client import expect_mapping, get_json, join_url
from saltbox_cli.motd.formatting import PLEX_STREAM_BUCKETS, format_instances, summarize_streams
from saltbox_cli.motd.models import StreamInfo

DEFAULT_NAME = "Plex"


def classify_session(session: dict[str, Any]) -> str:
    """Return one of transcode, direct_play, direct_stream or other for a Plex session."""
    transcode = session.get("TranscodeSession") or {}
    if transcode.get("videoDecision") == "transcode" or transcode.get("audioDecision") == "transcode":
        return "transcode"

    media = session.get("Media") or []
    if not media:
        return "other"
    first = media[0] or {}
    parts = first.get("Part") or []
    part_decision = (parts[0] or {}).get("decision") if parts else None
    media_decision = first.get("decision")
    if part_decision == "directplay" or media_decision == "directplay":
        return "direct_play"
    if part_decision == "directstream" or media_decision == "directstream":
        return "direct_stream"
    return "other"


async def fetch_streams(session: aiohttp.ClientSession, instance: TokenInstance) -> StreamInfo:
    data = expect_mapping(
        await get_json(
            session,
            join_url(instance.url, "status/sessions"),
            headers={"X-Plex-Token": instance.token, "Accept": "application/json"},
        ),
        "Plex sessions",
    )
    container = data.get("MediaContainer") or {}
    counts = {"direct_play": 0, "direct_stream": 0, "transcode": 0, "other": 0}
    for item in container.get("Metadata") or []:
        counts[classify_session(item)] += 1

    return StreamInfo(
        name=instance.display_name(DEFAULT_NAME),
        active=int(container.get("size") or 0),
        **counts,
    )


async def plex_info(config: MotdConfig) -> str:
    infos = await gather_instances("plex", config.plex.active_instances(), fetch_streams)
    return format_instances(infos, partial(summarize_streams, buckets=PLEX_STREAM_BUCKETS))
