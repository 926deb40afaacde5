from __future__ import annotations

from collections import Counter
from typing import Callable, Protocol, Sequence, TypeVar

from saltbox_cli.motd.models import QueueInfo, StreamInfo, TorrentInfo, UsenetInfo

_UNITS = "KMGTPE"


class _Named(Protocol):
    name: str


InfoT = TypeVar("InfoT", bound=_Named)


def format_bytes(value: int) -> str:
    """Human-readable size using 1024-based units: 512 B, 1.5 KB, 2.0 GB."""
    unit = 1024
    value = int(value)
    if value < unit:
        return f"{value} B"
    div, exp = unit, 0
    n = value // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{value / div:.1f} {_UNITS[exp]}B"


def format_speed(bytes_per_second: int) -> str:
    return f"{format_bytes(bytes_per_second)}/s"


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    if count == 1:
        return singular
    return plural if plural is not None else f"{singular}s"


def format_instances(
    infos: Sequence[InfoT],
    summarize: Callable[[InfoT], str],
    *,
    always_label: bool = False,
) -> str:
    """
    Render one line per instance.

    A single instance is shown without its name unless always_label is set.
    Otherwise every line starts with "<name>:" padded to the longest name
    plus one space, so summaries line up.
    """
    if not infos:
        return ""
    if len(infos) == 1 and not always_label:
        return summarize(infos[0])

    width = max(len(info.name) for info in infos)
    lines = []
    for info in infos:
        padding = " " * (width - len(info.name) + 1)
        lines.append(f"{info.name}:{padding}{summarize(info)}")
    return "\n".join(lines)


def summarize_queue(info: QueueInfo) -> str:
    total = len(info.statuses)
    summary = f"{total} {pluralize(total, 'item')} in queue"
    counts = Counter(info.statuses)
    parts = [f"{counts[status]} {status.lower()}" for status in sorted(counts)]
    if parts:
        summary += ", " + ", ".join(parts)
    return summary


# Breakdown order used by Jellyfin and Emby.
STREAM_BUCKETS = ("direct_play", "remux", "direct_stream", "transcode", "other")
# Plex lists transcodes ahead of direct streams.
PLEX_STREAM_BUCKETS = ("direct_play", "transcode", "direct_stream", "other")


def summarize_streams(info: StreamInfo, buckets: Sequence[str] = STREAM_BUCKETS) -> str:
    if info.active == 0:
        return "No active streams"
    summary = f"{info.active} active {pluralize(info.active, 'stream')}"
    counts = [(getattr(info, bucket), bucket.replace("_", " ")) for bucket in buckets]
    parts = [f"{count} {label}" for count, label in counts if count > 0]
    if parts:
        summary += f" ({', '.join(parts)})"
    return summary


def summarize_torrents(info: TorrentInfo) -> str:
    if info.total == 0:
        return "No torrents present"
    parts = [
        f"↓{format_speed(info.download_rate)} ↑{format_speed(info.upload_rate)}",
        f"{info.downloading} Downloading",
        f"{info.seeding} Seeding",
    ]
    if info.stopped > 0:
        parts.append(f"{info.stopped} Stopped")
    if info.errored > 0:
        parts.append(f"{info.errored} Error")
    return " | ".join(parts)


def summarize_usenet(info: UsenetInfo) -> str:
    if info.queue_count == 0:
        return "Queue is empty"
    queue_summary = (
        f"{info.queue_count} {pluralize(info.queue_count, 'item')} in queue "
        f"({info.size_left} remaining / {info.size_total} total)"
    )
    if info.paused:
        return f"Paused, {queue_summary}"
    return f"Downloading at {info.speed}/s, {queue_summary}"


__all__ = [
    "PLEX_STREAM_BUCKETS",
    "STREAM_BUCKETS",
    "format_bytes",
    "format_instances",
    "format_speed",
    "pluralize",
    "summarize_queue",
    "summarize_streams",
    "summarize_torrents",
    "summarize_usenet",
]
