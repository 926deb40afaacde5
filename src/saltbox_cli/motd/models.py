from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class QueueInfo:
    name: str
    # Raw status per queue record, e.g. "downloading", "completed".
    statuses: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StreamInfo:
    name: str
    active: int = 0
    direct_play: int = 0
    direct_stream: int = 0
    remux: int = 0
    transcode: int = 0
    other: int = 0


@dataclass(frozen=True, slots=True)
class TorrentInfo:
    name: str
    downloading: int = 0
    seeding: int = 0
    stopped: int = 0
    errored: int = 0
    # Bytes per second.
    download_rate: int = 0
    upload_rate: int = 0

    @property
    def total(self) -> int:
        return self.downloading + self.seeding + self.stopped + self.errored


@dataclass(frozen=True, slots=True)
class UsenetInfo:
    name: str
    paused: bool = False
    # Human-readable values, already including units.
    speed: str = ""
    queue_count: int = 0
    size_total: str = ""
    size_left: str = ""
