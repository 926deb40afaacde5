from __future__ import annotations

from functools import partial
from typing import Iterable, Optional, Sequence

from saltbox_cli.config.models import AppInstance, MotdConfig
from saltbox_cli.constants import DEFAULT_INSTANCE_TIMEOUT_SECONDS
from saltbox_cli.executor.interfaces import CommandExecutor
from saltbox_cli.motd import info
from saltbox_cli.motd.arr import ARR_APPS, queue_info
from saltbox_cli.motd.emby import emby_info
from saltbox_cli.motd.jellyfin import jellyfin_info
from saltbox_cli.motd.nzbget import nzbget_info
from saltbox_cli.motd.parallel import InfoSource, Result, gather_info
from saltbox_cli.motd.plex import plex_info
from saltbox_cli.motd.qbittorrent import qbittorrent_info
from saltbox_cli.motd.rtorrent import DEFAULT_TIMEOUT_SECONDS as RTORRENT_TIMEOUT_SECONDS
from saltbox_cli.motd.rtorrent import VERSION_CHECK_TIMEOUT_SECONDS, rtorrent_info
from saltbox_cli.motd.sabnzbd import sabnzbd_info

# Extra time a section gets on top of its slowest instance, so per-instance
# timeouts fire first and only that instance is dropped.
_SECTION_GRACE_SECONDS = 1.0


def _section_timeout(instances: Iterable[AppInstance], default: float = DEFAULT_INSTANCE_TIMEOUT_SECONDS) -> float:
    timeouts = [instance.effective_timeout(default) for instance in instances]
    return max(timeouts, default=default) + _SECTION_GRACE_SECONDS


def build_sources(config: Optional[MotdConfig], executor: CommandExecutor) -> list[InfoSource]:
    """
    Declare every report line with its timeout and display order.

    Application sections are only added when a motd config was loaded.
    """
    sources = [
        InfoSource("Distribution", partial(info.distribution, executor), timeout=2.0, order=1),
        InfoSource("Kernel", partial(info.kernel, executor), timeout=1.0, order=2),
        InfoSource("Uptime", partial(info.uptime, executor), timeout=1.0, order=3),
        InfoSource(
            "Load Averages",
            partial(info.load_averages, executor),
            timeout=1.0,
            order=4,
            timeout_message="CPU load info timed out",
        ),
        InfoSource("Last login", partial(info.last_login, executor), timeout=3.0, order=6),
        InfoSource("User Sessions", partial(info.user_sessions, executor), timeout=1.0, order=7),
        InfoSource(
            "Processes",
            partial(info.process_count, executor),
            timeout=2.0,
            order=8,
            timeout_message="Process count info timed out",
        ),
        InfoSource("Reboot Status", partial(info.reboot_status, executor), timeout=2.0, order=10),
        InfoSource("Docker", partial(info.docker_info, executor), timeout=5.0, order=11),
        InfoSource("Memory Usage", info.memory_usage, timeout=2.0, order=12, timeout_message="Memory info timed out"),
        InfoSource("Disk Usage", info.disk_usage, timeout=3.0, order=13, timeout_message="Disk info timed out"),
    ]
    if config is None:
        return sources

    queue_instances = [instance for kind in ARR_APPS for instance in getattr(config, kind).active_instances()]
    sources.extend(
        [
            InfoSource("Queues", partial(queue_info, config), timeout=_section_timeout(queue_instances), order=20),
            InfoSource(
                "Plex",
                partial(plex_info, config),
                timeout=_section_timeout(config.plex.active_instances()),
                order=21,
            ),
            InfoSource(
                "Jellyfin",
                partial(jellyfin_info, config),
                timeout=_section_timeout(config.jellyfin.active_instances()),
                order=22,
            ),
            InfoSource(
                "Emby",
                partial(emby_info, config),
                timeout=_section_timeout(config.emby.active_instances()),
                order=23,
            ),
            InfoSource(
                "SABnzbd",
                partial(sabnzbd_info, config),
                timeout=_section_timeout(config.sabnzbd.active_instances()),
                order=24,
            ),
            InfoSource(
                "NZBGet",
                partial(nzbget_info, config),
                timeout=_section_timeout(config.nzbget.active_instances()),
                order=25,
            ),
            InfoSource(
                "qBittorrent",
                partial(qbittorrent_info, config),
                timeout=_section_timeout(config.qbittorrent.active_instances()),
                order=26,
            ),
            InfoSource(
                "rTorrent",
                partial(rtorrent_info, config),
                timeout=_section_timeout(config.rtorrent.active_instances(), RTORRENT_TIMEOUT_SECONDS)
                + VERSION_CHECK_TIMEOUT_SECONDS,
                order=27,
            ),
        ]
    )
    return sources


def render_report(results: Sequence[Result]) -> str:
    """
    Align values after "<key>:" labels. Continuation lines of multi-line
    values are indented to the value column. Empty values are left out.
    """
    visible = [result for result in results if result.value.strip()]
    if not visible:
        return ""
    width = max(len(result.key) for result in visible) + 1 + 2
    indent = " " * width

    lines: list[str] = []
    for result in visible:
        first, *rest = result.value.splitlines()
        lines.append(f"{result.key + ':':<{width}}{first}")
        lines.extend(f"{indent}{line}" for line in rest)
    return "\n".join(lines)


async def motd_report(config: Optional[MotdConfig], executor: CommandExecutor) -> str:
    return render_report(await gather_info(build_sources(config, executor)))


__all__ = ["build_sources", "motd_report", "render_report"]
