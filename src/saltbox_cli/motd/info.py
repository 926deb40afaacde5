from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
from pathlib import Path

from saltbox_cli.errors import CommandError
from saltbox_cli.executor.impl import run
from saltbox_cli.executor.interfaces import CommandExecutor, OutputMode
from saltbox_cli.motd.formatting import format_bytes, pluralize

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "Not available"

REBOOT_REQUIRED_PATH = "/var/run/reboot-required"
REBOOT_REQUIRED_PKGS_PATH = "/var/run/reboot-required.pkgs"
REBOOT_NOTIFIER = "/usr/lib/update-notifier/update-motd-reboot-required"

_MEMINFO_RE = re.compile(r"^(\S+):\s+(\d+)")
_EXITED_RE = re.compile(r"Exited \((\d+)\)")
_LAST_SKIP_USERS = frozenset({"reboot", "shutdown", "runlevel", "wtmp"})


async def command_output(executor: CommandExecutor, command: str, *args: str) -> str:
    """Trimmed stdout of a command, or "Not available" if it cannot be run or fails."""
    try:
        result = await run(executor, command, *args, output_mode=OutputMode.CAPTURE)
    except CommandError as e:
        logger.debug("motd.command_unavailable command=%s error=%s", e.command, e)
        return NOT_AVAILABLE
    return result.stdout_text.strip()


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as f:
        return f.read()


async def read_text(path: str) -> str:
    """Read a file off the event loop so a hung filesystem cannot stall other sources."""
    return await asyncio.to_thread(_read_text, path)


async def distribution(executor: CommandExecutor) -> str:
    description, codename = await asyncio.gather(
        command_output(executor, "lsb_release", "-ds"),
        command_output(executor, "lsb_release", "-cs"),
    )
    if codename and codename != NOT_AVAILABLE and description != NOT_AVAILABLE:
        return f"{description} ({codename})"
    return description


async def kernel(executor: CommandExecutor) -> str:
    return await command_output(executor, "uname", "-r")


async def uptime(executor: CommandExecutor) -> str:
    output = await command_output(executor, "uptime", "-p")
    if output == NOT_AVAILABLE:
        return NOT_AVAILABLE
    return output.removeprefix("up ")


def _format_loads(one: str, five: str, fifteen: str) -> str:
    return f"1 min: {one} | 5 min: {five} | 15 min: {fifteen}"


async def load_averages(executor: CommandExecutor, loadavg_path: str = "/proc/loadavg") -> str:
    try:
        fields = (await read_text(loadavg_path)).split()
    except OSError:
        fields = []
    if len(fields) >= 3:
        return _format_loads(*fields[:3])

    # Fallback: "... load average: 0.00, 0.01, 0.05"
    output = await command_output(executor, "uptime")
    marker = "load average:"
    idx = output.find(marker)
    if idx != -1:
        loads = [part.strip() for part in output[idx + len(marker) :].split(",")]
        if len(loads) >= 3:
            return _format_loads(*loads[:3])
    return NOT_AVAILABLE


def _parse_last_line(line: str) -> str | None:
    """
    Describe one `last` entry, e.g.
    "root     pts/0        10.0.0.2         Mon Oct  6 09:12 - 10:30  (01:18)".
    """
    fields = line.split()
    if len(fields) < 5 or fields[0] in _LAST_SKIP_USERS or "wtmp begins" in line:
        return None
    user, source = fields[0], fields[2]
    time_index = 3
    if "." not in source and ":" not in source:
        source = "local"
        time_index = 2
    if len(fields) < time_index + 4:
        return None
    logged_in_at = " ".join(fields[time_index : time_index + 4])

    if "still logged in" in line:
        return f"{user} at {logged_in_at} (still logged in) from {source}"
    if "-" in fields:
        dash = fields.index("-")
        if dash + 1 < len(fields):
            match = re.search(r"\(([^)]*)\)", line)
            duration = match.group(1) if match else ""
            return f"{user} at {logged_in_at} until {fields[dash + 1]} ({duration}) from {source}"
    return f"{user} at {logged_in_at} from {source}"


async def last_login(executor: CommandExecutor) -> str:
    output = await command_output(executor, "last", "-n", "5")
    if output != NOT_AVAILABLE:
        for line in output.splitlines():
            described = _parse_last_line(line.strip())
            if described is not None:
                return described

    output = await command_output(executor, "lastlog", "-u", "root")
    if output != NOT_AVAILABLE:
        lines = output.splitlines()
        if len(lines) >= 2:
            fields = lines[1].split()
            if len(fields) >= 4:
                return f"{fields[0]} {' '.join(fields[3:])}"

    output = await command_output(executor, "who", "-u")
    if output != NOT_AVAILABLE and output:
        fields = output.splitlines()[0].split()
        if len(fields) >= 5:
            return f"{fields[0]} at {' '.join(fields[2:5])} (still logged in)"

    return "No recent logins"


async def user_sessions(executor: CommandExecutor) -> str:
    output = await command_output(executor, "who")
    if output == NOT_AVAILABLE or not output:
        return "No active sessions"
    count = sum(1 for line in output.splitlines() if line.strip())
    return f"{count} active {pluralize(count, 'session')}"


def _count_processes(proc_path: str) -> int:
    with os.scandir(proc_path) as entries:
        return sum(1 for entry in entries if entry.is_dir() and entry.name.isdigit())


async def process_count(executor: CommandExecutor, proc_path: str = "/proc") -> str:
    try:
        count = await asyncio.to_thread(_count_processes, proc_path)
    except OSError:
        output = await command_output(executor, "ps", "ax")
        if output == NOT_AVAILABLE:
            return NOT_AVAILABLE
        lines = [line for line in output.splitlines() if line.strip()]
        # Header line.
        count = max(len(lines) - 1, 0)
    return f"{count} running processes"


async def reboot_status(
    executor: CommandExecutor,
    reboot_path: str = REBOOT_REQUIRED_PATH,
    packages_path: str = REBOOT_REQUIRED_PKGS_PATH,
) -> str:
    """Reboot notice, or an empty string (hiding the line) when no reboot is pending."""
    if await asyncio.to_thread(Path(reboot_path).exists):
        try:
            packages = [line for line in (await read_text(packages_path)).splitlines() if line.strip()]
        except OSError:
            packages = []
        if len(packages) == 1:
            return f"Reboot required (package: {packages[0]})"
        if packages:
            return f"Reboot required ({len(packages)} packages)"
        return "Reboot required"

    output = await command_output(executor, REBOOT_NOTIFIER)
    if output and output != NOT_AVAILABLE and "No reboot" not in output:
        return output
    return ""


def _container_problem(status: str, state: str) -> str | None:
    """None for a healthy running container, otherwise the status to report."""
    if state == "running":
        if "unhealthy" in status:
            return "running (unhealthy)"
        return None
    if state == "exited":
        match = _EXITED_RE.search(status)
        if match and match.group(1) != "0":
            return f"stopped (error: {match.group(1)})"
        return "stopped"
    return state


async def docker_info(executor: CommandExecutor) -> str:
    """Container totals, followed by one line per container that needs attention."""
    if await command_output(executor, "systemctl", "is-active", "docker") != "active":
        if await command_output(executor, "which", "docker") != NOT_AVAILABLE:
            return "Docker is installed but not running"
        return "Docker is not installed or not detected"

    output = await command_output(executor, "docker", "ps", "-a", "--format", "{{.Names}}|{{.Status}}|{{.State}}")
    if output == NOT_AVAILABLE:
        return "Docker is running but container list is unavailable"
    lines = sorted(line for line in output.splitlines() if line.strip())
    if not lines:
        return "Docker is running but no containers found"

    running = 0
    problems: list[str] = []
    for line in lines:
        parts = line.split("|")
        if len(parts) < 3:
            continue
        name, status, state = parts[0], parts[1], parts[2]
        if state == "running":
            running += 1
        problem = _container_problem(status, state)
        if problem is not None:
            problems.append(f"{name}: {problem}")

    if problems:
        summary = f"{len(lines)} containers ({running} running, {len(problems)} need attention)"
    else:
        summary = f"{len(lines)} containers ({running} running)"
    return "\n".join([summary, *problems])


def _gigabytes(kilobytes: int) -> str:
    return f"{kilobytes / 1024.0 / 1024.0:.1f}G"


async def memory_usage(meminfo_path: str = "/proc/meminfo") -> str:
    try:
        content = await read_text(meminfo_path)
    except OSError:
        return NOT_AVAILABLE

    values: dict[str, int] = {}
    for line in content.splitlines():
        match = _MEMINFO_RE.match(line)
        if match:
            values[match.group(1)] = int(match.group(2))

    total = values.get("MemTotal")
    if total is None:
        return NOT_AVAILABLE
    free = values.get("MemFree", 0)
    cached = values.get("Cached", 0) + values.get("Buffers", 0)
    available = values.get("MemAvailable", free + cached)
    return (
        f"{_gigabytes(total - available)} used, {_gigabytes(free)} free, "
        f"{_gigabytes(cached)} cached, {_gigabytes(available)} available, {_gigabytes(total)} total"
    )


async def disk_usage(path: str = "/") -> str:
    try:
        usage = await asyncio.to_thread(shutil.disk_usage, path)
    except OSError:
        return NOT_AVAILABLE
    percent = (usage.used / usage.total * 100) if usage.total else 0.0
    return f"{format_bytes(usage.used)} used of {format_bytes(usage.total)} ({percent:.1f}%) on {path}"


__all__ = [
    "NOT_AVAILABLE",
    "command_output",
    "disk_usage",
    "distribution",
    "docker_info",
    "kernel",
    "last_login",
    "load_averages",
    "memory_usage",
    "process_count",
    "read_text",
    "reboot_status",
    "uptime",
    "user_sessions",
]
