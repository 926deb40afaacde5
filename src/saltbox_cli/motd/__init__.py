"""Concurrent status report: system facts plus read-only queries of configured applications."""

from saltbox_cli.motd.aggregator import gather_instances
from saltbox_cli.motd.formatting import format_bytes, format_instances, format_speed
from saltbox_cli.motd.parallel import InfoSource, Result, gather_info
from saltbox_cli.motd.report import build_sources, motd_report, render_report

__all__ = [
    "InfoSource",
    "Result",
    "build_sources",
    "format_bytes",
    "format_instances",
    "format_speed",
    "gather_info",
    "gather_instances",
    "motd_report",
    "render_report",
]
