from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from saltbox_cli.ansible import PlaybookRunner, TagResolver
from saltbox_cli.cache import TagCacheStore
from saltbox_cli.config import YamlConfigLoader, load_motd_config
from saltbox_cli.config.models import AppConfig, ConfigLoadRequest
from saltbox_cli.constants import SALTBOX_SETTINGS_PATH
from saltbox_cli.errors import SaltboxError, is_interrupt_error
from saltbox_cli.executor import SubprocessExecutor
from saltbox_cli.install import MOD_PREFIX, SANDBOX_PREFIX, Installer
from saltbox_cli.logging import init_logging
from saltbox_cli.motd import motd_report
from saltbox_cli.signals import SignalManager

logger = logging.getLogger(__name__)


def _comma_list(values: Sequence[str]) -> list[str]:
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sb-py", description="Saltbox provisioning helper")
    parser.add_argument(
        "--config",
        default=SALTBOX_SETTINGS_PATH,
        help=f"Path to the settings YAML (default: {SALTBOX_SETTINGS_PATH})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: list
    list_parser = subparsers.add_parser("list", help="List available Saltbox and Sandbox tags")
    list_parser.add_argument("--include-mod", action="store_true", help="Also list saltbox_mod tags")

    # Command: install
    install_parser = subparsers.add_parser("install", help="Run playbooks for the given tags")
    install_parser.add_argument("tags", nargs="+", help="Tags to install, comma separated or repeated")
    install_parser.add_argument("-s", "--skip-tags", action="append", default=[], help="Tags to skip")
    install_parser.add_argument(
        "-e",
        "--extra-vars",
        action="append",
        default=[],
        help="Extra variables to pass to Ansible",
    )
    install_parser.add_argument("--no-cache", action="store_true", help="Skip tag validation against the cache")

    # Command: motd
    subparsers.add_parser("motd", help="Print the system and application status report")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return await loader.load(request)


def _build_installer(config: AppConfig, signals: SignalManager) -> Installer:
    executor = SubprocessExecutor()
    cache = TagCacheStore(config.paths.cache_file)
    resolver = TagResolver(
        executor,
        cache,
        ansible_playbook=config.paths.ansible_playbook,
        uncached_repos=(config.paths.saltbox_mod_repo,),
    )
    runner = PlaybookRunner(executor, ansible_playbook=config.paths.ansible_playbook, signals=signals)
    return Installer(resolver, runner, config.paths)


async def _list_tags(args: argparse.Namespace, config: AppConfig, signals: SignalManager) -> None:
    installer = _build_installer(config, signals)
    sections = [
        ("Saltbox tags", "", await installer.saltbox_tags()),
        ("Sandbox tags", SANDBOX_PREFIX, await installer.sandbox_tags()),
    ]
    if args.include_mod:
        sections.append(("Saltbox_mod tags", MOD_PREFIX, await installer.saltbox_mod_tags()))

    for title, prefix, tags in sections:
        print(f"{title}:")
        print(", ".join(prefix + tag for tag in sorted(tags)))
        print()


async def _install(args: argparse.Namespace, config: AppConfig, signals: SignalManager) -> None:
    installer = _build_installer(config, signals)
    await installer.install(
        _comma_list(args.tags),
        skip_tags=_comma_list(args.skip_tags),
        extra_vars=args.extra_vars,
        no_cache=args.no_cache,
    )


async def _motd(args: argparse.Namespace, config: AppConfig, signals: SignalManager) -> None:
    motd_config = load_motd_config(config.paths.motd_config)
    report = await motd_report(motd_config, SubprocessExecutor())
    if report:
        print(report)


_COMMANDS = {
    "list": _list_tags,
    "install": _install,
    "motd": _motd,
}


async def _main_async(argv: Sequence[str] | None, signals: SignalManager) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    config = await _load_config(args)
    init_logging(config.logging, verbose=args.verbose)
    signals.install(asyncio.current_task())
    try:
        await _COMMANDS[args.command](args, config, signals)
    finally:
        signals.uninstall()


def main(argv: Sequence[str] | None = None) -> int:
    signals = SignalManager()
    try:
        asyncio.run(_main_async(argv, signals))
    except (asyncio.CancelledError, KeyboardInterrupt) as e:
        if not signals.is_shutdown:
            signals.shutdown(130 if isinstance(e, KeyboardInterrupt) else 1)
        logger.info("Interrupted. exit_code=%s", signals.exit_code)
    except SaltboxError as e:
        if is_interrupt_error(e):
            signals.shutdown(130)
        else:
            print(f"Error: {e}", file=sys.stderr)
            logger.debug("Command failed.", exc_info=True)
            return 1
    return signals.exit_code


if __name__ == "__main__":
    sys.exit(main())
