"""CLI/bootstrap helpers for the himalaya TUI application."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from himalaya_tui.action_messages import build_actionable_error
from himalaya_tui.backend import HimalayaBackend
from himalaya_tui.config import (
    CONFIG_APP_NAME,
    _coerce_backend_timeout,
    _coerce_tick_rate,
    get_config_path,
    load_config,
    save_config,
)
from himalaya_tui.engine import MailEngine
from himalaya_tui.io_actions import resolve_link_opener
from himalaya_tui.models import MAX_TICK_RATE_MS, MIN_TICK_RATE_MS, UserConfig
from himalaya_tui.themes import THEME_NAMES

logger = logging.getLogger(__name__)


DEBUG_LOG_NAME = "debug.log"
_LOG_MAX_BYTES = 5 * 1024 * 1024
_LOG_BACKUPS = 3
_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Environment variables to set and to clear for each --color mode
_COLOR_ENV: dict[str, tuple[dict[str, str], tuple[str, ...]]] = {
    "never": ({"NO_COLOR": "1"}, ("FORCE_COLOR",)),
    "always": ({"FORCE_COLOR": "1"}, ("NO_COLOR",)),
    "auto": ({}, ("FORCE_COLOR",)),
}


def _configure_logging(debug: bool) -> None:
    """Route logs to a rotating file under the config dir, or silence them.

    The TUI owns the terminal, so nothing is ever logged to stderr.
    """
    if not debug:
        logging.disable(logging.CRITICAL)
        return

    log_path = Path(user_config_dir(CONFIG_APP_NAME)) / DEBUG_LOG_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=_LOG_MAX_BYTES, backupCount=_LOG_BACKUPS, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    logger.debug("Debug logging to %s", log_path)


def _configure_color_mode(color_mode: str) -> None:
    """Translate ``--color`` into the NO_COLOR / FORCE_COLOR conventions."""
    to_set, to_clear = _COLOR_ENV.get(color_mode, _COLOR_ENV["auto"])
    for name in to_clear:
        os.environ.pop(name, None)
    os.environ.update(to_set)


def _validate_interactive_tty() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="himalaya-tui",
        description="Browse, search and read mail through the himalaya CLI in a modal TUI",
    )
    parser.add_argument(
        "--tick-rate",
        type=int,
        default=None,
        metavar="MS",
        help=(
            f"Interval between backend updates in milliseconds "
            f"({MIN_TICK_RATE_MS}-{MAX_TICK_RATE_MS}; default: config value)"
        ),
    )
    parser.add_argument(
        "--himalaya",
        type=str,
        default=None,
        metavar="CMD",
        help="Backend command to run (default: config value, normally 'himalaya')",
    )
    parser.add_argument("--account", type=str, default=None, help="himalaya account to use")
    parser.add_argument("--mailbox", type=str, default=None, help="Mailbox (folder) to browse")
    parser.add_argument(
        "--backend-timeout",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Kill a backend call that runs longer than this (default: config value)",
    )
    parser.add_argument(
        "--theme",
        choices=THEME_NAMES,
        default=None,
        help="Color theme (default: config value)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/himalaya-tui/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable terminal colors (equivalent to --color never)",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only flag icons for compatibility with limited terminals",
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Save the effective settings (config file plus these flags) and exit",
    )
    return parser


def _apply_cli_overrides(args: argparse.Namespace, config: UserConfig) -> UserConfig:
    """Return ``config`` with any explicitly passed flags layered on top."""
    overrides: dict[str, Any] = {}
    if args.tick_rate is not None:
        overrides["tick_rate_ms"] = _coerce_tick_rate(args.tick_rate)
    if args.himalaya is not None and args.himalaya.strip():
        overrides["himalaya_command"] = args.himalaya.strip()
    if args.account is not None:
        overrides["account"] = args.account
    if args.mailbox is not None:
        overrides["mailbox"] = args.mailbox
    if args.backend_timeout is not None:
        overrides["backend_timeout_seconds"] = _coerce_backend_timeout(args.backend_timeout)
    if args.theme is not None:
        overrides["theme_name"] = args.theme
    if args.ascii:
        overrides["ascii_icons"] = True
    if not overrides:
        return config
    return dataclasses.replace(config, **overrides)


def build_engine(config: UserConfig) -> MailEngine:
    """Wire the himalaya backend and link opener for ``config`` into an engine."""
    backend = HimalayaBackend(
        config.himalaya_command,
        account=config.account,
        mailbox=config.mailbox,
        timeout=config.backend_timeout_seconds,
    )
    return MailEngine(backend, opener=resolve_link_opener(config.link_opener))


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    save_config_fn: Callable[[UserConfig], bool] = save_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    engine_factory: Callable[[UserConfig], MailEngine] = build_engine,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)

    color_mode = "never" if args.no_color else args.color
    configure_color_mode_fn(color_mode)
    configure_logging_fn(args.debug)
    logger.debug("himalaya-tui starting, cwd=%s", Path.cwd())

    config = _apply_cli_overrides(args, load_config_fn())

    if args.write_config:
        if not save_config_fn(config):
            print(
                build_actionable_error(
                    "save the config file",
                    why=f"writing {get_config_path()} failed",
                    next_step="check that the config directory is writable",
                ),
                file=sys.stderr,
            )
            return 1
        print(f"Saved settings to {get_config_path()}")
        return 0

    if not validate_interactive_tty_fn():
        print(
            "Error: himalaya-tui requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run himalaya-tui directly in a terminal session", file=sys.stderr)
        print("  - Use --write-config for non-interactive setup", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from himalaya_tui.app import MailBrowser as _MailBrowser

        app_factory = _MailBrowser

    app = app_factory(engine_factory(config), config=config)
    app.run()
    return 0


__all__ = [
    "_apply_cli_overrides",
    "_build_parser",
    "_configure_color_mode",
    "_configure_logging",
    "_validate_interactive_tty",
    "build_engine",
    "main",
]
