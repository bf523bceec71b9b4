"""Host-environment hand-off for opening links found in messages."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import webbrowser
from collections.abc import Callable

from himalaya_tui.errors import OpenFailure

logger = logging.getLogger(__name__)

LinkOpener = Callable[[str], None]


def normalize_link_target(link: str) -> str:
    """Turn scanner output into something a browser or opener can launch.

    Bare ``www.`` links get ``https://`` and bare addresses get ``mailto:``.
    """
    lowered = link.lower()
    if lowered.startswith("www."):
        return f"https://{link}"
    if "@" in link and "://" not in link and not lowered.startswith("mailto:"):
        return f"mailto:{link}"
    return link


def build_opener_args(opener_cmd: str, url: str) -> list[str]:
    """Build subprocess argument list for a configured external opener command."""
    args = shlex.split(opener_cmd, posix=os.name != "nt")
    if os.name == "nt":
        # Windows split keeps wrapping quotes when posix=False.
        args = [
            arg[1:-1] if len(arg) >= 2 and arg.startswith('"') and arg.endswith('"') else arg
            for arg in args
        ]
    if not args:
        raise ValueError("Opener command is empty")
    if "{url}" in opener_cmd:
        return [arg.replace("{url}", url) for arg in args]
    return [*args, url]


def open_in_browser(link: str) -> None:
    """Open ``link`` with the system browser; raises ``OpenFailure``."""
    url = normalize_link_target(link)
    try:
        opened = webbrowser.open(url)
    except (webbrowser.Error, OSError) as e:
        logger.warning("Failed to open browser for %s: %s", url, e)
        raise OpenFailure(url, str(e)) from e
    if not opened:
        raise OpenFailure(url, "no browser accepted the link")


def open_with_command(opener_cmd: str, link: str) -> None:
    """Open ``link`` with a user-configured command; raises ``OpenFailure``."""
    url = normalize_link_target(link)
    try:
        args = build_opener_args(opener_cmd, url)
        subprocess.Popen(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except (ValueError, OSError) as e:
        logger.warning("Failed to run opener %r for %s: %s", opener_cmd, url, e)
        raise OpenFailure(url, str(e)) from e


def resolve_link_opener(opener_cmd: str) -> LinkOpener:
    """Pick the link opener for a config value (empty = system browser)."""
    if not opener_cmd.strip():
        return open_in_browser
    return lambda link: open_with_command(opener_cmd, link)


__all__ = [
    "LinkOpener",
    "build_opener_args",
    "normalize_link_target",
    "open_in_browser",
    "open_with_command",
    "resolve_link_opener",
]
