"""Data models and constants for the himalaya TUI application."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Application name used for platformdirs config paths
CONFIG_APP_NAME = "himalaya-tui"

# Tick interval bounds (milliseconds)
DEFAULT_TICK_RATE_MS = 250
MIN_TICK_RATE_MS = 10
MAX_TICK_RATE_MS = 10_000

# Backend subprocess timeout bounds (seconds)
DEFAULT_BACKEND_TIMEOUT = 30
MAX_BACKEND_TIMEOUT = 600

# Prefilled into the command line when link highlighting is toggled on
FOLLOW_PREFIX = "follow "


class Mode(Enum):
    """Interaction mode of the UI."""

    BROWSE = "MOTION"
    ENTRY = "INSERT"
    REVIEW = "REVIEW"

    @property
    def label(self) -> str:
        return self.value


class FlagKind(Enum):
    """Message status flags reported by the backend."""

    SEEN = "Seen"
    ANSWERED = "Answered"
    FLAGGED = "Flagged"
    DELETED = "Deleted"
    DRAFT = "Draft"
    RECENT = "Recent"
    MAY_CREATE = "MayCreate"
    CUSTOM = "Custom"


@dataclass(frozen=True, slots=True)
class Flag:
    """A status flag; ``label`` is only set for custom flags."""

    kind: FlagKind
    label: str = ""

    @classmethod
    def custom(cls, label: str) -> Flag:
        return cls(FlagKind.CUSTOM, label)


@dataclass(slots=True)
class MessageSummary:
    """One row of a backend listing."""

    id: int
    flags: tuple[Flag, ...]
    subject: str
    sender: str
    date: str

    def has_flag(self, kind: FlagKind) -> bool:
        return any(flag.kind is kind for flag in self.flags)


@dataclass(slots=True)
class ReviewState:
    """Body of the message under review plus display toggles.

    ``links`` is the 1-indexed (externally) link registry for ``content``.
    """

    content: str = ""
    offset: int = 0
    show_links: bool = False
    show_stats: bool = False
    links: list[str] = field(default_factory=list)

    def clear(self) -> None:
        """Drop the reviewed body; the display toggles survive."""
        self.content = ""
        self.offset = 0
        self.links = []


@dataclass(slots=True)
class UserConfig:
    """Persisted user preferences."""

    himalaya_command: str = "himalaya"
    account: str = ""
    mailbox: str = ""
    tick_rate_ms: int = DEFAULT_TICK_RATE_MS
    backend_timeout_seconds: int = DEFAULT_BACKEND_TIMEOUT
    ascii_icons: bool = False
    link_opener: str = ""  # External opener command, e.g. "firefox {url}"; empty = system browser
    theme_name: str = "monokai"
    version: int = 1
    config_defaulted: bool = field(default=False, compare=False)


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_BACKEND_TIMEOUT",
    "DEFAULT_TICK_RATE_MS",
    "FOLLOW_PREFIX",
    "MAX_BACKEND_TIMEOUT",
    "MAX_TICK_RATE_MS",
    "MIN_TICK_RATE_MS",
    "Flag",
    "FlagKind",
    "MessageSummary",
    "Mode",
    "ReviewState",
    "UserConfig",
]
