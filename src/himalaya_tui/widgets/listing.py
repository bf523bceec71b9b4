"""List rendering helpers for message summaries."""

from __future__ import annotations

from rich.markup import escape as escape_markup

from himalaya_tui.models import FlagKind, MessageSummary
from himalaya_tui.themes import THEME_COLORS

SUBJECT_COLUMN_WIDTH = 48
SENDER_COLUMN_WIDTH = 24

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {
        "unseen": "✷",
        "answered": "↵",
        "flagged": "⚑",
    },
    "ascii": {
        "unseen": "*",
        "answered": "r",
        "flagged": "!",
    },
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]


def set_ascii_icons(enabled: bool) -> None:
    """Switch flag indicators between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]


def flags_glyphs(message: MessageSummary) -> str:
    """Three fixed columns: unseen, answered, flagged (space when absent)."""
    return "".join(
        (
            _ACTIVE_ICON_SET["unseen"] if not message.has_flag(FlagKind.SEEN) else " ",
            _ACTIVE_ICON_SET["answered"] if message.has_flag(FlagKind.ANSWERED) else " ",
            _ACTIVE_ICON_SET["flagged"] if message.has_flag(FlagKind.FLAGGED) else " ",
        )
    )


def message_row(message: MessageSummary) -> tuple[str, str, str, str, str]:
    """The (id, flags, subject, sender, date) cells for one listing row."""
    return (
        str(message.id),
        flags_glyphs(message),
        message.subject,
        message.sender,
        message.date,
    )


def _fit(text: str, width: int) -> str:
    """Pad or truncate ``text`` to exactly ``width`` characters."""
    if len(text) <= width:
        return text.ljust(width)
    return text[: width - 1] + "…"


def render_header(id_width: int) -> str:
    """Rich markup for the column header above the listing."""
    muted = THEME_COLORS["muted"]
    cells = [
        "ID".rjust(id_width),
        "FLG",
        _fit("SUBJECT", SUBJECT_COLUMN_WIDTH),
        _fit("FROM", SENDER_COLUMN_WIDTH),
        "DATE",
    ]
    return f"[bold {muted}]{escape_markup(' '.join(cells))}[/]"


def render_message_option(message: MessageSummary, *, id_width: int = 4) -> str:
    """Render a message summary as Rich markup for OptionList display."""
    msg_id, flags, subject, sender, date = message_row(message)
    subject_cell = escape_markup(_fit(subject, SUBJECT_COLUMN_WIDTH))
    if not message.has_flag(FlagKind.SEEN):
        subject_cell = f"[bold]{subject_cell}[/]"
    parts = [
        f"[{THEME_COLORS['muted']}]{msg_id.rjust(id_width)}[/]",
        f"[{THEME_COLORS['flags']}]{escape_markup(flags)}[/]",
        subject_cell,
        f"[{THEME_COLORS['sender']}]{escape_markup(_fit(sender, SENDER_COLUMN_WIDTH))}[/]",
        f"[dim]{escape_markup(date)}[/]",
    ]
    return " ".join(parts)


__all__ = [
    "SENDER_COLUMN_WIDTH",
    "SUBJECT_COLUMN_WIDTH",
    "flags_glyphs",
    "message_row",
    "render_header",
    "render_message_option",
    "set_ascii_icons",
]
