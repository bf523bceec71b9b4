"""Widget classes and render helpers for the mail browser UI."""

from himalaya_tui.widgets.chrome import MODE_HINTS, CommandLine, ContextFooter, ModeBadge
from himalaya_tui.widgets.listing import (
    flags_glyphs,
    message_row,
    render_header,
    render_message_option,
    set_ascii_icons,
)
from himalaya_tui.widgets.review import ReviewPane, build_review_text

__all__ = [
    "MODE_HINTS",
    "CommandLine",
    "ContextFooter",
    "ModeBadge",
    "ReviewPane",
    "build_review_text",
    "flags_glyphs",
    "message_row",
    "render_header",
    "render_message_option",
    "set_ascii_icons",
]
