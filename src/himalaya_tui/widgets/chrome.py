"""Widget chrome for the mode badge, command line, and footer hints."""

from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.widgets import Static

from himalaya_tui.models import Mode
from himalaya_tui.themes import THEME_COLORS, mode_color

# (key, label) hints shown in the footer for each mode
MODE_HINTS: dict[Mode, list[tuple[str, str]]] = {
    Mode.BROWSE: [
        ("j/k", "move"),
        ("enter", "read"),
        (":", "command"),
        ("q", "back"),
        ("esc", "quit"),
    ],
    Mode.ENTRY: [
        ("enter", "submit"),
        ("esc", "cancel"),
        ("", "search <terms> · read <id> · follow <n>"),
    ],
    Mode.REVIEW: [
        ("j/k", "scroll"),
        ("f", "follow link"),
        ("s", "stats"),
        ("q", "close"),
    ],
}


class ModeBadge(Static):
    """Colored label naming the current interaction mode."""

    def set_mode(self, mode: Mode) -> None:
        color = mode_color(mode)
        background = THEME_COLORS["background"]
        self.update(f"[bold {background} on {color}] {mode.label} [/]")


class CommandLine(Static):
    """The input buffer while typing, otherwise the active filter."""

    def set_text(self, text: str, *, editing: bool = False) -> None:
        safe = escape_markup(text)
        if editing:
            accent = THEME_COLORS["entry"]
            self.update(f"[{accent}]:[/]{safe}[reverse] [/]")
        elif text:
            self.update(f"[{THEME_COLORS['muted']}]filter:[/] {safe}")
        else:
            self.update("")


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    def render_bindings(self, bindings: list[tuple[str, str]], status: str = "") -> None:
        """Update the footer with a list of (key, label) binding hints."""
        accent = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        parts = []
        for key, label in bindings:
            safe_key = escape_markup(key)
            if key and label:
                parts.append(f"[bold {accent}]{safe_key}[/] [{muted}]{escape_markup(label)}[/]")
            elif label:
                # Label-only entry (e.g., verb reference)
                parts.append(f"[italic {muted}]{escape_markup(label)}[/]")
        if status:
            parts.append(f"[{muted}]{escape_markup(status)}[/]")
        self.update("  ".join(parts))

    def render_mode(self, mode: Mode, status: str = "") -> None:
        self.render_bindings(MODE_HINTS[mode], status)


__all__ = [
    "MODE_HINTS",
    "CommandLine",
    "ContextFooter",
    "ModeBadge",
]
