"""Color palettes keyed by UI role, plus their Textual theme registrations.

Every palette defines the same roles. Rich markup reads the active palette
through ``THEME_COLORS``; the stylesheet reads it through ``$th-*`` variables.
"""

from __future__ import annotations

from textual.theme import Theme as TextualTheme

from himalaya_tui.models import Mode

DEFAULT_THEME = {
    # surfaces
    "background": "#272822",
    "panel": "#1e1e1e",
    "panel_alt": "#3e3d32",
    "highlight": "#49483e",
    "highlight_focus": "#5a5950",
    # text
    "text": "#f8f8f2",
    "muted": "#75715e",
    "accent": "#66d9ef",
    # modes
    "browse": "#66d9ef",
    "entry": "#a6e22e",
    "review": "#e6db74",
    # listing and review content
    "sender": "#66d9ef",
    "flags": "#fd971f",
    "link": "#ae81ff",
    # status
    "warning": "#fd971f",
    "error": "#f92672",
    "scrollbar_background": "#3e3d32",
    "scrollbar": "#75715e",
    "scrollbar_active": "#66d9ef",
    "scrollbar_hover": "#a8a8a2",
}

CATPPUCCIN_MOCHA_THEME: dict[str, str] = {
    "background": "#1e1e2e",
    "panel": "#181825",
    "panel_alt": "#313244",
    "highlight": "#313244",
    "highlight_focus": "#45475a",
    "text": "#cdd6f4",
    "muted": "#6c7086",
    "accent": "#89b4fa",
    "browse": "#89b4fa",
    "entry": "#a6e3a1",
    "review": "#f9e2af",
    "sender": "#74c7ec",
    "flags": "#fab387",
    "link": "#94e2d5",
    "warning": "#fab387",
    "error": "#f38ba8",
    "scrollbar_background": "#313244",
    "scrollbar": "#6c7086",
    "scrollbar_active": "#89b4fa",
    "scrollbar_hover": "#9399b2",
}

SOLARIZED_DARK_THEME: dict[str, str] = {
    "background": "#002b36",
    "panel": "#073642",
    "panel_alt": "#586e75",
    "highlight": "#073642",
    "highlight_focus": "#586e75",
    "text": "#839496",
    "muted": "#586e75",
    "accent": "#268bd2",
    "browse": "#268bd2",
    "entry": "#859900",
    "review": "#b58900",
    "sender": "#2aa198",
    "flags": "#cb4b16",
    "link": "#6c71c4",
    "warning": "#cb4b16",
    "error": "#dc322f",
    "scrollbar_background": "#073642",
    "scrollbar": "#657b83",
    "scrollbar_active": "#268bd2",
    "scrollbar_hover": "#93a1a1",
}

THEMES: dict[str, dict[str, str]] = {
    "monokai": DEFAULT_THEME,
    "catppuccin-mocha": CATPPUCCIN_MOCHA_THEME,
    "solarized-dark": SOLARIZED_DARK_THEME,
}
THEME_NAMES: list[str] = list(THEMES)

MODE_COLOR_KEYS: dict[Mode, str] = {
    Mode.BROWSE: "browse",
    Mode.ENTRY: "entry",
    Mode.REVIEW: "review",
}

# Palette roles exposed to the stylesheet as $th-<role>
_CSS_ROLES = (
    "background",
    "panel",
    "panel_alt",
    "highlight",
    "highlight_focus",
    "text",
    "muted",
    "accent",
    "browse",
    "entry",
    "review",
    "scrollbar_background",
    "scrollbar",
    "scrollbar_active",
    "scrollbar_hover",
)


def _build_textual_theme(name: str, colors: dict[str, str]) -> TextualTheme:
    """Wrap a palette as a Textual theme carrying ``$th-*`` variables."""
    variables = {f"th-{role.replace('_', '-')}": colors[role] for role in _CSS_ROLES}
    return TextualTheme(
        name=name,
        primary=colors["browse"],
        secondary=colors["review"],
        accent=colors["entry"],
        foreground=colors["text"],
        background=colors["background"],
        surface=colors["panel"],
        panel=colors["panel_alt"],
        warning=colors["warning"],
        error=colors["error"],
        success=colors["entry"],
        dark=True,
        variables=variables,
    )


TEXTUAL_THEMES: dict[str, TextualTheme] = {
    name: _build_textual_theme(name, colors) for name, colors in THEMES.items()
}

THEME_COLORS = DEFAULT_THEME.copy()


def apply_theme_colors(theme_name: str) -> None:
    """Point THEME_COLORS (used by Rich markup) at the named palette."""
    THEME_COLORS.clear()
    THEME_COLORS.update(THEMES.get(theme_name, DEFAULT_THEME))


def mode_color(mode: Mode) -> str:
    return THEME_COLORS[MODE_COLOR_KEYS[mode]]


__all__ = [
    "CATPPUCCIN_MOCHA_THEME",
    "DEFAULT_THEME",
    "MODE_COLOR_KEYS",
    "SOLARIZED_DARK_THEME",
    "TEXTUAL_THEMES",
    "THEMES",
    "THEME_COLORS",
    "THEME_NAMES",
    "apply_theme_colors",
    "mode_color",
]
