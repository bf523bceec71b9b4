"""Internal UI constants for the MailBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

#main-pane {
    height: 1fr;
    border: tall $th-highlight;
    background: $th-panel;
}

#main-pane.mode-browse {
    border: tall $th-browse;
}

#main-pane.mode-entry {
    border: tall $th-entry;
}

#main-pane.mode-review {
    border: tall $th-review;
}

#list-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#message-list {
    height: 1fr;
    border: none;
    background: $th-panel;
    scrollbar-gutter: stable;
    scrollbar-background: $th-scrollbar-background;
    scrollbar-color: $th-scrollbar;
    scrollbar-color-hover: $th-scrollbar-hover;
    scrollbar-color-active: $th-scrollbar-active;
}

#message-list > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#message-list > .option-list--option-hover {
    background: $th-panel-alt;
}

#review-pane {
    height: 1fr;
    padding: 0 1;
    color: $th-text;
    display: none;
}

#main-pane.reviewing #review-pane {
    display: block;
}

#main-pane.reviewing #message-list {
    display: none;
}

#main-pane.reviewing #list-header {
    display: none;
}

#command-bar {
    height: 1;
    background: $th-panel-alt;
}

#mode-badge {
    width: auto;
    padding: 0 1;
    text-style: bold;
}

#command-line {
    width: 1fr;
    padding: 0 1;
    color: $th-text;
}

#footer {
    padding: 0 1;
    color: $th-muted;
}
"""

# Modal keys are resolved by the engine; only the hard quit bypasses it.
APP_BINDINGS: list[BindingType] = [
    Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
]
