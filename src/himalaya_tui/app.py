#!/usr/bin/env python3
"""Modal mail browser TUI on top of the himalaya CLI.

Usage:
    himalaya-tui                          # Default account and mailbox
    himalaya-tui --account work           # Pick a himalaya account
    himalaya-tui --mailbox Archive        # Browse another folder
    himalaya-tui --tick-rate 100          # Poll for owed updates every 100 ms

Modes and key bindings:
    MOTION (browse the listing)
        j/k     - Next/previous message (wraps around)
        enter   - Read the selected message
        :       - Open the command line
        q       - Drop the most recent filter
        esc     - Quit
    INSERT (command line)
        enter   - Submit the command as a new filter
        esc     - Cancel (also ctrl+d)
    REVIEW (reading a message)
        j/k     - Scroll down/up
        f       - Number the links and prefill "follow "
        s       - Toggle link statistics
        q       - Close the message

Commands:
    search <terms>  - Search (bare words search the subject)
    read <id>       - Open a message by id
    follow <n>      - Open link number n of the message under review
"""

from __future__ import annotations

import logging
import sys

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.timer import Timer
from textual.widgets import Label, OptionList
from textual.widgets.option_list import Option

from himalaya_tui.action_messages import build_actionable_warning, build_error_notification
from himalaya_tui.cli import (
    _configure_color_mode,
    _configure_logging,
    _validate_interactive_tty,
    build_engine,
)
from himalaya_tui.cli import main as _cli_main
from himalaya_tui.config import load_config, save_config
from himalaya_tui.engine import MailEngine
from himalaya_tui.models import MessageSummary, Mode, UserConfig
from himalaya_tui.themes import TEXTUAL_THEMES, apply_theme_colors
from himalaya_tui.ui_constants import APP_BINDINGS, APP_CSS
from himalaya_tui.widgets import (
    CommandLine,
    ContextFooter,
    ModeBadge,
    ReviewPane,
    render_header,
    render_message_option,
    set_ascii_icons,
)

logger = logging.getLogger(__name__)

_MODE_CLASSES = {
    Mode.BROWSE: "mode-browse",
    Mode.ENTRY: "mode-entry",
    Mode.REVIEW: "mode-review",
}


class MailBrowser(App):
    """Textual front end for ``MailEngine``.

    Every key press goes through the engine's keymap; the engine's deferred
    backend update runs on a fixed interval timer.
    """

    TITLE = "himalaya-tui"
    CSS = APP_CSS
    BINDINGS = APP_BINDINGS
    ENABLE_COMMAND_PALETTE = False

    def __init__(self, engine: MailEngine, config: UserConfig | None = None) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)
        self._engine = engine
        self._config = config or UserConfig()
        self._tick_timer: Timer | None = None
        self._rendered_messages: list[MessageSummary] | None = None
        set_ascii_icons(self._config.ascii_icons)
        self._apply_theme_overrides()

    @property
    def engine(self) -> MailEngine:
        return self._engine

    def compose(self) -> ComposeResult:
        with Vertical(id="main-pane", classes=_MODE_CLASSES[Mode.BROWSE]):
            yield Label("", id="list-header")
            yield OptionList(id="message-list")
            yield ReviewPane(id="review-pane")
        with Horizontal(id="command-bar"):
            yield ModeBadge(id="mode-badge")
            yield CommandLine(id="command-line")
        yield ContextFooter(id="footer")

    def on_mount(self) -> None:
        if self._config.config_defaulted:
            self.notify(
                build_actionable_warning(
                    "Config file could not be read; using defaults",
                    next_step="fix the file or rewrite it with --write-config",
                ),
                severity="warning",
                timeout=8,
            )
        # The engine owns selection; the list only mirrors it.
        self.query_one("#message-list", OptionList).can_focus = False

        self._engine.request_refresh()
        self._on_tick()
        interval = self._config.tick_rate_ms / 1000
        self._tick_timer = self.set_interval(interval, self._on_tick, name="backend-tick")
        logger.debug("App mounted: tick=%dms", self._config.tick_rate_ms)

    def _apply_theme_overrides(self) -> None:
        """Point Rich markup colors and CSS variables at the configured theme."""
        apply_theme_colors(self._config.theme_name)
        try:
            self.theme = self._config.theme_name
        except Exception as e:
            logger.debug("Skipping theme activation in current context: %s", e, exc_info=True)

    # ========================================================================
    # Engine plumbing
    # ========================================================================

    def on_key(self, event: Key) -> None:
        """Route every key press through the engine's modal keymap."""
        self._engine.handle_key(event.key, event.character)
        event.prevent_default()
        event.stop()
        self._sync_after_engine()

    def _on_tick(self) -> None:
        if self._engine.on_tick():
            self._sync_after_engine()
        elif self._rendered_messages is None:
            self._refresh_view()

    def _sync_after_engine(self) -> None:
        if self._engine.should_quit:
            if self._tick_timer is not None:
                self._tick_timer.stop()
            self.exit()
            return
        self._notify_errors()
        self._refresh_view()

    def _notify_errors(self) -> None:
        for error in self._engine.drain_errors():
            message, severity = build_error_notification(error)
            self.notify(message, severity=severity)

    # ========================================================================
    # Rendering
    # ========================================================================

    def _refresh_view(self) -> None:
        engine = self._engine
        mode = engine.mode
        pane = self.query_one("#main-pane", Vertical)
        for css_class in _MODE_CLASSES.values():
            pane.set_class(css_class == _MODE_CLASSES[mode], css_class)

        reviewing = bool(engine.review.content) or mode is Mode.REVIEW
        pane.set_class(reviewing, "reviewing")
        if reviewing:
            self._refresh_review()
        else:
            self._refresh_list()

        self.query_one(ModeBadge).set_mode(mode)
        self.query_one(CommandLine).set_text(
            engine.command_line_text, editing=mode is Mode.ENTRY
        )
        count = len(engine.messages)
        status = f"{count} message{'s' if count != 1 else ''}"
        if engine.filters:
            status += f" · {len(engine.filters)} filter{'s' if len(engine.filters) != 1 else ''}"
        self.query_one(ContextFooter).render_mode(mode, status)

    def _refresh_list(self) -> None:
        engine = self._engine
        option_list = self.query_one("#message-list", OptionList)
        if engine.messages is not self._rendered_messages:
            id_width = max((len(str(m.id)) for m in engine.messages), default=2)
            option_list.clear_options()
            option_list.add_options(
                [
                    Option(render_message_option(message, id_width=id_width), id=str(message.id))
                    for message in engine.messages
                ]
            )
            self.query_one("#list-header", Label).update(render_header(id_width))
            self._rendered_messages = engine.messages
        option_list.highlighted = engine.selected

    def _refresh_review(self) -> None:
        engine = self._engine
        review = engine.review
        self.query_one(ReviewPane).show_review(
            engine.scan_review(),
            offset=review.offset,
            show_links=review.show_links,
            show_stats=review.show_stats,
        )


def main() -> int:
    """Main entry point wrapper for CLI/bootstrap logic."""
    return _cli_main(
        load_config_fn=load_config,
        save_config_fn=save_config,
        configure_logging_fn=_configure_logging,
        configure_color_mode_fn=_configure_color_mode,
        validate_interactive_tty_fn=_validate_interactive_tty,
        engine_factory=build_engine,
        app_factory=MailBrowser,
    )


if __name__ == "__main__":
    sys.exit(main())
