"""Modal interaction engine: event dispatch and the deferred backend tick.

``MailEngine`` owns every piece of UI state (mode machine, filter stack,
message listing, review content, input buffer, deferred-update flag). Key
presses become events through the keymap; events mutate state immediately;
backend calls happen only in ``on_tick`` and only when an update is owed.
"""

from __future__ import annotations

import logging

from himalaya_tui.backend import (
    MailBackend,
    build_listing_args,
    build_read_args,
    build_search_args,
    decode_listing,
    decode_message,
)
from himalaya_tui.errors import (
    BackendUnavailable,
    DecodeFailure,
    InvalidReference,
    MailTuiError,
    OpenFailure,
)
from himalaya_tui.filters import (
    FilterStack,
    FollowCommand,
    ReadCommand,
    SearchCommand,
    read_filter,
)
from himalaya_tui.io_actions import LinkOpener, open_in_browser
from himalaya_tui.keymap import Action, Event, Keymap, ModeMachine, RawChar, SwitchMode
from himalaya_tui.links import LinkScan, scan_text
from himalaya_tui.models import FOLLOW_PREFIX, MessageSummary, Mode, ReviewState

logger = logging.getLogger(__name__)


class MailEngine:
    """Single owner of the interaction state; not shared across threads."""

    def __init__(
        self,
        backend: MailBackend,
        *,
        opener: LinkOpener = open_in_browser,
        keymap: Keymap | None = None,
    ) -> None:
        self.backend = backend
        self.opener = opener
        self.keymap = keymap or Keymap()
        self.modes = ModeMachine(Mode.BROWSE)
        self.filters = FilterStack()
        self.messages: list[MessageSummary] = []
        self.selected: int | None = None
        self.review = ReviewState()
        self.command_input: str = ""
        self.need_update: bool = False
        self.should_quit: bool = False
        self._errors: list[MailTuiError] = []

    # ========================================================================
    # State accessors
    # ========================================================================

    @property
    def mode(self) -> Mode:
        return self.modes.current

    @property
    def current_filter(self) -> str | None:
        return self.filters.top

    @property
    def selected_message(self) -> MessageSummary | None:
        if self.selected is None or not self.messages:
            return None
        return self.messages[self.selected]

    @property
    def command_line_text(self) -> str:
        """Text for the command line: the buffer while typing, else the active filter."""
        if self.mode is Mode.ENTRY:
            return self.command_input
        top = self.filters.top
        return top if top is not None else self.command_input

    def request_refresh(self) -> None:
        """Mark a backend call as owed; a no-op if one is already owed."""
        self.need_update = True

    def drain_errors(self) -> list[MailTuiError]:
        """Return and forget errors recorded since the last drain."""
        errors, self._errors = self._errors, []
        return errors

    def _record_error(self, error: MailTuiError) -> None:
        logger.warning("%s: %s", type(error).__name__, error)
        self._errors.append(error)

    # ========================================================================
    # Input
    # ========================================================================

    def handle_key(self, key: str, character: str | None = None) -> list[Event]:
        """Resolve a terminal key for the current mode and dispatch its events."""
        events = self.keymap.resolve_key(self.mode, key, character)
        for event in events:
            self.on_event(event)
        return events

    def on_event(self, event: Event) -> None:
        """Apply one event to the state according to the current mode."""
        mode = self.mode
        if mode is Mode.BROWSE:
            self._on_browse_event(event)
        elif mode is Mode.ENTRY:
            self._on_entry_event(event)
        else:
            self._on_review_event(event)

    def _on_browse_event(self, event: Event) -> None:
        if event is Action.EXIT:
            self.should_quit = True
        elif event is Action.SELECT_NEXT:
            self.select_next()
        elif event is Action.SELECT_PREVIOUS:
            self.select_previous()
        elif isinstance(event, SwitchMode):
            self.modes.switch_to(event.mode)
        elif event is Action.CANCEL_FILTER:
            self.filters.pop()
            self.need_update = True
            self.command_input = ""
        elif event is Action.ENTER_REVIEW:
            message = self.selected_message
            if message is not None:
                self.filters.push(read_filter(message.id))
                self.need_update = True

    def _on_entry_event(self, event: Event) -> None:
        if event is Action.ENTRY_QUIT:
            self.command_input = ""
            self.modes.switch_back()
        elif event is Action.ENTRY_SUBMIT:
            self.filters.push(self.command_input)
            self.command_input = ""
            self.modes.switch_back()
            self.need_update = True
        elif isinstance(event, RawChar):
            self.command_input += event.char
        elif event is Action.BACKSPACE:
            self.command_input = self.command_input[:-1]

    def _on_review_event(self, event: Event) -> None:
        if event is Action.ENTRY_QUIT:
            self.modes.switch_to(Mode.BROWSE)
            self.review.clear()
            self.filters.pop()
            self.need_update = True
            self.command_input = ""
        elif event is Action.SCROLL_UP:
            self.review.offset = max(0, self.review.offset - 1)
        elif event is Action.SCROLL_DOWN:
            self.review.offset += 1
        elif event is Action.TOGGLE_LINKS:
            self.review.show_links = True
            self.command_input = FOLLOW_PREFIX
            self.modes.switch_to(Mode.ENTRY)
        elif event is Action.TOGGLE_STATS:
            self.review.show_stats = not self.review.show_stats

    # ========================================================================
    # Selection
    # ========================================================================

    def select_next(self) -> None:
        size = len(self.messages)
        if size == 0:
            return
        if self.selected is None or self.selected >= size - 1:
            self.selected = 0
        else:
            self.selected += 1

    def select_previous(self) -> None:
        size = len(self.messages)
        if size == 0:
            return
        if self.selected is None:
            self.selected = 0
        elif self.selected == 0:
            self.selected = size - 1
        else:
            self.selected -= 1

    # ========================================================================
    # Tick scheduler
    # ========================================================================

    def on_tick(self) -> bool:
        """Run the owed backend update, if any. Returns True when one ran.

        The deferred-update flag is cleared whether or not the call succeeded.
        """
        if not self.need_update:
            return False
        try:
            command = self.filters.active_command()
            if command is None:
                self._load_listing(build_listing_args())
            elif isinstance(command, SearchCommand):
                self._load_listing(build_search_args(command.terms))
            elif isinstance(command, ReadCommand):
                self._load_message(command)
            elif isinstance(command, FollowCommand):
                self._follow_link(command)
            else:
                logger.debug("Ignoring unknown verb %r", command.verb)
        finally:
            self.need_update = False
        return True

    def _load_listing(self, args: list[str]) -> None:
        """Replace the listing; any backend or decode failure yields an empty one."""
        try:
            messages = decode_listing(self.backend.run(args))
        except (BackendUnavailable, DecodeFailure) as e:
            self._record_error(e)
            messages = []
        self.messages = messages
        self.selected = None
        logger.debug("Listing replaced: %d messages", len(messages))

    def _load_message(self, command: ReadCommand) -> None:
        """Fetch one body into review; on failure leave state unchanged."""
        try:
            body = decode_message(self.backend.run(build_read_args(command.args)))
        except (BackendUnavailable, DecodeFailure) as e:
            self._record_error(e)
            return
        self.review.content = body
        self.review.offset = 0
        self.review.links = scan_text(body).links
        self.modes.switch_to(Mode.REVIEW)

    def _follow_link(self, command: FollowCommand) -> None:
        """Open the referenced link, then unwind the follow prompt.

        The unwind returns to Review only when a message is open; a follow
        typed from Browse just drops its own filter.
        """
        try:
            link = self._resolve_link(command.reference)
            self.opener(link)
        except (InvalidReference, OpenFailure) as e:
            self._record_error(e)
        self.review.show_links = False
        if self.review.content:
            self.modes.switch_to(Mode.REVIEW)
        self.filters.pop()
        self.command_input = ""

    def _resolve_link(self, reference: str) -> str:
        links = self.review.links
        # Plain ASCII digits only; int() would also take "+2", "1_0" and "٢".
        if not (reference.isascii() and reference.isdecimal()):
            raise InvalidReference(reference, len(links))
        index = int(reference)
        if not 1 <= index <= len(links):
            raise InvalidReference(reference, len(links))
        return links[index - 1]

    # ========================================================================
    # Rendering support
    # ========================================================================

    def scan_review(self) -> LinkScan:
        """Segment the review content and rebuild the link registry."""
        scan = scan_text(self.review.content)
        self.review.links = scan.links
        return scan


__all__ = [
    "MailEngine",
]
