"""Tests for MailEngine event dispatch and the deferred backend tick."""

from __future__ import annotations

import pytest

from himalaya_tui.engine import MailEngine
from himalaya_tui.errors import (
    BackendUnavailable,
    DecodeFailure,
    InvalidReference,
    OpenFailure,
)
from himalaya_tui.keymap import Action, RawChar, SwitchMode
from himalaya_tui.models import FOLLOW_PREFIX, Mode


class RecordingOpener:
    """Link opener double that records links and can be told to fail."""

    def __init__(self, error: Exception | None = None) -> None:
        self.opened: list[str] = []
        self.error = error

    def __call__(self, link: str) -> None:
        self.opened.append(link)
        if self.error is not None:
            raise self.error


@pytest.fixture
def opener() -> RecordingOpener:
    return RecordingOpener()


@pytest.fixture
def engine(fake_backend, opener) -> MailEngine:
    return MailEngine(fake_backend, opener=opener)


def _type(engine: MailEngine, text: str) -> None:
    for char in text:
        engine.handle_key(char, char)


def _load(engine: MailEngine, fake_backend, *ids: int) -> None:
    """Run an unfiltered refresh that yields messages with ``ids``."""
    fake_backend.queue_listing(*ids)
    engine.request_refresh()
    engine.on_tick()


def _review(engine: MailEngine, fake_backend, body: str, msg_id: int = 42) -> None:
    """Load a listing containing ``msg_id`` and open it with ``body``."""
    _load(engine, fake_backend, msg_id)
    engine.on_event(Action.SELECT_NEXT)
    engine.on_event(Action.ENTER_REVIEW)
    fake_backend.queue_message(body)
    engine.on_tick()
    assert engine.mode is Mode.REVIEW


# ============================================================================
# Browse mode
# ============================================================================


class TestBrowse:
    def test_initial_state(self, engine):
        assert engine.mode is Mode.BROWSE
        assert engine.selected is None
        assert engine.messages == []
        assert engine.need_update is False
        assert engine.command_line_text == ""

    def test_exit(self, engine):
        engine.handle_key("escape")
        assert engine.should_quit is True

    def test_select_next_from_none_selects_first(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2, 3)
        engine.on_event(Action.SELECT_NEXT)
        assert engine.selected == 0

    def test_select_previous_from_none_selects_first(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2, 3)
        engine.on_event(Action.SELECT_PREVIOUS)
        assert engine.selected == 0

    def test_selection_wraps_forward(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2)
        for _ in range(3):
            engine.on_event(Action.SELECT_NEXT)
        assert engine.selected == 0

    def test_selection_wraps_backward(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2, 3)
        engine.on_event(Action.SELECT_NEXT)
        engine.on_event(Action.SELECT_PREVIOUS)
        assert engine.selected == 2

    def test_selection_on_empty_list_stays_none(self, engine):
        engine.on_event(Action.SELECT_NEXT)
        engine.on_event(Action.SELECT_PREVIOUS)
        assert engine.selected is None

    def test_selected_message(self, engine, fake_backend):
        _load(engine, fake_backend, 7, 8)
        assert engine.selected_message is None
        engine.handle_key("j", "j")
        engine.handle_key("j", "j")
        assert engine.selected_message.id == 8

    def test_colon_enters_entry(self, engine):
        engine.handle_key("colon", ":")
        assert engine.mode is Mode.ENTRY
        assert engine.modes.previous is Mode.BROWSE

    def test_cancel_filter_pops_and_flags_update(self, engine):
        engine.filters.push("search foo")
        engine.command_input = "leftover"
        engine.handle_key("q", "q")
        assert len(engine.filters) == 0
        assert engine.need_update is True
        assert engine.command_input == ""

    def test_cancel_filter_on_empty_stack_still_refreshes(self, engine, fake_backend):
        engine.handle_key("q", "q")
        assert engine.need_update is True
        engine.on_tick()
        assert fake_backend.calls == [["list", "-s", "0"]]

    def test_enter_review_without_selection_is_noop(self, engine):
        engine.on_event(Action.ENTER_REVIEW)
        assert len(engine.filters) == 0
        assert engine.need_update is False

    def test_review_events_ignored_in_browse(self, engine):
        engine.on_event(Action.SCROLL_DOWN)
        engine.on_event(Action.TOGGLE_STATS)
        engine.on_event(RawChar("x"))
        assert engine.review.offset == 0
        assert engine.review.show_stats is False
        assert engine.command_input == ""


# ============================================================================
# Entry mode
# ============================================================================


class TestEntry:
    def test_typing_appends(self, engine):
        engine.handle_key("colon", ":")
        _type(engine, "read 5")
        assert engine.command_input == "read 5"
        assert engine.command_line_text == "read 5"

    def test_backspace(self, engine):
        engine.handle_key("colon", ":")
        _type(engine, "ab")
        engine.handle_key("backspace")
        assert engine.command_input == "a"

    def test_backspace_on_empty_is_noop(self, engine):
        engine.handle_key("colon", ":")
        engine.handle_key("backspace")
        assert engine.command_input == ""

    @pytest.mark.parametrize("key", ["escape", "ctrl+d"])
    def test_quit_clears_and_returns(self, engine, key):
        engine.handle_key("colon", ":")
        _type(engine, "search x")
        engine.handle_key(key)
        assert engine.mode is Mode.BROWSE
        assert engine.command_input == ""
        assert len(engine.filters) == 0
        assert engine.need_update is False

    def test_submit_pushes_filter(self, engine):
        engine.handle_key("colon", ":")
        _type(engine, "search foo")
        engine.handle_key("enter")
        assert engine.filters.top == "search foo"
        assert engine.mode is Mode.BROWSE
        assert engine.need_update is True
        assert engine.command_input == ""
        assert engine.command_line_text == "search foo"

    def test_navigation_keys_are_text(self, engine):
        engine.handle_key("colon", ":")
        _type(engine, "jkq")
        assert engine.command_input == "jkq"
        assert engine.mode is Mode.ENTRY


# ============================================================================
# Review mode
# ============================================================================


class TestReview:
    def test_scroll(self, engine, fake_backend):
        _review(engine, fake_backend, "a\nb\nc")
        engine.handle_key("j", "j")
        engine.handle_key("j", "j")
        engine.handle_key("k", "k")
        assert engine.review.offset == 1

    def test_scroll_up_floors_at_zero(self, engine, fake_backend):
        _review(engine, fake_backend, "body")
        engine.handle_key("k", "k")
        assert engine.review.offset == 0

    def test_scroll_down_unbounded(self, engine, fake_backend):
        _review(engine, fake_backend, "one line")
        for _ in range(10):
            engine.on_event(Action.SCROLL_DOWN)
        assert engine.review.offset == 10

    def test_toggle_stats(self, engine, fake_backend):
        _review(engine, fake_backend, "body")
        engine.handle_key("s", "s")
        assert engine.review.show_stats is True
        engine.handle_key("s", "s")
        assert engine.review.show_stats is False

    def test_toggle_links_prefills_follow(self, engine, fake_backend):
        _review(engine, fake_backend, "see https://a.example")
        engine.handle_key("f", "f")
        assert engine.review.show_links is True
        assert engine.command_input == FOLLOW_PREFIX
        assert engine.mode is Mode.ENTRY
        assert engine.modes.previous is Mode.REVIEW

    def test_quit_review(self, engine, fake_backend):
        _review(engine, fake_backend, "body")
        engine.handle_key("q", "q")
        assert engine.mode is Mode.BROWSE
        assert engine.review.content == ""
        assert len(engine.filters) == 0
        assert engine.need_update is True
        assert engine.command_input == ""

    def test_quit_review_refreshes_listing(self, engine, fake_backend):
        _review(engine, fake_backend, "body")
        engine.handle_key("q", "q")
        fake_backend.queue_listing(42, 43)
        engine.on_tick()
        assert fake_backend.calls[-1] == ["list", "-s", "0"]
        assert [m.id for m in engine.messages] == [42, 43]


# ============================================================================
# Tick scheduler
# ============================================================================


class TestTick:
    def test_no_update_owed_does_nothing(self, engine, fake_backend):
        assert engine.on_tick() is False
        assert fake_backend.calls == []

    def test_unfiltered_listing(self, engine, fake_backend):
        _load(engine, fake_backend, 3, 1, 2)
        assert fake_backend.calls == [["list", "-s", "0"]]
        assert [m.id for m in engine.messages] == [3, 1, 2]
        assert engine.selected is None
        assert engine.need_update is False

    def test_listing_resets_selection(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2)
        engine.on_event(Action.SELECT_NEXT)
        _load(engine, fake_backend, 1, 2)
        assert engine.selected is None

    def test_search(self, engine, fake_backend):
        engine.filters.push("search foo")
        fake_backend.queue_listing(9)
        engine.request_refresh()
        assert engine.on_tick() is True
        assert fake_backend.calls == [["search", "subject", "foo", "-s", "0"]]
        assert [m.id for m in engine.messages] == [9]

    def test_search_decode_failure_empties_listing(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2)
        engine.filters.push("search foo")
        fake_backend.queue(b"not json at all")
        engine.request_refresh()
        engine.on_tick()
        assert engine.messages == []
        assert engine.selected is None
        assert engine.need_update is False
        (error,) = engine.drain_errors()
        assert isinstance(error, DecodeFailure)

    def test_listing_backend_failure_empties_listing(self, engine, fake_backend):
        _load(engine, fake_backend, 1, 2)
        fake_backend.fail_with("himalaya not found")
        engine.request_refresh()
        engine.on_tick()
        assert engine.messages == []
        assert engine.need_update is False
        (error,) = engine.drain_errors()
        assert isinstance(error, BackendUnavailable)

    def test_read_failure_leaves_state(self, engine, fake_backend):
        _load(engine, fake_backend, 42)
        engine.on_event(Action.SELECT_NEXT)
        engine.on_event(Action.ENTER_REVIEW)
        fake_backend.queue(b'{"response": 17}')
        engine.on_tick()
        assert engine.mode is Mode.BROWSE
        assert engine.review.content == ""
        assert engine.need_update is False
        assert engine.filters.top == "read 42"
        assert [m.id for m in engine.messages] == [42]

    def test_unknown_verb_has_no_effect(self, engine, fake_backend):
        engine.filters.push("delete 3")
        engine.request_refresh()
        assert engine.on_tick() is True
        assert fake_backend.calls == []
        assert engine.need_update is False

    def test_blank_filter_is_unfiltered(self, engine, fake_backend):
        engine.handle_key("colon", ":")
        engine.handle_key("enter")
        assert engine.filters.top == ""
        engine.on_tick()
        assert fake_backend.calls == [["list", "-s", "0"]]

    def test_repeated_requests_issue_one_call(self, engine, fake_backend):
        engine.request_refresh()
        engine.request_refresh()
        engine.on_tick()
        engine.on_tick()
        assert len(fake_backend.calls) == 1

    def test_drain_errors_forgets(self, engine, fake_backend):
        fake_backend.fail_with()
        engine.request_refresh()
        engine.on_tick()
        assert len(engine.drain_errors()) == 1
        assert engine.drain_errors() == []


# ============================================================================
# Follow
# ============================================================================


class TestFollow:
    def _follow(self, engine, reference: str) -> None:
        engine.handle_key("f", "f")
        _type(engine, reference)
        engine.handle_key("enter")
        engine.on_tick()

    def test_follow_opens_link_and_unwinds(self, engine, fake_backend, opener):
        _review(engine, fake_backend, "a http://a\nb http://b")
        assert engine.review.links == ["http://a", "http://b"]
        self._follow(engine, "2")
        assert opener.opened == ["http://b"]
        assert engine.review.show_links is False
        assert engine.mode is Mode.REVIEW
        assert engine.filters.snapshot() == ("read 42",)
        assert engine.command_input == ""
        assert engine.need_update is False
        # No backend call for follow
        assert fake_backend.calls[-1] == ["read", "42"]

    @pytest.mark.parametrize("reference", ["0", "3", "-1", "two", ""])
    def test_invalid_reference_unwinds(self, engine, fake_backend, opener, reference):
        _review(engine, fake_backend, "http://a http://b")
        self._follow(engine, reference)
        assert opener.opened == []
        assert engine.mode is Mode.REVIEW
        assert engine.review.show_links is False
        assert engine.filters.snapshot() == ("read 42",)
        (error,) = engine.drain_errors()
        assert isinstance(error, InvalidReference)

    @pytest.mark.parametrize("reference", ["+2", "1_0", "٢", "１"])
    def test_non_ascii_digit_references_rejected(self, engine, fake_backend, opener, reference):
        _review(engine, fake_backend, "http://a http://b")
        engine.filters.push(f"follow {reference}")
        engine.request_refresh()
        engine.on_tick()
        assert opener.opened == []
        (error,) = engine.drain_errors()
        assert isinstance(error, InvalidReference)

    def test_follow_from_browse_stays_in_browse(self, engine, fake_backend, opener):
        engine.filters.push("search foo")
        engine.handle_key(":", ":")
        _type(engine, "follow 1")
        engine.handle_key("enter")
        engine.on_tick()
        assert opener.opened == []
        assert engine.mode is Mode.BROWSE
        assert engine.review.content == ""
        assert engine.filters.snapshot() == ("search foo",)
        assert engine.need_update is False
        (error,) = engine.drain_errors()
        assert isinstance(error, InvalidReference)

    def test_open_failure_unwinds(self, fake_backend):
        opener = RecordingOpener(OpenFailure("http://a", "no browser"))
        engine = MailEngine(fake_backend, opener=opener)
        _review(engine, fake_backend, "http://a")
        self._follow(engine, "1")
        assert opener.opened == ["http://a"]
        assert engine.mode is Mode.REVIEW
        assert engine.filters.snapshot() == ("read 42",)
        (error,) = engine.drain_errors()
        assert isinstance(error, OpenFailure)

    def test_cancel_follow_prompt_keeps_highlighting(self, engine, fake_backend):
        _review(engine, fake_backend, "http://a")
        engine.handle_key("f", "f")
        engine.handle_key("escape")
        assert engine.mode is Mode.REVIEW
        assert engine.command_input == ""
        assert engine.review.show_links is True


# ============================================================================
# End-to-end scenarios
# ============================================================================


class TestScenarios:
    def test_search_scenario(self, engine, fake_backend):
        engine.handle_key("colon", ":")
        _type(engine, "search foo")
        engine.handle_key("enter")
        assert engine.filters.top == "search foo"
        assert engine.mode is Mode.BROWSE
        assert engine.need_update is True
        engine.on_tick()
        assert fake_backend.calls == [["search", "subject", "foo", "-s", "0"]]

    def test_read_scenario(self, engine, fake_backend):
        _load(engine, fake_backend, 42)
        engine.handle_key("j", "j")
        engine.handle_key("enter")
        assert engine.filters.top == "read 42"
        assert engine.need_update is True
        fake_backend.queue_message("Hello")
        engine.on_tick()
        assert fake_backend.calls[-1] == ["read", "42"]
        assert engine.mode is Mode.REVIEW
        assert engine.review.content == "Hello"
        assert engine.review.offset == 0

    def test_events_returned_from_handle_key(self, engine):
        assert engine.handle_key("colon", ":") == [SwitchMode(Mode.ENTRY)]
        assert engine.handle_key("x", "x") == [RawChar("x")]
