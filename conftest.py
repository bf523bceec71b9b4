"""Shared test fixtures for himalaya TUI tests."""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Sequence
from typing import Any

import pytest

from himalaya_tui.errors import BackendUnavailable
from himalaya_tui.models import Flag, FlagKind, MessageSummary, UserConfig
from himalaya_tui.themes import DEFAULT_THEME, THEME_COLORS
from himalaya_tui.widgets import set_ascii_icons

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Restore THEME_COLORS and the flag icon set after each test.

    MailBrowser.__init__ mutates these module-level values. Without this fixture
    tests that instantiate MailBrowser would pollute the state for later tests.
    """
    yield
    THEME_COLORS.clear()
    THEME_COLORS.update(DEFAULT_THEME)
    set_ascii_icons(False)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_message():
    """Factory fixture for creating MessageSummary instances with sensible defaults."""

    def _make(
        id: int = 1,
        flags: Sequence[FlagKind | Flag] = (FlagKind.SEEN,),
        subject: str = "Test subject",
        sender: str = "Alice <alice@example.com>",
        date: str = "2024-01-15 09:30",
    ) -> MessageSummary:
        return MessageSummary(
            id=id,
            flags=tuple(f if isinstance(f, Flag) else Flag(f) for f in flags),
            subject=subject,
            sender=sender,
            date=date,
        )

    return _make


def listing_payload(*entries: dict[str, Any]) -> bytes:
    """Encode listing entries the way ``himalaya --output json list`` does."""
    return json.dumps({"response": list(entries)}).encode("utf-8")


def message_payload(body: str) -> bytes:
    """Encode a message body the way ``himalaya --output json read`` does."""
    return json.dumps({"response": body}).encode("utf-8")


def envelope(
    id: int,
    subject: str = "Subject",
    *,
    flags: list[Any] | None = None,
    sender: str = "bob@example.com",
    date: str = "2024-01-15 09:30",
) -> dict[str, Any]:
    return {
        "id": id,
        "flags": ["Seen"] if flags is None else flags,
        "subject": subject,
        "sender": sender,
        "date": date,
    }


class FakeBackend:
    """Scripted ``MailBackend``: records every call and replays queued replies.

    A queued ``BaseException`` instance is raised instead of returned. When the
    queue is empty, ``default`` is returned (an empty listing unless set).
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.replies: deque[bytes | BaseException] = deque()
        self.default: bytes | BaseException = listing_payload()

    def queue(self, *replies: bytes | BaseException) -> FakeBackend:
        self.replies.extend(replies)
        return self

    def queue_listing(self, *entries: dict[str, Any] | int) -> FakeBackend:
        """Queue one listing reply; bare ints become envelopes with that id."""
        return self.queue(
            listing_payload(
                *(envelope(e, f"Subject {e}") if isinstance(e, int) else e for e in entries)
            )
        )

    def queue_message(self, body: str) -> FakeBackend:
        return self.queue(message_payload(body))

    def fail_with(self, message: str = "himalaya not found") -> FakeBackend:
        return self.queue(BackendUnavailable(message))

    def run(self, args: Sequence[str]) -> bytes:
        self.calls.append(list(args))
        reply = self.replies.popleft() if self.replies else self.default
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        return UserConfig(**kwargs)

    return _make


@pytest.fixture
def make_envelope():
    """Factory fixture for raw listing entries as the backend emits them."""
    return envelope
