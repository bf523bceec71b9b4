"""Error kinds raised by the backend adapter and the link-follow action."""

from __future__ import annotations


class MailTuiError(RuntimeError):
    """Base class for recoverable errors in the interaction engine."""


class BackendUnavailable(MailTuiError):
    """The backend process could not be started or exited abnormally."""

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class DecodeFailure(MailTuiError):
    """Backend output did not have the expected structured shape."""


class InvalidReference(MailTuiError):
    """A ``follow`` reference is non-numeric or outside the link registry."""

    def __init__(self, reference: str, available: int) -> None:
        super().__init__(f"No link {reference!r} (message has {available} links)")
        self.reference = reference
        self.available = available


class OpenFailure(MailTuiError):
    """The host environment could not open a link."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Could not open {url}: {reason}")
        self.url = url
        self.reason = reason


__all__ = [
    "BackendUnavailable",
    "DecodeFailure",
    "InvalidReference",
    "MailTuiError",
    "OpenFailure",
]
