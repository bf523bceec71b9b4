"""Notification copy: turns engine errors into "what failed, why, what next" text."""

from __future__ import annotations

from himalaya_tui.errors import (
    BackendUnavailable,
    DecodeFailure,
    InvalidReference,
    MailTuiError,
    OpenFailure,
)


_SENTENCE_END = (".", "!", "?")


def _ensure_sentence(text: str) -> str:
    text = text.strip()
    if text and not text.endswith(_SENTENCE_END):
        text += "."
    return text


def _join_notice(headline: str, why: str | None, next_step: str) -> str:
    """Headline, optional ``Why:`` line, then the ``Next step:`` line."""
    parts = [headline]
    if why:
        parts.append(f"Why: {_ensure_sentence(why)}")
    parts.append(build_next_step_hint(next_step))
    return "\n".join(parts)


def build_next_step_hint(next_step: str) -> str:
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(action: str, *, next_step: str, why: str | None = None) -> str:
    """``Could not <action>.`` followed by the reason and what to try next."""
    return _join_notice(f"Could not {action.strip()}.", why, next_step)


def build_actionable_warning(message: str, *, next_step: str, why: str | None = None) -> str:
    """A warning sentence followed by the reason and what to try next."""
    return _join_notice(_ensure_sentence(message), why, next_step)


def build_error_notification(error: MailTuiError) -> tuple[str, str]:
    """Map an engine error to ``(message, severity)`` for ``App.notify``."""
    if isinstance(error, BackendUnavailable):
        return (
            build_actionable_error(
                "reach the mail backend",
                why=str(error),
                next_step="check that himalaya is installed and the account is configured",
            ),
            "error",
        )
    if isinstance(error, DecodeFailure):
        return (
            build_actionable_error(
                "read the backend response",
                why=str(error),
                next_step="run the same query with himalaya directly to inspect its output",
            ),
            "error",
        )
    if isinstance(error, InvalidReference):
        if error.available:
            hint = f"type follow followed by a number from 1 to {error.available}"
        else:
            hint = "press q to return to the message"
        return (
            build_actionable_warning(
                f"No link numbered {error.reference!r}",
                next_step=hint,
            ),
            "warning",
        )
    if isinstance(error, OpenFailure):
        return (
            build_actionable_error(
                f"open {error.url}",
                why=error.reason,
                next_step="set link_opener in the config file to a working command",
            ),
            "error",
        )
    return build_actionable_error("complete the action", why=str(error), next_step="try again"), "error"


__all__ = [
    "build_actionable_error",
    "build_actionable_warning",
    "build_error_notification",
    "build_next_step_hint",
]
