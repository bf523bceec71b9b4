"""Mail backend adapter — himalaya subprocess runner, command builders, decoders."""

from __future__ import annotations

import json
import logging
import os
import shlex
import subprocess
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from himalaya_tui.errors import BackendUnavailable, DecodeFailure
from himalaya_tui.models import DEFAULT_BACKEND_TIMEOUT, Flag, FlagKind, MessageSummary

logger = logging.getLogger(__name__)

# IMAP search keywords; any other leading term is treated as a subject search
SEARCH_KEYWORDS = frozenset(
    {
        "all",
        "answered",
        "before",
        "body",
        "deleted",
        "from",
        "header",
        "new",
        "not",
        "or",
        "recent",
        "seen",
        "subject",
        "text",
        "to",
    }
)

# "-s 0" asks for every envelope in a single page
_ALL_PAGES = ("-s", "0")
_STDERR_LIMIT = 200


@runtime_checkable
class MailBackend(Protocol):
    """Anything that can run a backend query and return its raw output."""

    def run(self, args: Sequence[str]) -> bytes: ...


# ============================================================================
# Command construction
# ============================================================================


def build_listing_args() -> list[str]:
    """Arguments for a full, unfiltered listing."""
    return ["list", *_ALL_PAGES]


def build_search_args(terms: Sequence[str]) -> list[str]:
    """Arguments for a listing restricted to ``terms``.

    A bare word search (first term not an IMAP keyword) becomes a subject search.
    No terms means an unfiltered listing.
    """
    if not terms:
        return build_listing_args()
    query = list(terms)
    if query[0].lower() not in SEARCH_KEYWORDS:
        query.insert(0, "subject")
    return ["search", *query, *_ALL_PAGES]


def build_read_args(args: Sequence[str]) -> list[str]:
    """Arguments for fetching one message body."""
    return ["read", *args]


# ============================================================================
# Subprocess runner
# ============================================================================


def _truncate(text: str, limit: int = _STDERR_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class HimalayaBackend:
    """Runs ``himalaya --output json ...`` synchronously and returns stdout.

    Raises ``BackendUnavailable`` when the binary is missing, times out, or
    exits non-zero.
    """

    __slots__ = ("_command", "_account", "_mailbox", "_timeout")

    def __init__(
        self,
        command: str = "himalaya",
        *,
        account: str = "",
        mailbox: str = "",
        timeout: int = DEFAULT_BACKEND_TIMEOUT,
    ) -> None:
        self._command = command
        self._account = account
        self._mailbox = mailbox
        self._timeout = timeout

    @property
    def command(self) -> str:
        return self._command

    def build_argv(self, args: Sequence[str]) -> list[str]:
        """Full argv for ``args``, including output format and global options."""
        try:
            base = shlex.split(self._command)
        except ValueError as e:
            raise BackendUnavailable(f"Invalid himalaya command {self._command!r}: {e}") from e
        if not base:
            raise BackendUnavailable("himalaya command is empty")
        argv = [*base, "--output", "json"]
        if self._account:
            argv.extend(["--account", self._account])
        if self._mailbox:
            argv.extend(["--mailbox", self._mailbox])
        argv.extend(args)
        return argv

    @staticmethod
    def _env() -> dict[str, str]:
        env = os.environ.copy()
        env["NO_COLOR"] = "1"
        env["CLICOLOR"] = "0"
        return env

    def run(self, args: Sequence[str]) -> bytes:
        argv = self.build_argv(args)
        logger.debug("backend run: %s", shlex.join(argv))
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                check=False,
                timeout=self._timeout,
                env=self._env(),
            )
        except subprocess.TimeoutExpired as e:
            raise BackendUnavailable(f"{argv[0]} timed out after {self._timeout}s") from e
        except OSError as e:
            raise BackendUnavailable(f"Could not start {argv[0]}: {e}") from e

        logger.debug("backend rc=%d stdout_len=%d", proc.returncode, len(proc.stdout or b""))
        if proc.returncode != 0:
            err = (proc.stderr or b"").decode("utf-8", errors="replace").strip()
            raise BackendUnavailable(
                f"Exit {proc.returncode}: {_truncate(err) or 'no error output'}",
                returncode=proc.returncode,
            )
        return proc.stdout or b""


# ============================================================================
# Decoding
# ============================================================================

_FLAG_KINDS = {kind.value: kind for kind in FlagKind if kind is not FlagKind.CUSTOM}


def _load_response(raw: bytes) -> Any:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise DecodeFailure(f"Backend output is not JSON: {e}") from e
    if not isinstance(data, dict) or "response" not in data:
        raise DecodeFailure("Backend output has no 'response' field")
    return data["response"]


def _decode_flag(value: Any) -> Flag:
    if isinstance(value, str):
        kind = _FLAG_KINDS.get(value)
        return Flag(kind) if kind is not None else Flag.custom(value)
    if isinstance(value, dict) and len(value) == 1:
        label = value.get(FlagKind.CUSTOM.value)
        if isinstance(label, str):
            return Flag.custom(label)
    raise DecodeFailure(f"Unrecognized flag {value!r}")


def _text_field(entry: dict[str, Any], key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeFailure(f"Field {key!r} is not text: {value!r}")
    return value


def _decode_summary(entry: Any) -> MessageSummary:
    if not isinstance(entry, dict):
        raise DecodeFailure(f"Listing entry is not an object: {entry!r}")
    msg_id = entry.get("id")
    if isinstance(msg_id, bool) or not isinstance(msg_id, int):
        raise DecodeFailure(f"Listing entry has no integer id: {entry!r}")
    flags = entry.get("flags", [])
    if not isinstance(flags, list):
        raise DecodeFailure(f"Flags of message {msg_id} are not a list")
    return MessageSummary(
        id=msg_id,
        flags=tuple(_decode_flag(flag) for flag in flags),
        subject=_text_field(entry, "subject"),
        sender=_text_field(entry, "sender"),
        date=_text_field(entry, "date"),
    )


def decode_listing(raw: bytes) -> list[MessageSummary]:
    """Decode a listing response into message summaries, in backend order."""
    response = _load_response(raw)
    if not isinstance(response, list):
        raise DecodeFailure("Listing response is not a list")
    return [_decode_summary(entry) for entry in response]


def decode_message(raw: bytes) -> str:
    """Decode a single-message response into its body text."""
    response = _load_response(raw)
    if not isinstance(response, str):
        raise DecodeFailure("Message response is not text")
    return response


__all__ = [
    "SEARCH_KEYWORDS",
    "HimalayaBackend",
    "MailBackend",
    "build_listing_args",
    "build_read_args",
    "build_search_args",
    "decode_listing",
    "decode_message",
]
