"""Filter stack and the small command grammar decoded from filter strings."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

# ============================================================================
# Command grammar
# ============================================================================
#
# A filter string is a verb followed by whitespace-separated arguments:
#
#   search <terms...>   listing restricted to the terms        (backend call)
#   read <id>           fetch one message body                 (backend call)
#   follow <n>          open link n of the reviewed message    (local only)
#   anything else       ignored
#
# The verb is case-insensitive; arguments are kept verbatim.


@dataclass(frozen=True, slots=True)
class SearchCommand:
    terms: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ReadCommand:
    args: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FollowCommand:
    args: tuple[str, ...]

    @property
    def reference(self) -> str:
        """The raw link reference (first argument), or ``""``."""
        return self.args[0] if self.args else ""


@dataclass(frozen=True, slots=True)
class UnknownCommand:
    verb: str
    args: tuple[str, ...]


Command = SearchCommand | ReadCommand | FollowCommand | UnknownCommand

_VERBS: dict[str, type[SearchCommand] | type[ReadCommand] | type[FollowCommand]] = {
    "SEARCH": SearchCommand,
    "READ": ReadCommand,
    "FOLLOW": FollowCommand,
}


def tokenize_filter(raw: str) -> list[str]:
    """Split a filter string on runs of whitespace."""
    return raw.split()


def parse_command(raw: str) -> Command | None:
    """Decode a filter string into a command; ``None`` for a blank filter."""
    tokens = tokenize_filter(raw)
    if not tokens:
        return None
    verb, args = tokens[0], tuple(tokens[1:])
    command_type = _VERBS.get(verb.upper())
    if command_type is None:
        return UnknownCommand(verb, args)
    return command_type(args)


def read_filter(message_id: int) -> str:
    """Filter string that requests the body of ``message_id``."""
    return f"read {message_id}"


# ============================================================================
# Filter stack
# ============================================================================


class FilterStack:
    """LIFO stack of raw filter strings; the top is the active query context."""

    __slots__ = ("_filters",)

    def __init__(self, filters: list[str] | None = None) -> None:
        self._filters: list[str] = list(filters or [])

    def push(self, raw: str) -> None:
        self._filters.append(raw)

    def pop(self) -> str | None:
        """Discard the top filter and return it; ``None`` when empty."""
        if not self._filters:
            return None
        return self._filters.pop()

    @property
    def top(self) -> str | None:
        return self._filters[-1] if self._filters else None

    def active_command(self) -> Command | None:
        """Decoded command for the top filter, or ``None`` for no filter."""
        top = self.top
        return parse_command(top) if top is not None else None

    def snapshot(self) -> tuple[str, ...]:
        return tuple(self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self) -> Iterator[str]:
        return iter(self._filters)

    def __bool__(self) -> bool:
        return bool(self._filters)

    def __repr__(self) -> str:
        return f"FilterStack({self._filters!r})"


__all__ = [
    "Command",
    "FilterStack",
    "FollowCommand",
    "ReadCommand",
    "SearchCommand",
    "UnknownCommand",
    "parse_command",
    "read_filter",
    "tokenize_filter",
]
