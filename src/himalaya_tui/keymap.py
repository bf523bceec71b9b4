"""Semantic events, the mode machine, and per-mode keybind tables."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from himalaya_tui.models import Mode

# ============================================================================
# Events
# ============================================================================


class Action(Enum):
    """Parameterless semantic events."""

    EXIT = "exit"
    SELECT_NEXT = "select_next"
    SELECT_PREVIOUS = "select_previous"
    ENTER_REVIEW = "enter_review"
    CANCEL_FILTER = "cancel_filter"
    ENTRY_QUIT = "entry_quit"
    ENTRY_SUBMIT = "entry_submit"
    BACKSPACE = "backspace"
    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"
    TOGGLE_LINKS = "toggle_links"
    TOGGLE_STATS = "toggle_stats"


@dataclass(frozen=True, slots=True)
class SwitchMode:
    """Request to enter ``mode``, remembering the current one."""

    mode: Mode


@dataclass(frozen=True, slots=True)
class RawChar:
    """A printable character typed while in Entry mode."""

    char: str


Event = Action | SwitchMode | RawChar

# Modifiers that turn a character key into a chord rather than text input
_CHORD_MODIFIERS = frozenset({"ctrl", "alt", "meta", "super", "hyper"})
NO_MODIFIERS: frozenset[str] = frozenset()


# ============================================================================
# Mode machine
# ============================================================================


class ModeMachine:
    """Current mode plus the one it was entered from.

    ``switch_back`` swaps the two, so repeated calls toggle rather than walk
    a history.
    """

    __slots__ = ("_current", "_previous")

    def __init__(self, initial: Mode = Mode.BROWSE) -> None:
        self._current = initial
        self._previous = initial

    @property
    def current(self) -> Mode:
        return self._current

    @property
    def previous(self) -> Mode:
        return self._previous

    def switch_to(self, mode: Mode) -> None:
        self._previous = self._current
        self._current = mode

    def switch_back(self) -> None:
        self._current, self._previous = self._previous, self._current

    def __repr__(self) -> str:
        return f"ModeMachine(current={self._current.name}, previous={self._previous.name})"


# ============================================================================
# Keybinds
# ============================================================================


@dataclass(frozen=True, slots=True)
class Keybind:
    """Immutable (key, modifiers) -> event mapping."""

    key: str
    modifiers: frozenset[str]
    event: Event

    def matches(self, key: str, modifiers: frozenset[str]) -> bool:
        return self.key == key and self.modifiers == modifiers


def bind(chord: str, event: Event) -> Keybind:
    """Build a keybind from a ``"ctrl+d"`` style chord."""
    key, modifiers = parse_chord(chord)
    return Keybind(key, modifiers, event)


def parse_chord(chord: str) -> tuple[str, frozenset[str]]:
    """Split ``"ctrl+d"`` into ``("d", {"ctrl"})``.

    A bare ``"+"`` is the plus key, not a separator.
    """
    if chord == "+" or "+" not in chord:
        return chord, NO_MODIFIERS
    *mods, key = chord.split("+")
    if not key:
        # "ctrl++" style chords: the key itself is "+"
        mods = [m for m in mods if m]
        key = "+"
    return key, frozenset(m.lower() for m in mods)


def normalize_key(key: str, character: str | None = None) -> tuple[str, frozenset[str]]:
    """Normalize a terminal key event into a (key, modifiers) pair.

    Printable characters without a chord modifier are keyed by the character
    itself (``":"`` rather than Textual's ``"colon"``), with shift folded into
    the character.
    """
    name, modifiers = parse_chord(key)
    if character and character.isprintable() and not (modifiers & _CHORD_MODIFIERS):
        return character, modifiers - {"shift"}
    return name, modifiers


def _check_disjoint(mode: Mode, keybinds: Iterable[Keybind]) -> tuple[Keybind, ...]:
    seen: set[tuple[str, frozenset[str]]] = set()
    result = []
    for keybind in keybinds:
        predicate = (keybind.key, keybind.modifiers)
        if predicate in seen:
            raise ValueError(
                f"Duplicate keybind {keybind.key!r} {sorted(keybind.modifiers)} in {mode.name}"
            )
        seen.add(predicate)
        result.append(keybind)
    return tuple(result)


DEFAULT_KEYBINDS: Mapping[Mode, tuple[Keybind, ...]] = MappingProxyType(
    {
        Mode.BROWSE: (
            bind("j", Action.SELECT_NEXT),
            bind("k", Action.SELECT_PREVIOUS),
            bind("escape", Action.EXIT),
            bind(":", SwitchMode(Mode.ENTRY)),
            bind("q", Action.CANCEL_FILTER),
            bind("enter", Action.ENTER_REVIEW),
        ),
        Mode.ENTRY: (
            bind("ctrl+d", Action.ENTRY_QUIT),
            bind("escape", Action.ENTRY_QUIT),
            bind("enter", Action.ENTRY_SUBMIT),
            bind("backspace", Action.BACKSPACE),
        ),
        Mode.REVIEW: (
            bind("q", Action.ENTRY_QUIT),
            bind("j", Action.SCROLL_DOWN),
            bind("k", Action.SCROLL_UP),
            bind("f", Action.TOGGLE_LINKS),
            bind("s", Action.TOGGLE_STATS),
        ),
    }
)


class Keymap:
    """Static per-mode keybind tables.

    Each table is a set of pairwise-disjoint (key, modifiers) predicates;
    construction fails on duplicates.
    """

    __slots__ = ("_tables",)

    def __init__(self, tables: Mapping[Mode, Iterable[Keybind]] | None = None) -> None:
        source = DEFAULT_KEYBINDS if tables is None else tables
        self._tables: Mapping[Mode, tuple[Keybind, ...]] = MappingProxyType(
            {mode: _check_disjoint(mode, source.get(mode, ())) for mode in Mode}
        )

    def keybinds(self, mode: Mode) -> tuple[Keybind, ...]:
        return self._tables[mode]

    def resolve(
        self,
        mode: Mode,
        key: str,
        modifiers: frozenset[str] = NO_MODIFIERS,
        character: str | None = None,
    ) -> list[Event]:
        """Translate one key press into zero or more events for ``mode``.

        In Entry mode a printable character additionally yields ``RawChar``.
        """
        events: list[Event] = [
            keybind.event for keybind in self._tables[mode] if keybind.matches(key, modifiers)
        ]
        if mode is Mode.ENTRY and not (modifiers & _CHORD_MODIFIERS):
            char = character if character is not None else key
            if len(char) == 1 and char.isprintable():
                events.append(RawChar(char))
        return events

    def resolve_key(self, mode: Mode, key: str, character: str | None = None) -> list[Event]:
        """Resolve a raw terminal key name (e.g. Textual's ``event.key``)."""
        name, modifiers = normalize_key(key, character)
        return self.resolve(mode, name, modifiers, character)


__all__ = [
    "DEFAULT_KEYBINDS",
    "NO_MODIFIERS",
    "Action",
    "Event",
    "Keybind",
    "Keymap",
    "ModeMachine",
    "RawChar",
    "SwitchMode",
    "bind",
    "normalize_key",
    "parse_chord",
]
