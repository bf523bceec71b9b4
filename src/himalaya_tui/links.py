"""Hyperlink discovery in message bodies.

Each line is segmented into alternating plain/link spans that concatenate back
to the original line; links are numbered globally (1-based) across lines.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# Scheme-delimited (``https://...``), ``mailto:``, bare ``www.`` forms and
# bare ``local@domain.tld`` addresses. URL bodies stop at whitespace, angle
# brackets and double quotes.
_URL_PATTERN = re.compile(
    r"""
    (?:
        (?:
            \b[A-Za-z][A-Za-z0-9+.\-]*://          # scheme://
          | \bmailto:                              # mailto:
          | (?<![\w@./-])www\.(?=[A-Za-z0-9])      # bare www. domain
        )
        [^\s<>"]+
      | (?<![\w.%+\-])                             # bare email address
        [A-Za-z0-9][A-Za-z0-9._%+\-]*
        @[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?
        (?:\.[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?)+
    )
    """,
    re.VERBOSE,
)

# Characters trimmed from the end of a candidate: sentence punctuation.
_TRAILING_PUNCTUATION = ".,;:!?'*"
_CLOSERS = {")": "(", "]": "[", "}": "{"}


@dataclass(frozen=True, slots=True)
class Span:
    """A piece of a line; ``link_index`` is the 1-based registry number for links."""

    text: str
    link_index: int | None = None

    @property
    def is_link(self) -> bool:
        return self.link_index is not None


@dataclass(slots=True)
class LinkScan:
    """Segmented lines plus the ordered link registry."""

    lines: list[list[Span]] = field(default_factory=list)
    links: list[str] = field(default_factory=list)


def _trim_candidate(candidate: str) -> str:
    """Strip trailing punctuation and unbalanced closing brackets."""
    end = len(candidate)
    while end > 0:
        char = candidate[end - 1]
        if char in _TRAILING_PUNCTUATION:
            end -= 1
            continue
        opener = _CLOSERS.get(char)
        if opener is not None:
            body = candidate[:end]
            if body.count(char) > body.count(opener):
                end -= 1
                continue
        break
    return candidate[:end]


def _has_target(link: str) -> bool:
    """True when something follows the scheme/prefix of a trimmed link."""
    if "://" in link:
        return bool(link.split("://", 1)[1])
    lowered = link.lower()
    if lowered.startswith("mailto:"):
        return len(link) > len("mailto:")
    if lowered.startswith("www."):
        return "." in link[len("www.") :]
    # bare address; the pattern already required a dotted domain
    return "@" in link


def find_links(line: str) -> list[tuple[int, int]]:
    """Return (start, end) offsets of links in ``line``, left to right."""
    found: list[tuple[int, int]] = []
    for match in _URL_PATTERN.finditer(line):
        link = _trim_candidate(match.group(0))
        if not link or not _has_target(link):
            continue
        found.append((match.start(), match.start() + len(link)))
    return found


def scan_line(line: str, first_index: int = 1) -> tuple[list[Span], list[str]]:
    """Segment one line, numbering links from ``first_index``."""
    spans: list[Span] = []
    links: list[str] = []
    last_end = 0
    for start, end in find_links(line):
        if start > last_end:
            spans.append(Span(line[last_end:start]))
        link = line[start:end]
        links.append(link)
        spans.append(Span(link, first_index + len(links) - 1))
        last_end = end
    if last_end < len(line) or not spans:
        spans.append(Span(line[last_end:]))
    return spans, links


def scan_text(text: str) -> LinkScan:
    """Segment every line of ``text`` and collect the global link registry."""
    scan = LinkScan()
    for line in text.splitlines():
        spans, links = scan_line(line, len(scan.links) + 1)
        scan.lines.append(spans)
        scan.links.extend(links)
    return scan


def spans_to_text(spans: list[Span]) -> str:
    """Concatenate spans back into their source line."""
    return "".join(span.text for span in spans)


__all__ = [
    "LinkScan",
    "Span",
    "find_links",
    "scan_line",
    "scan_text",
    "spans_to_text",
]
