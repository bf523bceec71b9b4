"""Review pane widget for rendering a message body with numbered links."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from himalaya_tui.links import LinkScan
from himalaya_tui.themes import THEME_COLORS


def build_review_text(
    scan: LinkScan,
    *,
    offset: int = 0,
    show_links: bool = False,
    show_stats: bool = False,
) -> Text:
    """Build the visible review text.

    Link spans are annotated with `` [n]`` in the link color when
    ``show_links`` is on. ``show_stats`` appends a link count line. The first
    ``offset`` lines are scrolled out of view.
    """
    link_style = THEME_COLORS["link"]
    lines: list[Text] = []
    for spans in scan.lines:
        line = Text()
        for span in spans:
            if span.is_link and show_links:
                line.append(f"{span.text} [{span.link_index}]", style=link_style)
            else:
                line.append(span.text)
        lines.append(line)
    if show_stats:
        lines.append(Text(f"Total Links: {len(scan.links)}", style=f"bold {THEME_COLORS['muted']}"))
    return Text("\n").join(lines[max(0, offset) :])


class ReviewPane(Static):
    """Scrollable view of the message under review."""

    def show_review(
        self,
        scan: LinkScan,
        *,
        offset: int,
        show_links: bool,
        show_stats: bool,
    ) -> None:
        self.update(
            build_review_text(
                scan,
                offset=offset,
                show_links=show_links,
                show_stats=show_stats,
            )
        )


__all__ = [
    "ReviewPane",
    "build_review_text",
]
