"""Live page/word statistics for the editor surface.

The client reports the rendered height of the editable surface and its
scroll offset; pages are estimated from fixed page dimensions. This is a
cheap estimate for the status bar, not a print layout.
"""

import math
from dataclasses import asdict, dataclass

from manuscripta.utils.text import html_to_text, word_count

PAGE_HEIGHT = 1056   # US Letter at 96 dpi
PAGE_GAP = 40
LOOKAHEAD = 500


@dataclass
class PageStats:
    """Snapshot shown in the editor status bar."""

    words: int
    characters: int
    total_pages: int
    current_page: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def total_pages(height: float, page_height: int = PAGE_HEIGHT) -> int:
    """Pages needed for *height* pixels of content (at least 1)."""
    if height <= 0:
        return 1
    return max(1, math.ceil(height / page_height))


def current_page(
    scroll: float,
    pages: int,
    page_height: int = PAGE_HEIGHT,
    page_gap: int = PAGE_GAP,
    lookahead: int = LOOKAHEAD,
) -> int:
    """Page under the viewport, clamped to ``[1, pages]``."""
    page = math.ceil((max(0.0, scroll) + lookahead) / (page_height + page_gap))
    return min(max(page, 1), max(pages, 1))


def page_stats(
    height: float,
    scroll: float,
    html: str,
    page_height: int = PAGE_HEIGHT,
    page_gap: int = PAGE_GAP,
    lookahead: int = LOOKAHEAD,
) -> PageStats:
    """Compute words, characters and page position for the surface."""
    text = html_to_text(html)
    pages = total_pages(height, page_height)
    return PageStats(
        words=word_count(text),
        characters=len(text),
        total_pages=pages,
        current_page=current_page(scroll, pages, page_height, page_gap, lookahead),
    )
