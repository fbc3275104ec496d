"""Text utilities: HTML projection, word counts, slugs and date formatting."""

import html
import re
from datetime import date, datetime
from typing import Optional, Union

from bs4 import BeautifulSoup

# Block-level tags that end a line in the plain-text projection
_BLOCK_TAGS = ["p", "div", "br", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]


def short_date(when: Optional[Union[date, datetime]] = None) -> str:
    """Format a date in the short display style, e.g. ``Oct 9, 2026``.

    The day is not zero-padded.
    """
    when = when or datetime.now()
    return f"{when:%b} {when.day}, {when.year}"


def html_to_text(fragment: Optional[str]) -> str:
    """Project an HTML fragment onto plain text.

    Block elements become line breaks; the parser decodes entities once.
    """
    if not fragment:
        return ""
    soup = BeautifulSoup(fragment, "html.parser")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_after("\n")
    text = soup.get_text()
    return text.strip("\n")


def word_count(text: Optional[str]) -> int:
    """Count whitespace-delimited tokens (empty or blank text is 0)."""
    if not text:
        return 0
    return len(text.split())


def text_to_html(text: str) -> str:
    """Wrap plain-text paragraphs in ``<p>`` tags.

    Text that already contains markup is returned unchanged.
    """
    if not text or not text.strip():
        return ""
    if re.search(r"<(p|div|ul|ol|table|h[1-6])[\s>]", text, re.IGNORECASE):
        return text
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]
    return "".join(f"<p>{html.escape(p, quote=False)}</p>" for p in paragraphs)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```), if any."""
    text = text.strip()
    match = re.match(r"^```[a-zA-Z]*\s*(.*?)\s*```$", text, re.DOTALL)
    return match.group(1) if match else text


def slugify(text: str, max_length: int = 60) -> str:
    """Lowercase ASCII slug for filenames."""
    slug = re.sub(r"[^a-zA-Z0-9]+", "-", text).strip("-").lower()
    return slug[:max_length].rstrip("-") or "manuscript"
