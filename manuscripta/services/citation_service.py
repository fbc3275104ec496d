"""Citation formatting for the four supported styles.

All functions are pure: the same paper and style always give the same
string.
"""

from manuscripta.models.paper import Paper
from manuscripta.models.project import CitationStyle


def _authors_string(paper: Paper) -> str:
    return ", ".join(paper.authors)


def first_author_surname(paper: Paper) -> str:
    """Extract the surname of the first author.

    ``"Zhang, L."`` → ``"Zhang"`` (text before the first comma);
    ``"Jane Doe"`` → ``"Doe"`` (last space-delimited token).
    An empty author list gives ``"Author"``.
    """
    if not paper.authors:
        return "Author"
    first_author = paper.authors[0] or "Unknown"
    if "," in first_author:
        return first_author.split(",")[0].strip()
    return first_author.split(" ")[-1] or "Author"


def format_citation(paper: Paper, style: CitationStyle) -> str:
    """Format a bibliography entry.

    The IEEE entry always carries the literal ``[1]`` label; the running
    number only appears in the in-text form.
    """
    authors = _authors_string(paper)
    if style == CitationStyle.APA:
        return f"{authors} ({paper.year}). {paper.title}. {paper.journal}. DOI: {paper.doi or ''}"
    if style == CitationStyle.MLA:
        return f'{authors}. "{paper.title}." {paper.journal}, vol. 1, no. 1, {paper.year}.'
    if style == CitationStyle.IEEE:
        return f'[1] {authors}, "{paper.title}," {paper.journal}, pp. 1-10, {paper.year}.'
    if style == CitationStyle.CHICAGO:
        return f'{authors}. "{paper.title}." {paper.journal} ({paper.year}).'
    return f"{authors}. {paper.title}. {paper.year}."


def format_in_text_citation(paper: Paper, style: CitationStyle, index: int = 1) -> str:
    """Format the inline marker for *paper*; *index* is used by IEEE only."""
    surname = first_author_surname(paper)
    if style == CitationStyle.APA:
        return f"({surname}, {paper.year})"
    if style == CitationStyle.MLA:
        return f"({surname})"
    if style == CitationStyle.IEEE:
        return f"[{index}]"
    if style == CitationStyle.CHICAGO:
        return f"({surname} {paper.year})"
    return f"({surname}, {paper.year})"


def format_bibliography(references: list[Paper], style: CitationStyle) -> list[str]:
    """Format every reference in citation order."""
    return [format_citation(paper, style) for paper in references]
