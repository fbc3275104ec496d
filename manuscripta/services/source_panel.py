"""Source search panel: grounded search results and the Cite action."""

import html
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, Optional

from manuscripta.models.paper import GroundedSource, Paper
from manuscripta.models.project import REFERENCES_SECTION
from manuscripta.models.sections import SectionStore
from manuscripta.services.citation_service import format_citation, format_in_text_citation
from manuscripta.services.editor_service import EditorSurface

logger = logging.getLogger(__name__)

SCHOLARLY_JOURNAL = "Scholarly Source"

SearchFn = Callable[[str], Awaitable[list[GroundedSource]]]


@dataclass
class CiteResult:
    """What a Cite action produced."""

    paper: Paper
    in_text: str
    bibliography: str
    index: int
    appended: bool


def new_paper_id() -> str:
    """Random 9-character reference id."""
    return uuid.uuid4().hex[:9]


def parse_year(value: str, default: Optional[int] = None) -> int:
    """Parse the leading integer of *value*; fall back to the current year."""
    digits = ""
    for ch in (value or "").strip():
        if not ch.isdigit():
            break
        digits += ch
    if digits and int(digits):
        return int(digits)
    return default if default is not None else date.today().year


def paper_from_source(source: GroundedSource) -> Paper:
    """Turn a search candidate into a citable :class:`Paper`."""
    return Paper(
        id=new_paper_id(),
        title=source.title,
        authors=[source.authors],
        year=parse_year(source.year),
        journal=SCHOLARLY_JOURNAL,
        abstract=source.summary,
    )


class SourcePanel:
    """Search box, results list and Cite action for one open project.

    ``query_text`` is what the user typed in the search box; nothing in
    this class writes to it except :meth:`set_query`.
    """

    def __init__(self, search: SearchFn, store: SectionStore, editor: EditorSurface):
        self._search = search
        self.store = store
        self.editor = editor
        self.query_text = ""
        self.suggested_query = ""
        self.results: list[GroundedSource] = []
        self.searching = False
        self._seq = 0
        self._applied_seq = 0

    @property
    def project(self):
        return self.store.project

    def set_query(self, text: str) -> None:
        self.query_text = text

    def accept_suggestion(self) -> str:
        """Copy the offered query into the search box (user action)."""
        if self.suggested_query:
            self.query_text = self.suggested_query
            self.suggested_query = ""
        return self.query_text

    async def search(self, query: Optional[str] = None) -> list[GroundedSource]:
        """Run a search; a blank query leaves everything untouched.

        Overlapping searches may complete in any order. A completion older
        than the last one applied is dropped; failures keep the previous
        results.
        """
        query = self.query_text if query is None else query
        if not query.strip():
            return self.results

        self._seq += 1
        seq = self._seq
        self.searching = True
        try:
            found = await self._search(query)
        except Exception:
            logger.exception("Source search failed for %r", query)
            return self.results
        finally:
            if seq == self._seq:
                self.searching = False

        if seq < self._applied_seq:
            logger.debug("Dropping out-of-order search result (seq %d < %d)", seq, self._applied_seq)
            return self.results
        self._applied_seq = seq
        self.results = list(found)
        return self.results

    def cite(self, source: GroundedSource) -> CiteResult:
        """Cite *source*: reference list, in-text marker, bibliography entry.

        Every call mints a fresh paper id, so citing the same candidate
        twice produces two references.
        """
        self.editor.require_bound()
        project = self.project
        paper = paper_from_source(source)
        index = len(project.references) + 1
        in_text = format_in_text_citation(paper, project.citation_style, index)
        bibliography = format_citation(paper, project.citation_style)

        appended = project.add_reference(paper)

        self.editor.insert_html(html.escape(in_text, quote=False))
        self.store.append_paragraph(REFERENCES_SECTION, html.escape(bibliography, quote=False))
        if self.editor.bound_section == REFERENCES_SECTION:
            self.editor.refresh_from_store()

        logger.info("Cited %r as %s in project %s", paper.title, in_text, project.id)
        return CiteResult(
            paper=paper,
            in_text=in_text,
            bibliography=bibliography,
            index=index,
            appended=appended,
        )
