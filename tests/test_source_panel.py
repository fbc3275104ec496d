"""
Tests for the source search panel and the Cite action.
"""

import asyncio
from datetime import date

import pytest

from manuscripta.exceptions import ValidationError
from manuscripta.models.paper import GroundedSource
from manuscripta.models.project import CitationStyle
from manuscripta.models.sections import SectionStore
from manuscripta.services.editor_service import EditorSurface
from manuscripta.services.source_panel import (
    SCHOLARLY_JOURNAL,
    SourcePanel,
    paper_from_source,
    parse_year,
)


def _source(title="AI Tutors in the Classroom", authors="Zhang, L.", year="2023"):
    return GroundedSource(
        title=title,
        authors=authors,
        year=year,
        summary="A study of AI tutoring.",
        uri="https://example.org/ai",
    )


@pytest.fixture
def panel_factory(project):
    def _make(search):
        store = SectionStore(project)
        editor = EditorSurface(store)
        return SourcePanel(search, store, editor)
    return _make


class TestSearch:
    """Search calls, blank queries, failures and races."""

    def test_blank_query_is_noop(self, panel_factory):
        calls = []

        async def search(query):
            calls.append(query)
            return [_source()]

        panel = panel_factory(search)
        assert asyncio.run(panel.search("   ")) == []
        assert calls == []

    def test_search_uses_query_text(self, panel_factory):
        async def search(query):
            return [_source(title=query)]

        panel = panel_factory(search)
        panel.set_query("AI in education")
        results = asyncio.run(panel.search())
        assert [r.title for r in results] == ["AI in education"]
        assert panel.searching is False

    def test_failure_keeps_previous_results(self, panel_factory):
        outcomes = [[_source()], RuntimeError("quota")]

        async def search(query):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        panel = panel_factory(search)
        asyncio.run(panel.search("first"))
        results = asyncio.run(panel.search("second"))
        assert len(results) == 1
        assert panel.results[0].title == "AI Tutors in the Classroom"

    def test_out_of_order_completion_is_dropped(self, panel_factory):
        async def search(query):
            # The first query resolves last
            await asyncio.sleep(0.05 if query == "slow" else 0.0)
            return [_source(title=query)]

        panel = panel_factory(search)

        async def race():
            await asyncio.gather(panel.search("slow"), panel.search("fast"))

        asyncio.run(race())
        assert [r.title for r in panel.results] == ["fast"]

    def test_query_text_never_overwritten_by_search(self, panel_factory):
        async def search(query):
            return []

        panel = panel_factory(search)
        panel.set_query("typed by user")
        asyncio.run(panel.search("something else"))
        assert panel.query_text == "typed by user"

    def test_accept_suggestion(self, panel_factory):
        async def search(query):
            return []

        panel = panel_factory(search)
        panel.suggested_query = "remote work burnout"
        assert panel.accept_suggestion() == "remote work burnout"
        assert panel.query_text == "remote work burnout"
        assert panel.suggested_query == ""


class TestCite:
    """Reference list, in-text marker and bibliography entry."""

    def test_cite_scenario(self, panel_factory, project):
        async def search(query):
            return [_source()]

        panel = panel_factory(search)
        panel.store.set("Background", "<p>AB</p>")
        panel.editor.bind("Background")
        panel.editor.set_selection(4)

        results = asyncio.run(panel.search("AI in education"))
        assert len(results) == 1
        result = panel.cite(results[0])

        assert len(project.references) == 1
        assert result.in_text == "(Zhang, 2023)"
        assert panel.store.get("Background") == "<p>A(Zhang, 2023)B</p>"
        references_html = panel.store.get("References")
        assert references_html == f"<p>{result.bibliography}</p>"
        assert references_html.count("<p>") == 1

    def test_citing_twice_adds_two_references(self, panel_factory, project):
        project.citation_style = CitationStyle.IEEE

        async def search(query):
            return []

        panel = panel_factory(search)
        panel.editor.bind("Background")
        first = panel.cite(_source())
        second = panel.cite(_source())

        assert first.paper.id != second.paper.id
        assert [first.in_text, second.in_text] == ["[1]", "[2]"]
        assert first.bibliography.startswith("[1] ")
        assert second.bibliography.startswith("[1] ")
        assert len(project.references) == 2
        assert panel.store.get("References").count("<p>") == 2

    def test_cite_into_references_refreshes_surface(self, panel_factory):
        async def search(query):
            return []

        panel = panel_factory(search)
        panel.editor.bind("References")
        result = panel.cite(_source())
        assert result.bibliography in panel.editor.html
        assert panel.editor.html == panel.store.get("References")

    def test_cite_requires_open_section(self, panel_factory, project):
        async def search(query):
            return []

        panel = panel_factory(search)
        with pytest.raises(ValidationError):
            panel.cite(_source())
        assert project.references == []

    def test_bibliography_is_escaped(self, panel_factory):
        async def search(query):
            return []

        panel = panel_factory(search)
        panel.editor.bind("Background")
        panel.cite(_source(title="Fish & <Chips>"))
        assert "Fish &amp; &lt;Chips&gt;" in panel.store.get("References")


class TestPaperFromSource:

    def test_fields(self):
        paper = paper_from_source(_source())
        assert len(paper.id) == 9
        assert paper.authors == ["Zhang, L."]
        assert paper.year == 2023
        assert paper.journal == SCHOLARLY_JOURNAL
        assert paper.abstract == "A study of AI tutoring."
        assert paper.doi is None

    @pytest.mark.parametrize("value", ["", "n.d.", "unknown", "0"])
    def test_unparseable_year_is_current_year(self, value):
        assert parse_year(value) == date.today().year

    def test_year_with_suffix(self):
        assert parse_year("2021a") == 2021
