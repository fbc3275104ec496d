"""
Tests for the command-line interface.
"""

import pytest
from rich.console import Console

from manuscripta.cli import ManuscriptaCLI, create_parser, main
from manuscripta.console import ConsoleUI
from manuscripta.database.repository import ProjectRepository
from manuscripta.models.paper import GroundedSource, Paper
from manuscripta.models.project import CitationStyle
from manuscripta.services import openalex_service


@pytest.fixture
def ui():
    return ConsoleUI(Console(record=True, width=200))


@pytest.fixture
def cli(settings, ui):
    return ManuscriptaCLI(settings, ui)


class TestParser:

    def test_search_joins_words(self):
        args = create_parser().parse_args(["search", "remote", "work"])
        assert args.query == ["remote", "work"]

    def test_list_default_limit(self):
        assert create_parser().parse_args(["list"]).limit == 50


class TestCommands:

    def test_list_empty(self, cli, ui):
        cli.cmd_list()
        assert "No projects found." in ui.console.export_text()

    def test_show_and_list(self, cli, ui, project):
        project.sections["Abstract"] = "<p>three short words</p>"
        cli.repo.create(project)
        cli.cmd_list()
        cli.cmd_show(project.id)
        text = ui.console.export_text()
        assert project.id in text
        assert "Abstract" in text

    def test_references_ieee(self, cli, ui, project):
        project.citation_style = CitationStyle.IEEE
        project.add_reference(Paper(id="r1", title="Paper", authors=["Ann Lee"], year=2020, journal="J"))
        cli.repo.create(project)
        cli.cmd_references(project.id)
        assert '1. [1] Ann Lee, "Paper," J, pp. 1-10, 2020.' in ui.console.export_text()

    def test_export(self, cli, ui, project, settings):
        cli.repo.create(project)
        cli.cmd_export(project.id)
        assert len(list(settings.export_dir.glob("*.md"))) == 1
        assert "Exported" in ui.console.export_text()

    def test_search_falls_back_to_openalex(self, cli, ui, monkeypatch):
        async def fake_search(query):
            return [GroundedSource(title=f"About {query}", authors="Lee, A.", year="2022", summary="", uri="u")]

        monkeypatch.setattr(openalex_service, "search_sources", fake_search)
        cli.cmd_search("remote work")
        assert "About remote work" in ui.console.export_text()


class TestMain:

    def test_missing_project_exit_code(self, settings):
        assert main(["show", "missing"]) == 1

    def test_list_exit_code(self, settings):
        ProjectRepository(settings.db_path)
        assert main(["list"]) == 0
