"""Command-line interface handlers."""

import argparse
import asyncio
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from manuscripta.config import Settings
from manuscripta.console import ConsoleUI
from manuscripta.database.repository import ProjectRepository
from manuscripta.exceptions import ManuscriptaError
from manuscripta.services import openalex_service
from manuscripta.services.export_service import MarkdownExporter
from manuscripta.services.llm_service import GeminiService


class ManuscriptaCLI:
    """CLI application for Manuscripta."""

    def __init__(self, settings: Optional[Settings] = None, ui: Optional[ConsoleUI] = None):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loaded from .metadata if not provided)
            ui: Console UI (a default one if not provided)
        """
        self.settings = settings or Settings.load()
        self.ui = ui or ConsoleUI()
        self.repo = ProjectRepository(self.settings.db_path)

    def cmd_list(self, limit: int = 50) -> None:
        """List projects, most recent first."""
        self.ui.display_projects(self.repo.list_all(limit))

    def cmd_show(self, project_id: str) -> None:
        self.ui.display_project(self.repo.require(project_id))

    def cmd_references(self, project_id: str) -> None:
        """Print a project's bibliography in its citation style."""
        self.ui.display_references(self.repo.require(project_id))

    def cmd_export(self, project_id: str) -> None:
        """Export a project to a markdown file."""
        project = self.repo.require(project_id)
        exporter = MarkdownExporter(self.settings.export_dir)
        filepath = exporter.export(project)
        self.ui.exported(project.title, filepath)

    def cmd_search(self, query: str) -> None:
        """Search academic sources (Gemini grounding, or OpenAlex without a profile)."""
        profile = self.settings.active_llm
        if profile is not None:
            search = GeminiService(profile).search_sources
            backend = profile.model
        else:
            search = openalex_service.search_sources
            backend = "OpenAlex"

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            console=self.ui.console,
            transient=True,
        ) as progress:
            progress.add_task(f"Searching {backend} for {query!r}...", total=None)
            sources = asyncio.run(search(query))

        self.ui.display_sources(sources)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="manuscripta",
        description="Manuscript authoring with grounded source search and citations",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # list command
    list_parser = subparsers.add_parser("list", help="List projects")
    list_parser.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum projects to display (default: 50)",
    )

    # show command
    show_parser = subparsers.add_parser("show", help="Show a project's sections")
    show_parser.add_argument("project_id", help="Project ID")

    # references command
    refs_parser = subparsers.add_parser("references", help="Print a project's bibliography")
    refs_parser.add_argument("project_id", help="Project ID")

    # export command
    export_parser = subparsers.add_parser("export", help="Export a project to markdown")
    export_parser.add_argument("project_id", help="Project ID")

    # search command
    search_parser = subparsers.add_parser("search", help="Search academic sources")
    search_parser.add_argument("query", nargs="+", help="Search query")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI.

    Returns:
        Process exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    cli = ManuscriptaCLI()

    try:
        if args.command == "list":
            cli.cmd_list(args.limit)
        elif args.command == "show":
            cli.cmd_show(args.project_id)
        elif args.command == "references":
            cli.cmd_references(args.project_id)
        elif args.command == "export":
            cli.cmd_export(args.project_id)
        elif args.command == "search":
            cli.cmd_search(" ".join(args.query))
    except ManuscriptaError as e:
        cli.ui.error(str(e.message))
        return 1
    return 0


def run_cli() -> None:
    raise SystemExit(main())
