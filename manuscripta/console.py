"""Console UI for terminal output using Rich."""

from pathlib import Path

from rich.console import Console
from rich.table import Table

from manuscripta.models.paper import GroundedSource
from manuscripta.models.project import Project
from manuscripta.services.citation_service import format_bibliography
from manuscripta.utils.text import html_to_text, word_count


class ConsoleUI:
    """Rich-based console UI for project display and notifications."""

    def __init__(self, console: Console | None = None):
        """Initialize console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def info(self, message: str) -> None:
        """Print an info message."""
        self._console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self._console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self._console.print(f"[red]Error:[/red] {message}")

    def display_projects(self, projects: list[Project]) -> None:
        """Display projects in a formatted table."""
        if not projects:
            self._console.print("No projects found.")
            return

        table = Table(title="Projects")
        table.add_column("ID")
        table.add_column("Title", overflow="fold")
        table.add_column("Style")
        table.add_column("Methodology")
        table.add_column("Status")
        table.add_column("Refs", justify="right")
        table.add_column("Updated")

        for project in projects:
            table.add_row(
                project.id,
                project.title,
                project.citation_style.value,
                project.methodology.value,
                project.status,
                str(len(project.references)),
                project.updated_at,
            )

        self._console.print(table)

    def display_project(self, project: Project) -> None:
        """Show one project's metadata and per-section word counts."""
        self._console.print(f"[bold]{project.title}[/bold]")
        self._console.print(
            f"{project.citation_style.value} · {project.methodology.value} · "
            f"{project.status} · updated {project.updated_at}"
        )
        if project.theme:
            self._console.print(f"Theme: {project.theme}")

        table = Table(title="Sections")
        table.add_column("Section")
        table.add_column("Words", justify="right")
        for name, content in project.sections.items():
            table.add_row(name, str(word_count(html_to_text(content))))
        self._console.print(table)

        if project.questions:
            self._console.print(f"Survey questions: {len(project.questions)}")

    def display_references(self, project: Project) -> None:
        """Print the formatted bibliography."""
        if not project.references:
            self._console.print("No references yet.")
            return
        entries = format_bibliography(project.references, project.citation_style)
        for number, entry in enumerate(entries, 1):
            self._console.print(f"{number}. {entry}", highlight=False, markup=False)

    def display_sources(self, sources: list[GroundedSource]) -> None:
        """Display search candidates."""
        if not sources:
            self._console.print("No sources found.")
            return

        table = Table(title="Sources")
        table.add_column("#", justify="right")
        table.add_column("Title", overflow="fold")
        table.add_column("Authors", overflow="fold")
        table.add_column("Year")
        table.add_column("Link", overflow="fold")
        for number, source in enumerate(sources, 1):
            table.add_row(str(number), source.title, source.authors, source.year, source.uri)
        self._console.print(table)

    def exported(self, title: str, filepath: Path) -> None:
        """Print export summary."""
        self._console.print(f"[green]Exported[/green] {title} → {filepath}")
