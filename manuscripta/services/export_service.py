"""Markdown export service."""

from pathlib import Path

from manuscripta.models.project import REFERENCES_SECTION, Project
from manuscripta.services.citation_service import format_bibliography
from manuscripta.utils.text import html_to_text, slugify


class MarkdownExporter:
    """Service for exporting a manuscript project to Markdown format."""

    def __init__(self, export_dir: Path):
        """Initialize exporter.

        Args:
            export_dir: Directory to save exported markdown files
        """
        self.export_dir = export_dir
        self.export_dir.mkdir(parents=True, exist_ok=True)

    def render(self, project: Project) -> str:
        """Build the Markdown document for *project*."""
        lines = [f"# {project.title}", ""]
        lines.append(f"- Theme: {project.theme}")
        lines.append(f"- Citation style: {project.citation_style.value}")
        lines.append(f"- Methodology: {project.methodology.value}")
        lines.append(f"- Status: {project.status}")
        lines.append(f"- Updated: {project.updated_at}")
        if project.owner:
            lines.append(f"- Author: {project.owner}")
        lines.append("")

        for name, content in project.sections.items():
            # References are rebuilt from the reference list below
            if name == REFERENCES_SECTION and project.references:
                continue
            lines.append(f"## {name}")
            lines.append("")
            text = html_to_text(content).strip()
            if text:
                lines.extend(line.strip() for line in text.splitlines())
            lines.append("")

        if project.questions:
            lines.append("## Survey Questions")
            lines.append("")
            for number, question in enumerate(project.questions, 1):
                lines.append(f"{number}. {question.label} ({question.type})")
                for option in question.options or []:
                    lines.append(f"   - {option}")
            lines.append("")

        if project.references:
            lines.append(f"## {REFERENCES_SECTION}")
            lines.append("")
            entries = format_bibliography(project.references, project.citation_style)
            for number, entry in enumerate(entries, 1):
                lines.append(f"{number}. {entry}")
            lines.append("")

        return "\n".join(lines)

    def export(self, project: Project) -> Path:
        """Export *project* to a markdown file named after its title.

        Args:
            project: Project to export

        Returns:
            Path to the created markdown file
        """
        filepath = self.export_dir / f"{slugify(project.title)}-{project.id}.md"

        # Write to file (overwrites if exists)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.render(project))

        return filepath
