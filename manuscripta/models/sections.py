"""Ordered section store over a project's ``sections`` mapping."""

from typing import Iterator

from manuscripta.exceptions import DuplicateSectionError, ValidationError
from manuscripta.models.project import Project


class SectionStore:
    """Ordered name → HTML store bound to a :class:`Project`.

    Key order is the navigation order. Reading an absent key gives ``""``;
    every mutation stamps the project's ``updated_at``.
    """

    def __init__(self, project: Project):
        self.project = project

    def __contains__(self, name: object) -> bool:
        return name in self.project.sections

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.project.sections)

    def keys(self) -> list[str]:
        return list(self.project.sections)

    def get(self, name: str) -> str:
        return self.project.sections.get(name, "")

    def set(self, name: str, html: str) -> None:
        """Replace the full content of *name* (created at the end if absent)."""
        self.project.sections[name] = html
        self.project.touch()

    def append_paragraph(self, name: str, text: str) -> None:
        """Append ``<p>text</p>`` to *name*, keeping existing content."""
        self.set(name, f"{self.get(name)}<p>{text}</p>")

    def add_section(self, name: str) -> str:
        """Create an empty section.

        Raises:
            ValidationError: If the name is blank
            DuplicateSectionError: If a section with that name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Section name cannot be empty.", field="name")
        if name in self.project.sections:
            raise DuplicateSectionError(name)
        self.project.sections[name] = ""
        self.project.touch()
        return name

    def remove_section(self, name: str) -> bool:
        """Delete *name*; returns False if it did not exist."""
        if name not in self.project.sections:
            return False
        del self.project.sections[name]
        self.project.touch()
        return True
