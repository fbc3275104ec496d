"""Project data model."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Optional

from manuscripta.models.paper import Paper
from manuscripta.utils.text import short_date


class CitationStyle(str, Enum):
    APA = "APA"
    MLA = "MLA"
    IEEE = "IEEE"
    CHICAGO = "Chicago"


class Methodology(str, Enum):
    QUALITATIVE = "Qualitative"
    QUANTITATIVE = "Quantitative"


QuestionType = Literal["multiple-choice", "text", "rating"]
ProjectStatus = Literal["Draft", "Published", "Archived"]

DEFAULT_SECTIONS: tuple[str, ...] = (
    "Abstract",
    "Background",
    "Literature Review",
    "Methodology",
    "Questionnaire",
    "Analysis",
    "References",
)

# Sections the extraction service is asked for when a manuscript is imported
IMPORT_SECTIONS: tuple[str, ...] = (
    "Abstract",
    "Background",
    "Literature Review",
    "Methodology",
    "References",
)

REFERENCES_SECTION = "References"


def new_project_id() -> str:
    """Random 9-character project id."""
    return uuid.uuid4().hex[:9]


@dataclass
class Question:
    """A single survey question attached to a project."""

    id: str
    type: QuestionType
    label: str
    options: Optional[list[str]] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type, "label": self.label}
        if self.options is not None:
            data["options"] = list(self.options)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        qtype = data.get("type", "text")
        if qtype not in ("multiple-choice", "text", "rating"):
            qtype = "text"
        options = data.get("options")
        return cls(
            id=str(data["id"]),
            type=qtype,
            label=str(data.get("label", "")),
            options=[str(o) for o in options] if isinstance(options, list) else None,
        )


@dataclass
class Project:
    """A manuscript project.

    ``sections`` maps section name to HTML content and keeps insertion
    order; ``references`` keeps citation order.
    """

    id: str
    title: str
    theme: str
    citation_style: CitationStyle = CitationStyle.APA
    methodology: Methodology = Methodology.QUALITATIVE
    sections: dict[str, str] = field(default_factory=dict)
    questions: list[Question] = field(default_factory=list)
    references: list[Paper] = field(default_factory=list)
    status: ProjectStatus = "Draft"
    updated_at: str = field(default_factory=short_date)
    owner: str = ""
    source_file: Optional[str] = None

    def touch(self) -> None:
        """Stamp ``updated_at`` with today's short date."""
        self.updated_at = short_date()

    def has_reference(self, paper_id: str) -> bool:
        return any(ref.id == paper_id for ref in self.references)

    def add_reference(self, paper: Paper) -> bool:
        """Append *paper* unless a reference with the same id exists.

        Returns:
            True if the paper was appended
        """
        if self.has_reference(paper.id):
            return False
        self.references.append(paper)
        self.touch()
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "theme": self.theme,
            "citation_style": self.citation_style.value,
            "methodology": self.methodology.value,
            "sections": dict(self.sections),
            "questions": [q.to_dict() for q in self.questions],
            "references": [p.to_dict() for p in self.references],
            "status": self.status,
            "updated_at": self.updated_at,
            "owner": self.owner,
            "source_file": self.source_file,
        }
