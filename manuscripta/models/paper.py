"""Paper and search-candidate data models."""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass
class Paper:
    """A cited work in a project's reference list."""

    id: str
    title: str
    authors: list[str] = field(default_factory=list)
    year: int = 0
    journal: str = ""
    abstract: str = ""
    doi: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Paper":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            authors=list(data.get("authors") or []),
            year=int(data.get("year") or 0),
            journal=data.get("journal", ""),
            abstract=data.get("abstract", ""),
            doi=data.get("doi"),
        )


@dataclass
class GroundedSource:
    """A search result returned by the academic source search.

    ``authors`` and ``year`` are display strings exactly as the search
    service returned them; they are only structured when the source is
    cited.
    """

    title: str
    authors: str
    year: str
    summary: str
    uri: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
