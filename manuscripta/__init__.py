"""Manuscripta - manuscript authoring with AI-assisted sourcing.

A local tool for drafting research manuscripts section by section,
searching academic sources through a grounded LLM call, and inserting
formatted citations in APA, MLA, IEEE or Chicago style.
"""

__version__ = "1.0.0"
__author__ = "manuscripta contributors"

from manuscripta.config import Settings
from manuscripta.models.paper import GroundedSource, Paper
from manuscripta.models.project import CitationStyle, Methodology, Project, Question

__all__ = [
    "CitationStyle",
    "GroundedSource",
    "Methodology",
    "Paper",
    "Project",
    "Question",
    "Settings",
    "__version__",
]
