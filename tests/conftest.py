"""
Test suite configuration for Manuscripta.

Provides temporary storage, an isolated Settings singleton, a repository,
a fresh project and a scripted stand-in for the Gemini service.
"""

import logging
import tempfile
from pathlib import Path

import pytest

from manuscripta.config import EditorSettings, Settings
from manuscripta.database.repository import ProjectRepository
from manuscripta.gui.workflow import new_project
from manuscripta.models.paper import GroundedSource
from manuscripta.models.project import CitationStyle, Methodology, Question


# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format='[TEST] %(levelname)s - %(name)s - %(message)s'
)


class FakeAI:
    """Scripted async stand-in for ``GeminiService``.

    Set the public attributes to control responses; set ``fail`` to make
    every call raise. Calls are recorded in ``calls``.
    """

    def __init__(self):
        self.topics = ["Remote Work and Mental Health", "Hybrid Teams and Burnout"]
        self.sections = {
            "Abstract": "An abstract.",
            "Background": "Some background.",
            "Literature Review": "",
            "Methodology": "Interviews.",
            "References": "",
        }
        self.section_html = "<p>Generated text.</p>"
        self.questions = [
            Question(id="q1", type="text", label="How do you feel?"),
            Question(id="q2", type="multiple-choice", label="Where do you work?", options=["Home", "Office"]),
        ]
        self.sources = [
            GroundedSource(
                title="AI Tutors in the Classroom",
                authors="Zhang, L.",
                year="2023",
                summary="A study of AI tutoring.",
                uri="https://example.org/ai-tutors",
            )
        ]
        self.query = "remote work wellbeing"
        self.fail = False
        self.calls: list[tuple[str, tuple]] = []

    def _record(self, name, *args):
        self.calls.append((name, args))
        if self.fail:
            raise RuntimeError(f"{name} failed")

    async def suggest_topics(self, theme):
        self._record("suggest_topics", theme)
        return list(self.topics)

    async def extract_sections(self, raw):
        self._record("extract_sections", raw)
        return dict(self.sections)

    async def generate_section(self, topic, methodology, section="Background"):
        self._record("generate_section", topic, methodology, section)
        return self.section_html

    async def generate_questionnaire(self, topic, methodology):
        self._record("generate_questionnaire", topic, methodology)
        return list(self.questions)

    async def search_sources(self, query):
        self._record("search_sources", query)
        return list(self.sources)

    async def suggest_query(self, sample):
        self._record("suggest_query", sample)
        return self.query


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir, monkeypatch):
    """An isolated Settings singleton rooted in *temp_dir*."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    Settings.reset()
    metadata_dir = temp_dir / ".metadata"
    metadata_dir.mkdir()
    instance = Settings(
        db_path=temp_dir / "manuscripts.db",
        metadata_dir=metadata_dir,
        export_dir=temp_dir / "exports",
        upload_dir=temp_dir / "uploads",
        editor=EditorSettings(author="Test Author"),
    )
    yield instance
    Settings.reset()


@pytest.fixture
def repo(temp_dir):
    return ProjectRepository(temp_dir / "test.db")


@pytest.fixture
def project():
    """A fresh APA / Qualitative project with the default sections."""
    return new_project(
        title="Remote Work and Mental Health",
        theme="remote work",
        style=CitationStyle.APA,
        methodology=Methodology.QUALITATIVE,
    )


@pytest.fixture
def fake_ai():
    return FakeAI()
