"""Application state, templates, and per-project editor sessions."""

import html
import logging
import os
from typing import Optional

from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from manuscripta.config import Settings
from manuscripta.database.repository import ProjectRepository
from manuscripta.exceptions import (
    DuplicateSectionError,
    LLMNotConfiguredError,
    ManuscriptaError,
    ManuscriptImportError,
    ProjectNotFoundError,
    ValidationError,
    WorkflowError,
)
from manuscripta.gui.workflow import Workflow
from manuscripta.models.paper import GroundedSource
from manuscripta.models.project import Project
from manuscripta.models.sections import SectionStore
from manuscripta.services import openalex_service
from manuscripta.services.editor_service import EditorSurface
from manuscripta.services.export_service import MarkdownExporter
from manuscripta.services.llm_service import GeminiService
from manuscripta.services.source_panel import SourcePanel
from manuscripta.services.suggestion_service import ContextSuggester, TopicSuggester

logger = logging.getLogger(__name__)


# ============================================================================
# Editor session
# ============================================================================


class EditorSession:
    """Everything the dashboard keeps in memory for one open project."""

    def __init__(self, project: Project, settings: Settings):
        editor_cfg = settings.editor
        self.store = SectionStore(project)
        self.editor = EditorSurface(self.store, placeholder=editor_cfg.placeholder)
        self.panel = SourcePanel(search_sources, self.store, self.editor)
        self.context = ContextSuggester(
            suggest_query,
            self.panel,
            delay=editor_cfg.context_debounce_ms / 1000,
            min_length=editor_cfg.context_min_length,
            sample_length=editor_cfg.context_sample_length,
        )

    @property
    def project(self) -> Project:
        return self.store.project


# ============================================================================
# Global State
# ============================================================================


class AppState:
    """Mutable singleton holding all runtime services and open sessions."""

    settings: Settings
    repo: ProjectRepository
    exporter: MarkdownExporter
    ai: Optional[GeminiService] = None
    workflow: Workflow = Workflow()
    topics: Optional[TopicSuggester] = None
    sessions: dict = {}      # project_id → EditorSession


state = AppState()


# ============================================================================
# Templates & Filters
# ============================================================================

base_dir = os.path.dirname(__file__)
templates = Jinja2Templates(directory=os.path.join(base_dir, "templates"))

templates.env.filters["unescape_html"] = lambda s: html.unescape(s) if s else ""


# ============================================================================
# Service helpers
# ============================================================================


def configure_ai() -> Optional[GeminiService]:
    """(Re)build the Gemini service from the active LLM profile."""
    profile = state.settings.active_llm
    if profile is None:
        state.ai = None
        logger.info("No LLM profile configured; source search falls back to OpenAlex")
    else:
        state.ai = GeminiService(profile)
        logger.info("Using LLM profile %r (%s)", profile.name, profile.model)
    return state.ai


def require_ai() -> GeminiService:
    if state.ai is None:
        raise LLMNotConfiguredError()
    return state.ai


async def search_sources(query: str) -> list[GroundedSource]:
    """Grounded AI search, or OpenAlex when no LLM is configured."""
    if state.ai is not None:
        return await state.ai.search_sources(query)
    return await openalex_service.search_sources(query)


async def suggest_topics(theme: str) -> list[str]:
    if state.ai is None:
        return []
    return await state.ai.suggest_topics(theme)


async def suggest_query(sample: str) -> str:
    if state.ai is None:
        return ""
    return await state.ai.suggest_query(sample)


def new_topic_suggester() -> TopicSuggester:
    return TopicSuggester(
        suggest_topics,
        delay=state.settings.editor.topic_debounce_ms / 1000,
    )


# ============================================================================
# Sessions
# ============================================================================


def get_session(project_id: str) -> EditorSession:
    """Open (or reuse) the editor session for *project_id*.

    Raises:
        ProjectNotFoundError: If the project does not exist
    """
    session = state.sessions.get(project_id)
    if session is None:
        project = state.repo.require(project_id)
        session = EditorSession(project, state.settings)
        state.sessions[project_id] = session
    return session


def save_session(session: EditorSession) -> None:
    """Persist the session's project."""
    state.repo.update(session.project)


def close_session(project_id: str) -> None:
    session = state.sessions.pop(project_id, None)
    if session is not None:
        session.context.debouncer.cancel()


# ============================================================================
# Errors
# ============================================================================


def error_status(exc: ManuscriptaError) -> int:
    if isinstance(exc, ProjectNotFoundError):
        return 404
    if isinstance(exc, (DuplicateSectionError, WorkflowError)):
        return 409
    if isinstance(exc, (ValidationError, ManuscriptImportError)):
        return 422
    if isinstance(exc, LLMNotConfiguredError):
        return 503
    return 500


def error_response(exc: ManuscriptaError) -> JSONResponse:
    """JSON ``{"error": message}`` with a status matching the error kind."""
    return JSONResponse({"error": exc.message}, status_code=error_status(exc))
