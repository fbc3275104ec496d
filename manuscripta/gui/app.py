"""FastAPI + HTMX GUI for Manuscripta."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from manuscripta.config import Settings
from manuscripta.database.repository import ProjectRepository
from manuscripta.exceptions import ManuscriptaError
from manuscripta.gui.routers import common, editor, projects, survey
from manuscripta.gui.state import (
    configure_ai,
    error_response,
    new_topic_suggester,
    state,
)
from manuscripta.gui.workflow import Workflow
from manuscripta.services.export_service import MarkdownExporter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup."""
    state.settings = Settings.load()
    state.repo = ProjectRepository(state.settings.db_path)
    state.exporter = MarkdownExporter(state.settings.export_dir)
    state.workflow = Workflow()
    state.sessions = {}
    configure_ai()
    state.topics = new_topic_suggester()
    yield
    for session in state.sessions.values():
        session.context.debouncer.cancel()
    if state.topics is not None:
        state.topics.debouncer.cancel()


app = FastAPI(lifespan=lifespan)


@app.exception_handler(ManuscriptaError)
async def manuscripta_error_handler(request: Request, exc: ManuscriptaError):
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return error_response(exc)


app.include_router(common.router)
app.include_router(projects.router)
app.include_router(editor.router)
app.include_router(survey.router)
