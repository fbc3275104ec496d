"""Project routes: workflow transitions, topic architect, library, upload, export."""

import logging

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from manuscripta.exceptions import ManuscriptaError
from manuscripta.gui.state import (
    close_session,
    get_session,
    require_ai,
    save_session,
    state,
    templates,
)
from manuscripta.models.project import CitationStyle, Methodology
from manuscripta.services.import_service import ManuscriptImporter

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Workflow transitions
# ============================================================================


class ConfigPayload(BaseModel):
    """Citation style and methodology picked on the config screen."""
    style: CitationStyle
    methodology: Methodology


class FinalizePayload(BaseModel):
    """Title chosen in the topic architect."""
    topic: str
    theme: str = ""


@router.post("/workflow/new")
async def open_new_project_modal():
    state.workflow.open_modal()
    return JSONResponse(state.workflow.to_dict())


@router.post("/workflow/close")
async def close_new_project_modal():
    state.workflow.close_modal()
    return JSONResponse(state.workflow.to_dict())


@router.post("/workflow/start-fresh")
async def start_fresh():
    """Leave the modal for the config screen."""
    state.workflow.start_fresh()
    return JSONResponse(state.workflow.to_dict())


@router.post("/workflow/config")
async def complete_config(body: ConfigPayload):
    """Save style and methodology; continue to the topic architect."""
    state.workflow.complete_config(body.style, body.methodology)
    if state.topics is not None:
        state.topics.update_theme("")
    return JSONResponse(state.workflow.to_dict())


@router.post("/workflow/library")
async def go_to_library():
    state.workflow.go_to_library()
    return JSONResponse(state.workflow.to_dict())


# ============================================================================
# Topic architect (debounced title suggestions, polled by the client)
# ============================================================================


def _topic_list(request: Request):
    topics = state.topics
    return templates.TemplateResponse(
        request,
        "partials/topic_list.html",
        {
            "theme": topics.theme if topics else "",
            "topics": topics.topics if topics else [],
            "loading": topics.loading if topics else False,
        },
    )


@router.post("/create/theme", response_class=HTMLResponse)
async def update_theme(request: Request, theme: str = Form("")):
    """Record the typed theme; suggestions arrive after the debounce delay."""
    if state.topics is not None:
        state.topics.update_theme(theme)
    return _topic_list(request)


@router.get("/create/topics", response_class=HTMLResponse)
async def get_topics(request: Request):
    """Current suggestions (polled while ``loading`` is true)."""
    return _topic_list(request)


@router.post("/create/finalize")
async def finalize_topic(body: FinalizePayload):
    """Create the project for the chosen title."""
    editor_cfg = state.settings.editor
    project = state.workflow.finalize_topic(
        body.topic,
        body.theme or (state.topics.theme if state.topics else ""),
        sections=editor_cfg.default_sections,
        owner=editor_cfg.author,
    )
    state.repo.create(project)
    logger.info("Created project %s (%r)", project.id, project.title)
    return JSONResponse(project.to_dict(), status_code=201)


# ============================================================================
# Project library
# ============================================================================


@router.get("/projects", response_class=HTMLResponse)
async def project_list(request: Request):
    """Library grid (partial for HTMX)."""
    projects = state.repo.list_all()
    return templates.TemplateResponse(
        request,
        "partials/project_list.html",
        {"projects": projects},
    )


@router.get("/api/projects")
async def list_projects():
    return JSONResponse([p.to_dict() for p in state.repo.list_all()])


@router.get("/api/projects/{project_id}")
async def get_project(project_id: str):
    session = state.sessions.get(project_id)
    project = session.project if session else state.repo.require(project_id)
    return JSONResponse(project.to_dict())


@router.post("/projects/{project_id}/open")
async def open_project(project_id: str):
    """Select a project and open the dashboard on its first section."""
    session = get_session(project_id)
    state.workflow.select_project(project_id)
    sections = session.store.keys()
    if session.editor.bound_section is None and sections:
        session.editor.bind(sections[0])
    return JSONResponse({
        "workflow": state.workflow.to_dict(),
        "project": session.project.to_dict(),
        "section": session.editor.bound_section,
        "html": session.editor.display_html,
    })


@router.delete("/api/projects/{project_id}")
async def delete_project(project_id: str):
    """Delete a project, its survey responses, and its open session."""
    if not state.repo.delete(project_id):
        return JSONResponse({"error": "Project not found."}, status_code=404)
    close_session(project_id)
    state.workflow.project_deleted(project_id)
    logger.info("Deleted project %s", project_id)
    return JSONResponse({"ok": True, "workflow": state.workflow.to_dict()})


# ============================================================================
# Manuscript upload
# ============================================================================


@router.post("/api/projects/upload")
async def upload_manuscript(file: UploadFile = File(...)):
    """Import an uploaded manuscript as a new Draft project."""
    ai = require_ai()
    importer = ManuscriptImporter(
        ai.extract_sections,
        state.settings.upload_dir,
        owner=state.settings.editor.author,
    )
    data = await file.read()
    project = await importer.import_file(file.filename or "manuscript.txt", data)
    state.repo.create(project)
    state.workflow.import_complete(project)
    return JSONResponse(project.to_dict(), status_code=201)


# ============================================================================
# Export
# ============================================================================


@router.post("/projects/{project_id}/export", response_class=HTMLResponse)
async def export_project(request: Request, project_id: str):
    """Export a project to Markdown and report the result as a toast."""
    session = state.sessions.get(project_id)
    try:
        if session is not None:
            if session.editor.flush():
                save_session(session)
        project = session.project if session else state.repo.require(project_id)
        filepath = state.exporter.export(project)
    except (ManuscriptaError, OSError) as e:
        logger.warning("Export of %s failed: %s", project_id, e)
        return templates.TemplateResponse(
            request,
            "partials/toast.html",
            {"kind": "error", "message": f"Export failed: {e}"},
        )
    return templates.TemplateResponse(
        request,
        "partials/toast.html",
        {"kind": "success", "message": f"Exported to {filepath.name}"},
    )
