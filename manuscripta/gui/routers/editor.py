"""Dashboard routes: section editing, page stats, source search and citing."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from manuscripta.gui.state import (
    EditorSession,
    get_session,
    require_ai,
    save_session,
    state,
    templates,
)
from manuscripta.services.editor_service import EditorSurface
from manuscripta.services.pagination_service import page_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}")


class InputPayload(BaseModel):
    """One input event from the editable surface."""
    html: str
    selection_start: Optional[int] = None
    selection_end: Optional[int] = None


class SelectionPayload(BaseModel):
    start: int
    end: Optional[int] = None


class CommandPayload(BaseModel):
    """A toolbar command; ``direction`` for align, ``rows``/``cols`` for tables."""
    command: str
    direction: Optional[str] = None
    rows: int = 3
    cols: int = 3


class SectionPayload(BaseModel):
    name: str


class SearchPayload(BaseModel):
    query: Optional[str] = None


def _surface(session: EditorSession) -> dict:
    editor: EditorSurface = session.editor
    return {
        "section": editor.bound_section,
        "html": editor.display_html,
        "state": editor.state.value,
        "sections": session.store.keys(),
        "updated_at": session.project.updated_at,
        "formats": {attr: editor.query_state(attr) for attr in (
            "bold", "italic", "underline", "ordered_list", "unordered_list",
        )},
    }


# ============================================================================
# Editor surface
# ============================================================================


@router.post("/sections/{section}/bind")
async def bind_section(project_id: str, section: str):
    """Switch the editor to *section* (flushing the one being left)."""
    session = get_session(project_id)
    if section not in session.store:
        return JSONResponse({"error": f'Unknown section "{section}".'}, status_code=404)
    session.editor.bind(section)
    save_session(session)
    return JSONResponse(_surface(session))


@router.post("/editor/input")
async def editor_input(project_id: str, body: InputPayload):
    """Write-through input event; may schedule a context query suggestion."""
    session = get_session(project_id)
    session.editor.on_input(body.html, body.selection_start, body.selection_end)
    save_session(session)
    scheduled = session.context.on_keystroke(session.editor.html)
    return JSONResponse({
        "state": session.editor.state.value,
        "updated_at": session.project.updated_at,
        "suggestion_scheduled": scheduled,
    })


@router.post("/editor/selection")
async def editor_selection(project_id: str, body: SelectionPayload):
    session = get_session(project_id)
    session.editor.set_selection(body.start, body.end)
    return JSONResponse({"ok": True})


@router.post("/editor/command")
async def editor_command(project_id: str, body: CommandPayload):
    """Run a formatting command against the bound section."""
    session = get_session(project_id)
    kwargs: dict = {}
    if body.command == "align":
        kwargs["direction"] = body.direction or "left"
    elif body.command == "insert_table":
        kwargs.update(rows=body.rows, cols=body.cols)
    session.editor.apply(body.command, **kwargs)
    save_session(session)
    return JSONResponse(_surface(session))


@router.post("/editor/blur")
async def editor_blur(project_id: str):
    session = get_session(project_id)
    session.editor.blur()
    save_session(session)
    return JSONResponse(_surface(session))


@router.get("/editor/stats")
async def editor_stats(
    project_id: str,
    height: float = Query(0, description="Rendered surface height in px"),
    scroll: float = Query(0, description="Scroll offset of the viewport in px"),
):
    """Word/character counts and page position for the status bar."""
    session = get_session(project_id)
    cfg = state.settings.editor
    stats = page_stats(
        height,
        scroll,
        session.editor.html,
        page_height=cfg.page_height,
        page_gap=cfg.page_gap,
        lookahead=cfg.lookahead,
    )
    return JSONResponse(stats.to_dict())


# ============================================================================
# Sections
# ============================================================================


@router.post("/sections")
async def add_section(project_id: str, body: SectionPayload):
    session = get_session(project_id)
    name = session.store.add_section(body.name)
    save_session(session)
    return JSONResponse({"name": name, "sections": session.store.keys()}, status_code=201)


@router.delete("/sections/{section}")
async def remove_section(project_id: str, section: str):
    session = get_session(project_id)
    if session.editor.bound_section == section:
        session.editor.release()
    if not session.store.remove_section(section):
        return JSONResponse({"error": f'Unknown section "{section}".'}, status_code=404)
    save_session(session)
    return JSONResponse({"sections": session.store.keys()})


@router.post("/sections/{section}/generate")
async def generate_section(project_id: str, section: str):
    """Draft *section* with the AI service, replacing its content."""
    session = get_session(project_id)
    if section not in session.store:
        return JSONResponse({"error": f'Unknown section "{section}".'}, status_code=404)
    ai = require_ai()
    project = session.project
    try:
        content = await ai.generate_section(project.title, project.methodology, section)
    except Exception:
        logger.exception("Section generation failed for %s/%s", project_id, section)
        return JSONResponse({"error": "Failed to generate section."}, status_code=502)
    session.store.set(section, content)
    if session.editor.bound_section == section:
        session.editor.refresh_from_store()
    save_session(session)
    return JSONResponse(_surface(session))


# ============================================================================
# Source search panel
# ============================================================================


def _source_list(request: Request, session: EditorSession):
    panel = session.panel
    return templates.TemplateResponse(
        request,
        "partials/source_list.html",
        {
            "project_id": session.project.id,
            "query": panel.query_text,
            "suggested_query": panel.suggested_query,
            "results": panel.results,
            "searching": panel.searching,
        },
    )


@router.post("/sources/search", response_class=HTMLResponse)
async def search_sources(request: Request, project_id: str, body: SearchPayload):
    """Run a source search; failures keep the previous results."""
    session = get_session(project_id)
    if body.query is not None:
        session.panel.set_query(body.query)
    await session.panel.search()
    return _source_list(request, session)


@router.get("/sources", response_class=HTMLResponse)
async def source_results(request: Request, project_id: str):
    session = get_session(project_id)
    return _source_list(request, session)


@router.post("/sources/{index}/cite")
async def cite_source(project_id: str, index: int):
    """Cite the *index*-th search result at the editor caret."""
    session = get_session(project_id)
    results = session.panel.results
    if not 0 <= index < len(results):
        return JSONResponse({"error": "Source not found."}, status_code=404)
    result = session.panel.cite(results[index])
    save_session(session)
    return JSONResponse({
        "in_text": result.in_text,
        "bibliography": result.bibliography,
        "index": result.index,
        "reference": result.paper.to_dict(),
        **_surface(session),
    })


# ============================================================================
# Context query suggestion
# ============================================================================


@router.get("/suggestion")
async def get_suggestion(project_id: str):
    """Offered search query (polled); never changes the search box."""
    session = get_session(project_id)
    return JSONResponse({
        "suggested_query": session.panel.suggested_query,
        "query": session.panel.query_text,
        "pending": session.context.debouncer.pending,
    })


@router.post("/suggestion/accept")
async def accept_suggestion(project_id: str):
    session = get_session(project_id)
    query = session.panel.accept_suggestion()
    return JSONResponse({"query": query, "suggested_query": session.panel.suggested_query})
