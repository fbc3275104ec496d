"""Common routes: index page, workflow state, LLM models/profiles."""

import uuid
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from manuscripta import __version__
from manuscripta.config import LLMProfile, load_llm_models, save_llm_profiles
from manuscripta.gui.state import configure_ai, state, templates
from manuscripta.models.project import CitationStyle, Methodology

router = APIRouter()


# ============================================================================
# Main Page
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Main page; the active screen follows the workflow step."""
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "workflow": state.workflow,
            "projects": state.repo.list_all(),
            "styles": [s.value for s in CitationStyle],
            "methodologies": [m.value for m in Methodology],
            "ai_enabled": state.ai is not None,
            "version": __version__,
        },
    )


@router.get("/api/workflow")
async def get_workflow():
    """Current workflow step, selected project and modal flag."""
    return JSONResponse(state.workflow.to_dict())


# ============================================================================
# Gemini models and profiles
# ============================================================================


@router.get("/api/llm-models")
async def get_llm_models():
    """Model registry for the preferences ``<select>``."""
    return JSONResponse([asdict(m) for m in load_llm_models()])


class ProfilePayload(BaseModel):
    name: str
    model: str
    api_key: str


class ActiveProfilePayload(BaseModel):
    """``id=None`` clears the selection (the env key is used if set)."""
    id: Optional[str] = None


def _find_profile(profile_id: str) -> Optional[LLMProfile]:
    return next((p for p in state.settings.llm_profiles if p.id == profile_id), None)


def _profile_not_found() -> JSONResponse:
    return JSONResponse({"error": "Profile not found"}, status_code=404)


def _persist_profiles() -> None:
    """Save profiles to disk and point the AI service at the active one."""
    settings = state.settings
    save_llm_profiles(settings.profiles_path, settings.llm_profiles, settings.active_llm_id)
    configure_ai()


@router.get("/api/llm-profiles")
async def list_profiles():
    settings = state.settings
    return JSONResponse({
        "active": settings.active_llm_id,
        "profiles": [p.to_dict() for p in settings.llm_profiles],
    })


@router.post("/api/llm-profiles")
async def create_profile(body: ProfilePayload):
    """Add a profile; the first one added becomes active."""
    profile = LLMProfile(id=uuid.uuid4().hex[:8], **body.model_dump())
    settings = state.settings
    settings.llm_profiles.append(profile)
    settings.active_llm_id = settings.active_llm_id or profile.id
    _persist_profiles()
    return JSONResponse(profile.to_dict(), status_code=201)


# Registered before /{profile_id} so "active" is not taken as an id
@router.put("/api/llm-profiles/active")
async def set_active_profile(body: ActiveProfilePayload):
    if body.id is not None and _find_profile(body.id) is None:
        return _profile_not_found()
    state.settings.active_llm_id = body.id
    _persist_profiles()
    return JSONResponse({"active": body.id})


@router.put("/api/llm-profiles/{profile_id}")
async def update_profile(profile_id: str, body: ProfilePayload):
    profile = _find_profile(profile_id)
    if profile is None:
        return _profile_not_found()
    for key, value in body.model_dump().items():
        setattr(profile, key, value)
    _persist_profiles()
    return JSONResponse(profile.to_dict())


@router.delete("/api/llm-profiles/{profile_id}")
async def delete_profile(profile_id: str):
    """Remove a profile; deleting the active one activates the next remaining."""
    settings = state.settings
    profile = _find_profile(profile_id)
    if profile is None:
        return _profile_not_found()
    settings.llm_profiles.remove(profile)
    if settings.active_llm_id == profile_id:
        remaining = settings.llm_profiles
        settings.active_llm_id = remaining[0].id if remaining else None
    _persist_profiles()
    return JSONResponse({"ok": True})
