"""Questionnaire and survey routes."""

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from manuscripta.gui.state import get_session, require_ai, save_session, state
from manuscripta.services.survey_service import build_questions, validate_answers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}")


class QuestionsPayload(BaseModel):
    """Full edited question list (replaces the current one)."""
    questions: list[dict[str, Any]]


class AnswersPayload(BaseModel):
    """Question id → answer."""
    answers: dict[str, Any]


def _questions(project) -> list[dict]:
    return [q.to_dict() for q in project.questions]


@router.post("/questions/generate")
async def generate_questions(project_id: str):
    """Draft a questionnaire with the AI service."""
    session = get_session(project_id)
    ai = require_ai()
    project = session.project
    try:
        questions = await ai.generate_questionnaire(project.title, project.methodology)
    except Exception:
        logger.exception("Questionnaire generation failed for %s", project_id)
        return JSONResponse({"error": "Failed to generate questionnaire."}, status_code=502)
    project.questions = questions
    project.touch()
    save_session(session)
    return JSONResponse({"questions": _questions(project)})


@router.put("/questions")
async def update_questions(project_id: str, body: QuestionsPayload):
    session = get_session(project_id)
    project = session.project
    project.questions = build_questions(body.questions, project.questions)
    project.touch()
    save_session(session)
    return JSONResponse({"questions": _questions(project)})


@router.get("/survey")
async def get_survey(project_id: str):
    """Public survey view: title, methodology and questions."""
    project = state.repo.require(project_id)
    return JSONResponse({
        "id": project.id,
        "title": project.title,
        "methodology": project.methodology.value,
        "questions": _questions(project),
    })


@router.post("/survey")
async def submit_survey(project_id: str, body: AnswersPayload):
    """Store one response; every question needs a non-blank answer."""
    project = state.repo.require(project_id)
    answers = validate_answers(project.questions, body.answers)
    response_id = state.repo.save_response(project.id, answers)
    logger.info("Stored survey response %d for project %s", response_id, project.id)
    return JSONResponse({"id": response_id}, status_code=201)


@router.get("/responses")
async def list_responses(project_id: str):
    state.repo.require(project_id)
    return JSONResponse(state.repo.list_responses(project_id))
