"""
Tests for questionnaire editing and survey validation.
"""

import pytest

from manuscripta.exceptions import ValidationError
from manuscripta.models.project import Question
from manuscripta.services.survey_service import (
    INCOMPLETE_MESSAGE,
    build_questions,
    missing_answers,
    validate_answers,
)

QUESTIONS = [
    Question(id="q1", type="text", label="How do you feel?"),
    Question(id="q2", type="rating", label="Rate your focus"),
]


class TestValidateAnswers:

    def test_complete_submission(self):
        answers = validate_answers(QUESTIONS, {"q1": " Fine ", "q2": "4", "extra": "x"})
        assert answers == {"q1": "Fine", "q2": "4"}

    def test_missing_answer(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_answers(QUESTIONS, {"q1": "Fine", "q2": "   "})
        assert exc_info.value.message == INCOMPLETE_MESSAGE
        assert exc_info.value.field == "q2"

    def test_no_questions(self):
        with pytest.raises(ValidationError):
            validate_answers([], {})

    def test_missing_answers_ignores_non_strings(self):
        assert missing_answers(QUESTIONS, {"q1": 3, "q2": "ok"}) == ["q1"]


class TestBuildQuestions:

    def test_ids_assigned(self):
        questions = build_questions(
            [{"label": "New"}, {"id": "q1", "label": "Kept"}],
            existing=QUESTIONS,
        )
        assert [q.id for q in questions] == ["q3", "q1"]
        assert questions[0].type == "text"

    def test_blank_label(self):
        with pytest.raises(ValidationError):
            build_questions([{"label": "  "}])

    def test_duplicate_id(self):
        with pytest.raises(ValidationError):
            build_questions([{"id": "a", "label": "One"}, {"id": "a", "label": "Two"}])

    def test_multiple_choice_needs_options(self):
        with pytest.raises(ValidationError):
            build_questions([{"type": "multiple-choice", "label": "Where?", "options": [" "]}])

    def test_options_trimmed(self):
        questions = build_questions([
            {"type": "multiple-choice", "label": "Where?", "options": [" Home ", "", "Office"]},
        ])
        assert questions[0].options == ["Home", "Office"]
