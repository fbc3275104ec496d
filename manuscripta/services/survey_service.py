"""Questionnaire editing and survey answer validation."""

from typing import Any, Optional

from manuscripta.exceptions import ValidationError
from manuscripta.models.project import Question

INCOMPLETE_MESSAGE = "Please answer all questions before submitting."


def missing_answers(questions: list[Question], answers: dict[str, Any]) -> list[str]:
    """Ids of questions with no answer or a blank one."""
    return [
        q.id for q in questions
        if not isinstance(answers.get(q.id), str) or not answers[q.id].strip()
    ]


def validate_answers(questions: list[Question], answers: dict[str, Any]) -> dict[str, str]:
    """Check a survey submission and return the answers to store.

    Only answers to known questions are kept.

    Raises:
        ValidationError: If any question is unanswered
    """
    if not questions:
        raise ValidationError("This survey has no questions.", field="questions")
    missing = missing_answers(questions, answers)
    if missing:
        raise ValidationError(INCOMPLETE_MESSAGE, field=",".join(missing))
    return {q.id: answers[q.id].strip() for q in questions}


def build_questions(items: list[dict[str, Any]], existing: Optional[list[Question]] = None) -> list[Question]:
    """Validate edited questions coming from the questionnaire editor.

    Items without an id get the next free ``q<n>`` id.

    Raises:
        ValidationError: On a blank label, a duplicate id, or a
            multiple-choice question without options
    """
    used = {q.id for q in existing or []}
    seen: set[str] = set()
    questions: list[Question] = []
    for position, item in enumerate(items, 1):
        label = str(item.get("label") or "").strip()
        if not label:
            raise ValidationError(f"Question {position} needs a label.", field="label")
        qid = str(item.get("id") or "").strip()
        if not qid:
            n = position
            while f"q{n}" in used or f"q{n}" in seen:
                n += 1
            qid = f"q{n}"
        if qid in seen:
            raise ValidationError(f"Duplicate question id: {qid}", field="id")
        seen.add(qid)
        question = Question.from_dict({**item, "id": qid, "label": label})
        if question.type == "multiple-choice":
            options = [o.strip() for o in question.options or [] if o.strip()]
            if not options:
                raise ValidationError(
                    f"Question {position} is multiple-choice but has no options.",
                    field="options",
                )
            question.options = options
        questions.append(question)
    return questions
