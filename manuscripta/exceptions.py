"""Exceptions raised by Manuscripta.

Every error carries a user-facing ``message``; ``details`` holds extra
context for logs.
"""

from __future__ import annotations


class ManuscriptaError(Exception):
    """Base exception for Manuscripta."""

    def __init__(self, message: str = "", details: str = "") -> None:
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ValidationError(ManuscriptaError):
    """User input failed validation; nothing was written."""

    def __init__(self, message: str = "Validation failed", field: str = "") -> None:
        super().__init__(message, f"field: {field}" if field else "")
        self.field = field


class DuplicateSectionError(ValidationError):
    """A section with the requested name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f'A section named "{name}" already exists.', field="name")
        self.name = name


class ProjectNotFoundError(ManuscriptaError):
    def __init__(self, project_id: str) -> None:
        super().__init__("Project not found.", f"id: {project_id}")
        self.project_id = project_id


class WorkflowError(ManuscriptaError):
    """A workflow transition was requested from the wrong step."""

    def __init__(self, action: str, step: str) -> None:
        super().__init__(f"Cannot {action} right now.", f"step: {step}")
        self.action = action
        self.step = step


class ManuscriptImportError(ManuscriptaError):
    """Reading or ingesting an uploaded manuscript failed."""

    def __init__(self, message: str = "Failed to import manuscript.", original_error: str = "") -> None:
        super().__init__(message, f"error: {original_error}" if original_error else "")
        self.original_error = original_error


class LLMNotConfiguredError(ManuscriptaError):
    def __init__(self) -> None:
        super().__init__(
            "No LLM profile is configured.",
            "add a profile in Preferences or set GEMINI_API_KEY",
        )
