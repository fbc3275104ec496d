"""Application workflow: which screen is active and what it is working on.

Replaces loose UI flags with one explicit state object. Each transition
checks the current step and raises ``WorkflowError`` when it does not
apply.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from manuscripta.exceptions import ValidationError, WorkflowError
from manuscripta.models.project import (
    DEFAULT_SECTIONS,
    CitationStyle,
    Methodology,
    Project,
    new_project_id,
)

logger = logging.getLogger(__name__)


class AppStep(str, Enum):
    LANDING = "landing"
    CONFIG = "config"
    TOPIC_ARCHITECT = "topic_architect"
    PROJECT_LIBRARY = "project_library"
    DASHBOARD = "dashboard"


@dataclass
class PendingConfig:
    """Citation style and methodology chosen before the topic exists."""

    style: CitationStyle
    methodology: Methodology


def new_project(
    title: str,
    theme: str,
    style: CitationStyle,
    methodology: Methodology,
    sections: Iterable[str] = DEFAULT_SECTIONS,
    owner: str = "",
) -> Project:
    """A fresh Draft project with every section empty and no references."""
    return Project(
        id=new_project_id(),
        title=title,
        theme=theme,
        citation_style=style,
        methodology=methodology,
        sections={name: "" for name in sections},
        owner=owner,
    )


@dataclass
class Workflow:
    step: AppStep = AppStep.LANDING
    current_project_id: Optional[str] = None
    modal_open: bool = False
    pending_config: Optional[PendingConfig] = None

    def _go(self, step: AppStep) -> None:
        self.step = step

    def _expect(self, action: str, *steps: AppStep) -> None:
        if self.step not in steps:
            raise WorkflowError(action, self.step.value)

    def open_modal(self) -> None:
        """Show the new-project modal (start fresh or import)."""
        self._expect("open the new project dialog", AppStep.LANDING, AppStep.PROJECT_LIBRARY)
        self.modal_open = True

    def close_modal(self) -> None:
        self.modal_open = False

    def start_fresh(self) -> None:
        if not self.modal_open:
            raise WorkflowError("start a new project", self.step.value)
        self.modal_open = False
        self.pending_config = None
        self._go(AppStep.CONFIG)

    def complete_config(self, style: CitationStyle, methodology: Methodology) -> None:
        self._expect("save project settings", AppStep.CONFIG)
        self.pending_config = PendingConfig(style=style, methodology=methodology)
        self._go(AppStep.TOPIC_ARCHITECT)

    def finalize_topic(
        self,
        topic: str,
        theme: str,
        sections: Iterable[str] = DEFAULT_SECTIONS,
        owner: str = "",
    ) -> Project:
        """Create the project for the finalized title and go to the library.

        Raises:
            WorkflowError: If no settings were chosen first
            ValidationError: If the title is blank
        """
        self._expect("create a project", AppStep.TOPIC_ARCHITECT)
        if self.pending_config is None:
            raise WorkflowError("create a project without settings", self.step.value)
        topic = topic.strip()
        if not topic:
            raise ValidationError("Project title cannot be empty.", field="topic")
        project = new_project(
            title=topic,
            theme=theme,
            style=self.pending_config.style,
            methodology=self.pending_config.methodology,
            sections=sections,
            owner=owner,
        )
        self.pending_config = None
        self._go(AppStep.PROJECT_LIBRARY)
        return project

    def import_complete(self, project: Project) -> None:
        """*project* was created from an uploaded manuscript."""
        logger.info("Imported manuscript as project %s", project.id)
        self.modal_open = False
        self._go(AppStep.PROJECT_LIBRARY)

    def select_project(self, project_id: str) -> None:
        self.current_project_id = project_id
        self._go(AppStep.DASHBOARD)

    def go_to_library(self) -> None:
        self._go(AppStep.PROJECT_LIBRARY)

    def project_deleted(self, project_id: str) -> None:
        if self.current_project_id == project_id:
            self.current_project_id = None
            if self.step == AppStep.DASHBOARD:
                self._go(AppStep.PROJECT_LIBRARY)

    def to_dict(self) -> dict:
        return {
            "step": self.step.value,
            "current_project_id": self.current_project_id,
            "modal_open": self.modal_open,
            "pending_config": (
                {
                    "style": self.pending_config.style.value,
                    "methodology": self.pending_config.methodology.value,
                }
                if self.pending_config
                else None
            ),
        }
