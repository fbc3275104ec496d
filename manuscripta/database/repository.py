"""Project repository for database operations."""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from manuscripta.exceptions import ProjectNotFoundError
from manuscripta.models.paper import Paper
from manuscripta.models.project import CitationStyle, Methodology, Project, Question


class ProjectRepository:
    """Repository for project CRUD and survey responses using SQLite."""

    def __init__(self, db_path: Path):
        """Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._init_db()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    title TEXT NOT NULL,
                    theme TEXT NOT NULL DEFAULT '',
                    citation_style TEXT NOT NULL,
                    methodology TEXT NOT NULL,
                    sections TEXT NOT NULL DEFAULT '{}',
                    questions TEXT NOT NULL DEFAULT '[]',
                    refs TEXT NOT NULL DEFAULT '[]',
                    status TEXT NOT NULL DEFAULT 'Draft',
                    updated_at TEXT NOT NULL,
                    owner TEXT NOT NULL DEFAULT '',
                    source_file TEXT
                );
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS responses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    project_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    data TEXT NOT NULL,
                    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
                );
            """)
            cursor.execute("CREATE INDEX IF NOT EXISTS idx_responses_project ON responses(project_id);")
            conn.commit()

    @staticmethod
    def _row_to_project(row: sqlite3.Row) -> Project:
        return Project(
            id=row["id"],
            title=row["title"],
            theme=row["theme"],
            citation_style=CitationStyle(row["citation_style"]),
            methodology=Methodology(row["methodology"]),
            sections=json.loads(row["sections"]),
            questions=[Question.from_dict(q) for q in json.loads(row["questions"])],
            references=[Paper.from_dict(p) for p in json.loads(row["refs"])],
            status=row["status"],
            updated_at=row["updated_at"],
            owner=row["owner"],
            source_file=row["source_file"],
        )

    @staticmethod
    def _project_params(project: Project) -> dict[str, Any]:
        return {
            "id": project.id,
            "title": project.title,
            "theme": project.theme,
            "citation_style": project.citation_style.value,
            "methodology": project.methodology.value,
            "sections": json.dumps(project.sections, ensure_ascii=False),
            "questions": json.dumps([q.to_dict() for q in project.questions], ensure_ascii=False),
            "refs": json.dumps([p.to_dict() for p in project.references], ensure_ascii=False),
            "status": project.status,
            "updated_at": project.updated_at,
            "owner": project.owner,
            "source_file": project.source_file,
        }

    def create(self, project: Project) -> Project:
        """Insert a new project.

        Args:
            project: Project to store (its id must be unused)

        Returns:
            The stored project
        """
        params = self._project_params(project)
        params["created_at"] = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO projects
                (id, created_at, title, theme, citation_style, methodology, sections,
                 questions, refs, status, updated_at, owner, source_file)
                VALUES (:id, :created_at, :title, :theme, :citation_style, :methodology, :sections,
                        :questions, :refs, :status, :updated_at, :owner, :source_file)
                """,
                params,
            )
            conn.commit()
        return project

    def get(self, project_id: str) -> Optional[Project]:
        """Find a single project by ID.

        Returns:
            Project if found, None otherwise
        """
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        return self._row_to_project(row) if row is not None else None

    def require(self, project_id: str) -> Project:
        """Like :meth:`get` but raises ``ProjectNotFoundError``."""
        project = self.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def list_all(self, limit: int = 500) -> list[Project]:
        """All projects, most recently created first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM projects ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._row_to_project(row) for row in rows]

    def update(self, project: Project) -> None:
        """Overwrite the stored project with *project*.

        Raises:
            ProjectNotFoundError: If no project has this id
        """
        with self._connection() as conn:
            cursor = conn.execute(
                """
                UPDATE projects SET
                    title = :title, theme = :theme, citation_style = :citation_style,
                    methodology = :methodology, sections = :sections, questions = :questions,
                    refs = :refs, status = :status, updated_at = :updated_at,
                    owner = :owner, source_file = :source_file
                WHERE id = :id
                """,
                self._project_params(project),
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise ProjectNotFoundError(project.id)

    def delete(self, project_id: str) -> bool:
        """Delete a project and its survey responses.

        Returns:
            True if a project was deleted
        """
        with self._connection() as conn:
            conn.execute("DELETE FROM responses WHERE project_id = ?", (project_id,))
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            conn.commit()
            return cursor.rowcount > 0

    def save_response(self, project_id: str, answers: dict[str, str]) -> int:
        """Store one survey submission.

        Returns:
            The response row id
        """
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO responses (project_id, created_at, data) VALUES (?, ?, ?)",
                (project_id, now, json.dumps(answers, ensure_ascii=False)),
            )
            conn.commit()
            return int(cursor.lastrowid)

    def list_responses(self, project_id: str) -> list[dict[str, str]]:
        """All submitted answer sets for a project, oldest first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT data FROM responses WHERE project_id = ? ORDER BY id ASC",
                (project_id,),
            ).fetchall()
        return [json.loads(row["data"]) for row in rows]
