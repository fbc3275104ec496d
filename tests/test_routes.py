"""
Tests for the FastAPI routes.

The app runs through ``TestClient`` against an isolated Settings singleton;
the Gemini service is replaced by ``FakeAI`` after startup.
"""

import pytest
from fastapi.testclient import TestClient

from manuscripta.gui.app import app
from manuscripta.gui.state import state
from manuscripta.services.survey_service import INCOMPLETE_MESSAGE


@pytest.fixture
def client(settings, fake_ai):
    with TestClient(app) as test_client:
        state.ai = fake_ai
        yield test_client


@pytest.fixture
def stored(client, project):
    """The ``project`` fixture, saved through the live repository."""
    state.repo.create(project)
    return project


def _url(project, path=""):
    return f"/api/projects/{project.id}{path}"


class TestWorkflowRoutes:

    def test_index_renders(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert 'data-step="landing"' in response.text

    def test_create_project_flow(self, client):
        assert client.get("/api/workflow").json()["step"] == "landing"

        response = client.post("/workflow/start-fresh")
        assert response.status_code == 409
        assert response.json() == {"error": "Cannot start a new project right now."}

        assert client.post("/workflow/new").json()["modal_open"] is True
        assert client.post("/workflow/start-fresh").json()["step"] == "config"
        response = client.post("/workflow/config", json={"style": "APA", "methodology": "Qualitative"})
        assert response.json()["step"] == "topic_architect"

        response = client.post(
            "/create/finalize",
            json={"topic": "Remote Work and Mental Health", "theme": "remote work"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Remote Work and Mental Health"
        assert data["citation_style"] == "APA"
        assert data["owner"] == "Test Author"
        assert data["references"] == []
        assert all(value == "" for value in data["sections"].values())

        assert client.get("/api/workflow").json()["step"] == "project_library"
        assert [p["id"] for p in client.get("/api/projects").json()] == [data["id"]]

    def test_blank_topic_rejected(self, client):
        client.post("/workflow/new")
        client.post("/workflow/start-fresh")
        client.post("/workflow/config", json={"style": "MLA", "methodology": "Quantitative"})
        response = client.post("/create/finalize", json={"topic": "  "})
        assert response.status_code == 422
        assert response.json() == {"error": "Project title cannot be empty."}

    def test_theme_schedules_suggestions(self, client):
        response = client.post("/create/theme", data={"theme": "remote work"})
        assert response.status_code == 200
        assert "remote work" in response.text

    def test_project_list_partial(self, client, stored):
        response = client.get("/projects")
        assert stored.title in response.text


class TestProjectRoutes:

    def test_get_missing_project(self, client):
        response = client.get("/api/projects/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Project not found."}

    def test_open_binds_first_section(self, client, stored):
        data = client.post(f"/projects/{stored.id}/open").json()
        assert data["workflow"]["step"] == "dashboard"
        assert data["workflow"]["current_project_id"] == stored.id
        assert data["section"] == "Abstract"
        assert 'class="placeholder"' in data["html"]

    def test_delete_project(self, client, stored):
        client.post(f"/projects/{stored.id}/open")
        response = client.delete(_url(stored))
        assert response.json()["workflow"]["step"] == "project_library"
        assert stored.id not in state.sessions
        assert client.delete(_url(stored)).status_code == 404

    def test_upload_requires_ai(self, client):
        state.ai = None
        response = client.post(
            "/api/projects/upload",
            files={"file": ("draft.txt", b"Manuscript text", "text/plain")},
        )
        assert response.status_code == 503
        assert response.json() == {"error": "No LLM profile is configured."}

    def test_upload_creates_project(self, client, fake_ai):
        response = client.post(
            "/api/projects/upload",
            files={"file": ("Field Notes.txt", b"Manuscript text", "text/plain")},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Field Notes"
        assert data["theme"] == "Uploaded manuscript"
        assert data["sections"]["Methodology"] == "<p>Interviews.</p>"
        assert state.repo.get(data["id"]) is not None

    def test_upload_unsupported_type(self, client):
        response = client.post(
            "/api/projects/upload",
            files={"file": ("scan.png", b"\x89PNG", "image/png")},
        )
        assert response.status_code == 422

    def test_export(self, client, stored, settings):
        response = client.post(f"/projects/{stored.id}/export")
        assert "toast-success" in response.text
        assert len(list(settings.export_dir.glob("*.md"))) == 1

    def test_export_missing_project(self, client):
        response = client.post("/projects/missing/export")
        assert "toast-error" in response.text


class TestEditorRoutes:

    def test_input_writes_through(self, client, stored):
        client.post(_url(stored, "/sections/Background/bind"))
        response = client.post(
            _url(stored, "/editor/input"),
            json={"html": "<p>Draft</p>", "selection_start": 8},
        )
        assert response.json()["state"] == "dirty"
        assert state.repo.get(stored.id).sections["Background"] == "<p>Draft</p>"

        surface = client.post(_url(stored, "/editor/blur")).json()
        assert surface["state"] == "idle"
        assert surface["html"] == "<p>Draft</p>"

    def test_bind_unknown_section(self, client, stored):
        response = client.post(_url(stored, "/sections/Nowhere/bind"))
        assert response.status_code == 404

    def test_command(self, client, stored):
        client.post(_url(stored, "/sections/Background/bind"))
        client.post(_url(stored, "/editor/input"), json={"html": "<p>Hello</p>", "selection_start": 3})
        surface = client.post(_url(stored, "/editor/command"), json={"command": "bold"}).json()
        assert surface["html"] == "<p><b></b>Hello</p>"
        assert surface["formats"]["bold"] is True

        response = client.post(_url(stored, "/editor/command"), json={"command": "strike"})
        assert response.status_code == 422

    def test_stats(self, client, stored):
        client.post(_url(stored, "/sections/Background/bind"))
        client.post(_url(stored, "/editor/input"), json={"html": "<p>one two three</p>"})
        stats = client.get(_url(stored, "/editor/stats"), params={"height": 2200, "scroll": 0}).json()
        assert stats == {"words": 3, "characters": 13, "total_pages": 3, "current_page": 1}

    def test_add_and_remove_sections(self, client, stored):
        response = client.post(_url(stored, "/sections"), json={"name": "Background"})
        assert response.status_code == 409
        assert response.json() == {"error": 'A section named "Background" already exists.'}

        response = client.post(_url(stored, "/sections"), json={"name": "Discussion"})
        assert response.status_code == 201
        assert response.json()["sections"][-1] == "Discussion"

        client.post(_url(stored, "/sections/Discussion/bind"))
        response = client.delete(_url(stored, "/sections/Discussion"))
        assert "Discussion" not in response.json()["sections"]
        assert state.sessions[stored.id].editor.bound_section is None
        assert client.delete(_url(stored, "/sections/Discussion")).status_code == 404

    def test_generate_section(self, client, stored, fake_ai):
        client.post(_url(stored, "/sections/Analysis/bind"))
        surface = client.post(_url(stored, "/sections/Analysis/generate")).json()
        assert surface["html"] == "<p>Generated text.</p>"
        assert fake_ai.calls[-1][0] == "generate_section"

        fake_ai.fail = True
        response = client.post(_url(stored, "/sections/Analysis/generate"))
        assert response.status_code == 502
        assert state.repo.get(stored.id).sections["Analysis"] == "<p>Generated text.</p>"

    def test_generate_unknown_section(self, client, stored, fake_ai):
        response = client.post(_url(stored, "/sections/Nowhere/generate"))
        assert response.status_code == 404
        assert response.json() == {"error": 'Unknown section "Nowhere".'}
        assert fake_ai.calls == []
        assert "Nowhere" not in state.repo.get(stored.id).sections


class TestSourceRoutes:

    def test_search_and_cite(self, client, stored):
        client.post(_url(stored, "/sections/Background/bind"))
        client.post(_url(stored, "/editor/input"), json={"html": "<p>AB</p>", "selection_start": 4})

        response = client.post(_url(stored, "/sources/search"), json={"query": "AI in education"})
        assert "AI Tutors in the Classroom" in response.text

        data = client.post(_url(stored, "/sources/0/cite")).json()
        assert data["in_text"] == "(Zhang, 2023)"
        assert data["index"] == 1
        assert data["html"] == "<p>A(Zhang, 2023)B</p>"

        saved = state.repo.get(stored.id)
        assert len(saved.references) == 1
        assert saved.sections["References"] == f"<p>{data['bibliography']}</p>"

    def test_cite_unknown_index(self, client, stored):
        client.post(_url(stored, "/sections/Background/bind"))
        assert client.post(_url(stored, "/sources/3/cite")).status_code == 404

    def test_suggestion_accept(self, client, stored):
        client.post(f"/projects/{stored.id}/open")
        state.sessions[stored.id].panel.suggested_query = "remote work wellbeing"
        data = client.post(_url(stored, "/suggestion/accept")).json()
        assert data == {"query": "remote work wellbeing", "suggested_query": ""}
        assert client.get(_url(stored, "/suggestion")).json()["query"] == "remote work wellbeing"


class TestSurveyRoutes:

    def test_edit_and_submit(self, client, stored):
        response = client.put(_url(stored, "/questions"), json={"questions": [
            {"label": "How do you feel?"},
            {"type": "multiple-choice", "label": "Where?", "options": ["Home", "Office"]},
        ]})
        assert [q["id"] for q in response.json()["questions"]] == ["q1", "q2"]

        survey = client.get(_url(stored, "/survey")).json()
        assert survey["title"] == stored.title
        assert len(survey["questions"]) == 2

        response = client.post(_url(stored, "/survey"), json={"answers": {"q1": "Fine"}})
        assert response.status_code == 422
        assert response.json() == {"error": INCOMPLETE_MESSAGE}

        response = client.post(_url(stored, "/survey"), json={"answers": {"q1": "Fine", "q2": "Home"}})
        assert response.status_code == 201
        assert client.get(_url(stored, "/responses")).json() == [{"q1": "Fine", "q2": "Home"}]

    def test_generate_questions(self, client, stored):
        data = client.post(_url(stored, "/questions/generate")).json()
        assert [q["id"] for q in data["questions"]] == ["q1", "q2"]
        assert len(state.repo.get(stored.id).questions) == 2

    def test_survey_for_missing_project(self, client):
        assert client.get("/api/projects/missing/survey").status_code == 404


class TestLLMProfileRoutes:

    def test_profile_crud(self, client, settings):
        state.ai = None
        response = client.post(
            "/api/llm-profiles",
            json={"name": "Work", "model": "gemini-2.5-flash", "api_key": "secret"},
        )
        assert response.status_code == 201
        pid = response.json()["id"]
        assert client.get("/api/llm-profiles").json()["active"] == pid
        assert (settings.metadata_dir / "llm_profiles.yaml").exists()
        assert state.ai is not None

        assert client.put("/api/llm-profiles/active", json={"id": "nope"}).status_code == 404

        response = client.put(
            f"/api/llm-profiles/{pid}",
            json={"name": "Renamed", "model": "gemini-2.5-pro", "api_key": "secret"},
        )
        assert response.json()["model"] == "gemini-2.5-pro"

        assert client.delete(f"/api/llm-profiles/{pid}").json() == {"ok": True}
        assert client.get("/api/llm-profiles").json() == {"active": None, "profiles": []}
        assert state.ai is None

    def test_model_registry(self, client):
        ids = [m["id"] for m in client.get("/api/llm-models").json()]
        assert "gemini-2.5-flash" in ids
