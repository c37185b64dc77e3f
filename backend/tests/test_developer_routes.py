from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from phazur.developer_routes import router
from phazur.milestone_store import milestone_store

app = FastAPI()
app.include_router(router)
client = TestClient(app)


def test_catalog_lists_paths_and_plans() -> None:
    payload = client.get("/api/developer/catalog").json()
    assert [entry["path"] for entry in payload["paths"]] == ["student", "employee", "owner"]
    first = payload["paths"][0]["milestones"][0]
    assert first["title"] == "Concept Exploration"
    assert first["completion_criteria"]
    assert payload["plans"]["team_growth"]["features"]["teamMembers"] == 50


def test_reset_clears_progress(database, captured_events) -> None:
    milestone_store.enroll("dev-learner", "student")
    response = client.post("/api/developer/reset", json={"user_id": "dev-learner"})
    assert response.status_code == 204
    assert milestone_store.fetch_rows("dev-learner") == []
    reset = [event for event in captured_events if event.name == "developer_progress_reset"]
    assert reset[0].payload == {"user_id": "dev-learner", "deleted": True}


def test_reset_rejects_blank_user() -> None:
    assert client.post("/api/developer/reset", json={"user_id": "   "}).status_code == 422
