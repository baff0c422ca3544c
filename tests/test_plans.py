from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from ventry.app import create_app
from ventry.config import Settings


@pytest.fixture()
def client() -> TestClient:
    return TestClient(create_app(Settings(openai_api_key=None, max_generations=2)))


def _generate_payload(**overrides) -> dict[str, object]:
    payload: dict[str, object] = {
        "businessType": "Coffee Shop",
        "goals": "Increase weekday morning sales and build a loyalty program.",
        "planType": "strategic",
        "sessionId": "demo-session",
    }
    payload.update(overrides)
    return payload


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/plans/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_parse_endpoint_returns_tasks_and_goal_summary(client: TestClient) -> None:
    block = json.dumps(
        {
            "goalSummary": {"rephrased": "Sell more coffee", "difficulty": 12, "timeEstimate": 3, "timeUnit": "months"},
            "dailyTasks": [
                {"day": 2, "title": "Launch loyalty cards", "priority": "High"},
                {"day": 1, "title": "Set a marketing budget", "category": "Finance"},
            ],
        }
    )
    plan_text = f"# COFFEE SHOP: STRATEGIC PLAN\n\n```json\n{block}\n```"

    response = client.post("/plans/parse", json={"planText": plan_text, "businessType": "Coffee Shop"})

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "COFFEE SHOP: STRATEGIC PLAN"
    assert [task["day"] for task in data["tasks"]] == [1, 2]
    assert data["tasks"][0]["category"] == "Finance"
    assert data["tasks"][1]["priority"] == "High"
    assert data["goalSummary"] == {
        "rephrased": "Sell more coffee",
        "difficulty": 12,
        "timeEstimate": 3,
        "timeUnit": "months",
    }


def test_parse_endpoint_with_no_markers(client: TestClient) -> None:
    response = client.post("/plans/parse", json={"planText": "Nothing to see here."})

    assert response.status_code == 200
    assert response.json() == {"title": None, "tasks": [], "goalSummary": None}


def test_parse_endpoint_rejects_missing_text(client: TestClient) -> None:
    response = client.post("/plans/parse", json={})

    assert response.status_code == 422


@pytest.mark.parametrize("plan_type", ["strategic", "daily"])
def test_generate_returns_draft_plan(client: TestClient, plan_type: str) -> None:
    response = client.post("/plans/generate", json=_generate_payload(planType=plan_type, sessionId=None))

    assert response.status_code == 200
    data = response.json()
    assert data["planType"] == plan_type
    assert data["source"] == "draft"
    assert data["plan"].startswith("# COFFEE SHOP BUSINESS")
    assert data["title"].startswith("COFFEE SHOP BUSINESS")
    assert len(data["tasks"]) == 30
    assert data["goalSummary"]["timeUnit"] == "months"
    assert data["remainingGenerations"] is None


def test_generate_enforces_session_limit(client: TestClient) -> None:
    first = client.post("/plans/generate", json=_generate_payload())
    second = client.post("/plans/generate", json=_generate_payload())
    third = client.post("/plans/generate", json=_generate_payload())

    assert first.json()["remainingGenerations"] == 1
    assert second.json()["remainingGenerations"] == 0
    assert third.status_code == 403
    assert third.json()["detail"] == {
        "error": "Generation limit reached",
        "remainingGenerations": 0,
        "limitReached": True,
    }


def test_generate_validates_payload(client: TestClient) -> None:
    response = client.post("/plans/generate", json={"businessType": "Coffee Shop"})

    assert response.status_code == 422


def test_session_endpoint_returns_current_plan_and_history(client: TestClient) -> None:
    first = client.post("/plans/generate", json=_generate_payload()).json()
    second = client.post("/plans/generate", json=_generate_payload(planType="daily")).json()

    response = client.get("/plans/session/demo-session")

    assert response.status_code == 200
    data = response.json()
    assert data["sessionId"] == "demo-session"
    assert data["current"]["id"] == second["id"]
    assert [plan["id"] for plan in data["history"]] == [first["id"]]
    assert data["progress"] == {"total": 30, "completed": 0, "percent": 0}


def test_unknown_session_returns_404(client: TestClient) -> None:
    assert client.get("/plans/session/missing").status_code == 404
    assert client.get("/plans/session/missing/days/1").status_code == 404


def test_task_completion_round_trip(client: TestClient) -> None:
    plan = client.post("/plans/generate", json=_generate_payload()).json()
    task_id = plan["tasks"][0]["id"]

    response = client.patch(f"/plans/session/demo-session/tasks/{task_id}", json={"completed": True})

    assert response.status_code == 200
    assert response.json()["completed"] is True
    progress = client.get("/plans/session/demo-session").json()["progress"]
    assert progress == {"total": 30, "completed": 1, "percent": 3}

    missing = client.patch("/plans/session/demo-session/tasks/unknown", json={"completed": True})
    assert missing.status_code == 404


def test_day_listing(client: TestClient) -> None:
    client.post("/plans/generate", json=_generate_payload())

    response = client.get("/plans/session/demo-session/days/8")

    assert response.status_code == 200
    tasks = response.json()
    assert len(tasks) == 1
    assert tasks[0]["day"] == 8
    assert tasks[0]["week"] == 2


def test_delete_history_entry(client: TestClient) -> None:
    first = client.post("/plans/generate", json=_generate_payload()).json()
    client.post("/plans/generate", json=_generate_payload())

    response = client.delete(f"/plans/session/demo-session/history/{first['id']}")

    assert response.status_code == 204
    assert client.get("/plans/session/demo-session").json()["history"] == []
    assert client.delete(f"/plans/session/demo-session/history/{first['id']}").status_code == 404


def test_week_listing(client: TestClient) -> None:
    client.post("/plans/generate", json=_generate_payload())

    response = client.get("/plans/session/demo-session/weeks")

    assert response.status_code == 200
    weeks = response.json()
    assert list(weeks) == ["1", "2", "3", "4", "5"]
    assert [len(tasks) for tasks in weeks.values()] == [7, 7, 7, 7, 2]


def test_consult_endpoint_drafts_offline(client: TestClient) -> None:
    response = client.post(
        "/plans/consult",
        json={
            "prompt": "How can I grow my marketing reach?",
            "type": "consulting",
            "businessContext": "Coffee Shop",
            "businessLocation": "Austin",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "draft"
    assert "in Austin" in data["response"]
    assert "Marketing Launch & Promotion" in data["response"]


@pytest.mark.parametrize(
    "body",
    [
        {"type": "consulting"},
        {"prompt": "Help me plan"},
        {"prompt": "Help me plan", "type": "poetry"},
        {"prompt": "   ", "type": "consulting"},
    ],
)
def test_consult_endpoint_rejects_incomplete_requests(client: TestClient, body: dict[str, str]) -> None:
    response = client.post("/plans/consult", json=body)

    assert response.status_code == 422
