"""Tests for the FastAPI service mode."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from documentor.analyzer import CodebaseAnalyzer
from documentor.models import CodebaseAnalysis
from documentor.orchestrator import Orchestrator
from documentor.service import create_app


class _BlockingAnalyzer:
    def __init__(self) -> None:
        self.inner = CodebaseAnalyzer()
        self.started = threading.Event()
        self.release = threading.Event()

    def analyze(self, root, progress=None) -> CodebaseAnalysis:  # type: ignore[no-untyped-def]
        self.started.set()
        self.release.wait(5)
        return self.inner.analyze(root, progress)


@pytest.fixture
def orchestrator(sample_project: Path) -> Orchestrator:
    return Orchestrator(sample_project)


@pytest.fixture
def client(orchestrator: Orchestrator) -> TestClient:
    return TestClient(create_app(orchestrator))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "regenerating": False}


def test_documentation_missing_before_generation(client: TestClient) -> None:
    response = client.get("/api/documentation")

    assert response.status_code == 404
    assert response.json()["detail"] == "Documentation has not been generated yet"
    assert client.get("/api/overview").status_code == 404


def test_regenerate_then_read_sections(client: TestClient) -> None:
    response = client.post("/api/regenerate")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["endpoints"] == 2
    assert body["components"] == 1
    assert body["user_flows"] == 1

    full = client.get("/api/documentation").json()
    assert full["generated_at"] == body["generated_at"]

    backend = client.get("/api/backend").json()
    assert backend["section"] == "backend"
    assert backend["generated_at"] == body["generated_at"]
    assert [group["file"] for group in backend["content"]["groups"]] == ["server/api/users.js"]

    overview = client.get("/api/overview").json()
    assert overview["content"].startswith("# sample-project")


def test_serves_artifact_written_by_another_process(sample_project: Path) -> None:
    Orchestrator(sample_project).regenerate()
    client = TestClient(create_app(Orchestrator(sample_project)))

    response = client.get("/api/architecture_diagram")

    assert response.status_code == 200
    assert response.json()["content"].startswith("graph TB")


def test_unknown_section_returns_404(client: TestClient) -> None:
    client.post("/api/regenerate")

    response = client.get("/api/secrets")

    assert response.status_code == 404
    assert "Unknown documentation section" in response.json()["detail"]


def test_regenerate_conflict_while_running(sample_project: Path) -> None:
    analyzer = _BlockingAnalyzer()
    orchestrator = Orchestrator(sample_project, analyzer=analyzer)  # type: ignore[arg-type]
    client = TestClient(create_app(orchestrator))

    worker = threading.Thread(target=orchestrator.regenerate)
    worker.start()
    try:
        assert analyzer.started.wait(5)
        assert client.get("/health").json()["regenerating"] is True
        response = client.post("/api/regenerate")
    finally:
        analyzer.release.set()
        worker.join(5)

    assert response.status_code == 409


def test_config_error_maps_to_400(sample_project: Path) -> None:
    (sample_project / "docs").write_text("occupied", encoding="utf-8")
    client = TestClient(create_app(Orchestrator(sample_project)))

    response = client.post("/api/regenerate")

    assert response.status_code == 400
    assert "not a directory" in response.json()["detail"]
