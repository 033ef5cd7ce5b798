"""Tests for documentor.orchestrator."""

from __future__ import annotations

import asyncio
import json
import threading
from pathlib import Path

import pytest

from documentor.analyzer import CodebaseAnalyzer
from documentor.config import ConfigError
from documentor.models import CodebaseAnalysis, GeneratedDocumentation
from documentor.orchestrator import Orchestrator, RegenerationInProgressError
from documentor.stores import DocumentationStore


class BlockingAnalyzer:
    """Analyzer double that holds the pipeline open until released."""

    def __init__(self) -> None:
        self.inner = CodebaseAnalyzer()
        self.started = threading.Event()
        self.release = threading.Event()

    def analyze(self, root, progress=None) -> CodebaseAnalysis:  # type: ignore[no-untyped-def]
        self.started.set()
        self.release.wait(5)
        return self.inner.analyze(root, progress)


class ExplodingAnalyzer:
    """Analyzer double that must never be reached."""

    def analyze(self, root, progress=None) -> CodebaseAnalysis:  # type: ignore[no-untyped-def]
        raise AssertionError("analysis should not run")


def test_regenerate_writes_artifact(sample_project: Path) -> None:
    statuses: list[str] = []
    orchestrator = Orchestrator(sample_project)

    documentation = orchestrator.regenerate(statuses.append)

    artifact = sample_project / "docs" / "documentation.json"
    assert artifact.exists()
    payload = json.loads(artifact.read_text(encoding="utf-8"))
    assert payload["generated_at"] == documentation.generated_at
    assert len(payload["api_documentation"]) == 2
    assert orchestrator.current() == documentation
    assert "Saving documentation..." in statuses
    assert not orchestrator.is_running


def test_regenerate_honours_output_override(sample_project: Path, tmp_path: Path) -> None:
    target = tmp_path / "published"

    Orchestrator(sample_project, output_dir=target).regenerate()

    assert (target / "documentation.json").exists()
    assert not (sample_project / "docs").exists()


def test_config_error_writes_nothing(sample_project: Path) -> None:
    (sample_project / "docs").write_text("occupied", encoding="utf-8")
    orchestrator = Orchestrator(sample_project)

    with pytest.raises(ConfigError):
        orchestrator.regenerate()

    assert (sample_project / "docs").read_text(encoding="utf-8") == "occupied"
    assert orchestrator.current() is None
    assert not orchestrator.is_running


def test_non_waiting_regeneration_is_rejected_while_busy(sample_project: Path) -> None:
    analyzer = BlockingAnalyzer()
    orchestrator = Orchestrator(sample_project, analyzer=analyzer)  # type: ignore[arg-type]
    results: list[GeneratedDocumentation] = []

    worker = threading.Thread(target=lambda: results.append(orchestrator.regenerate()))
    worker.start()
    try:
        assert analyzer.started.wait(5)
        assert orchestrator.is_running
        with pytest.raises(RegenerationInProgressError):
            orchestrator.regenerate(wait=False)
    finally:
        analyzer.release.set()
        worker.join(5)

    assert len(results) == 1
    assert not orchestrator.is_running


def test_waiting_regenerations_run_one_at_a_time(sample_project: Path) -> None:
    orchestrator = Orchestrator(sample_project)
    results: list[GeneratedDocumentation] = []

    workers = [threading.Thread(target=lambda: results.append(orchestrator.regenerate())) for _ in range(3)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(30)

    assert len(results) == 3
    stored = json.loads((sample_project / "docs" / "documentation.json").read_text(encoding="utf-8"))
    assert stored["generated_at"] in {item.generated_at for item in results}


def test_observers_receive_new_documentation(sample_project: Path) -> None:
    orchestrator = Orchestrator(sample_project)
    received: list[GeneratedDocumentation] = []
    removed: list[GeneratedDocumentation] = []

    def _broken(_: GeneratedDocumentation) -> None:
        raise RuntimeError("observer failure")

    orchestrator.subscribe(_broken)
    orchestrator.subscribe(received.append)
    unsubscribe = orchestrator.subscribe(removed.append)
    unsubscribe()

    documentation = orchestrator.regenerate()
    orchestrator.wait_for_notifications(5)

    assert received == [documentation]
    assert removed == []


def test_load_or_generate_prefers_stored_artifact(sample_project: Path) -> None:
    generated = Orchestrator(sample_project).load_or_generate()

    reloaded = Orchestrator(sample_project, analyzer=ExplodingAnalyzer()).load_or_generate()  # type: ignore[arg-type]

    assert reloaded == generated


def test_regenerate_async_runs_pipeline(sample_project: Path) -> None:
    orchestrator = Orchestrator(sample_project)

    documentation = asyncio.run(orchestrator.regenerate_async())

    assert orchestrator.load() == documentation


def test_analyze_does_not_write(sample_project: Path) -> None:
    analysis = Orchestrator(sample_project).analyze()

    assert len(analysis.routes) == 2
    assert not (sample_project / "docs").exists()


def test_injected_store_is_kept_across_regenerations(sample_project: Path, tmp_path: Path) -> None:
    store = DocumentationStore(tmp_path / "shared")
    orchestrator = Orchestrator(sample_project, store=store)

    documentation = orchestrator.regenerate()

    assert (tmp_path / "shared" / "documentation.json").exists()
    assert not (sample_project / "docs").exists()
    assert orchestrator.current() == documentation
    assert store.current() == documentation
    assert orchestrator.load() == documentation
