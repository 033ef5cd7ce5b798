"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest

from documentor.cli import _build_parser, main


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger("documentor")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "generate"])
    assert args.verbose is True
    assert args.command == "generate"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "--verbose", "--json", "project"])
    assert args.verbose is True
    assert args.json is True
    assert args.path == "project"


def test_cli_parses_serve_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve", "--host", "0.0.0.0", "--port", "9000", "--output", "site"])
    assert args.command == "serve"
    assert args.host == "0.0.0.0"
    assert args.port == 9000
    assert args.output == Path("site")


def test_generate_writes_documentation(sample_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["generate", str(sample_project)])

    out = capsys.readouterr().out
    assert "Documentation (2 endpoints, 1 components)" in out
    assert (sample_project / "docs" / "documentation.json").exists()


def test_generate_reuses_existing_artifact_unless_forced(sample_project: Path) -> None:
    artifact = sample_project / "docs" / "documentation.json"
    main(["generate", str(sample_project)])
    first = json.loads(artifact.read_text(encoding="utf-8"))["generated_at"]

    main(["generate", str(sample_project)])
    assert json.loads(artifact.read_text(encoding="utf-8"))["generated_at"] == first

    main(["generate", str(sample_project), "--force", "--output", str(sample_project / "out")])
    assert (sample_project / "out" / "documentation.json").exists()


def test_analyze_json_prints_analysis(sample_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["analyze", str(sample_project), "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["project_name"] == "sample-project"
    assert [route["path"] for route in payload["routes"]] == ["/users", "/users/:id"]
    assert not (sample_project / "docs").exists()


def test_analyze_prints_summary(sample_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["analyze", str(sample_project)])

    out = capsys.readouterr().out
    assert "Project: sample-project" in out
    assert "Routes: 2" in out
    assert "  GET /users -> <inline> (server/api/users.js)" in out


def test_generate_reports_config_errors(sample_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (sample_project / "docs").write_text("occupied", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(sample_project)])

    assert excinfo.value.code == 1
    assert "documentor generate failed: Output path is not a directory" in capsys.readouterr().err


def test_analyze_reports_missing_root(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "documentor analyze failed" in capsys.readouterr().err
