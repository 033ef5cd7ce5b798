"""Tests for extractor discovery and the per-file extractor registry."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from documentor.extractors import (
    ExtractionResult,
    Extractor,
    ExtractorRegistry,
    JavaScriptExtractor,
    PythonExtractor,
    discover_extractors,
)
from documentor.models import FileType, FunctionInfo


class DummyExtractor(Extractor):
    """Test extractor used for plugin discovery validation."""

    name = "dummy"
    suffixes = frozenset({".dummy"})

    def extract(self, path, text, file_type):
        return ExtractionResult(functions=(FunctionInfo(name="dummy", file=path),))


class EverywhereExtractor(Extractor):
    """Declares no suffixes, so it is offered every file that is not a test."""

    name = "everywhere"
    skipped_types = frozenset({FileType.TEST})

    def extract(self, path, text, file_type):
        return ExtractionResult(imports=(f"seen:{path}",))


class BrokenExtractor(Extractor):
    name = "broken"
    suffixes = frozenset({".js"})

    def extract(self, path, text, file_type):
        raise RuntimeError("parser crashed")


def _entry_points(monkeypatch: pytest.MonkeyPatch, *entries: SimpleNamespace) -> None:
    class DummyEntryPoints(list):
        def select(self, **kwargs):
            if kwargs.get("group") == "documentor.extractors":
                return self
            return []

    monkeypatch.setattr(
        "documentor.extractors.registry.metadata.entry_points",
        lambda: DummyEntryPoints(entries),
    )


def test_discover_extractors_returns_builtin_extractors(monkeypatch: pytest.MonkeyPatch) -> None:
    _entry_points(monkeypatch)

    extractors = discover_extractors()

    assert [type(extractor) for extractor in extractors] == [JavaScriptExtractor, PythonExtractor]


def test_discover_extractors_respects_enabled_filter() -> None:
    extractors = discover_extractors(["python"])

    assert len(extractors) == 1
    assert isinstance(extractors[0], PythonExtractor)


def test_discover_extractors_loads_entry_points(monkeypatch: pytest.MonkeyPatch) -> None:
    _entry_points(monkeypatch, SimpleNamespace(name="dummy", load=lambda: DummyExtractor))

    extractors = discover_extractors(["dummy"])

    assert len(extractors) == 1
    assert isinstance(extractors[0], DummyExtractor)


def test_builtin_names_cannot_be_shadowed_by_plugins(monkeypatch: pytest.MonkeyPatch) -> None:
    _entry_points(monkeypatch, SimpleNamespace(name="python", load=lambda: DummyExtractor))

    extractors = discover_extractors(["python"])

    assert [type(extractor) for extractor in extractors] == [PythonExtractor]


def test_discover_extractors_rejects_non_extractor_entry_points(monkeypatch: pytest.MonkeyPatch) -> None:
    _entry_points(monkeypatch, SimpleNamespace(name="bogus", load=lambda: object()))

    with pytest.raises(TypeError):
        discover_extractors(["bogus"])


def test_plugin_import_failure_names_the_plugin(monkeypatch: pytest.MonkeyPatch) -> None:
    def _load():
        raise ImportError("missing dependency")

    _entry_points(monkeypatch, SimpleNamespace(name="flaky", load=_load))

    with pytest.raises(RuntimeError, match="flaky"):
        discover_extractors(["flaky"])


def test_discover_extractors_raises_for_unknown_name() -> None:
    with pytest.raises(ValueError):
        discover_extractors(["does-not-exist"])


def test_registry_selects_extractors_by_suffix_and_file_type() -> None:
    javascript, python, everywhere = JavaScriptExtractor(), PythonExtractor(), EverywhereExtractor()
    registry = ExtractorRegistry([javascript, python, everywhere])

    assert registry.select("src/App.tsx", FileType.COMPONENT) == (javascript, everywhere)
    assert registry.select("app/routes.py", FileType.ROUTE) == (python, everywhere)
    assert registry.select("vite.config.js", FileType.CONFIG) == (everywhere,)
    assert registry.select("src/App.test.tsx", FileType.TEST) == ()
    assert registry.select("README.md", FileType.OTHER) == (everywhere,)


def test_registry_merges_results_and_reports_failures() -> None:
    registry = ExtractorRegistry([BrokenExtractor(), EverywhereExtractor(), DummyExtractor()])

    result, warnings = registry.extract("server/index.js", "x", FileType.OTHER)

    assert result.imports == ("seen:server/index.js",)
    assert result.functions == ()
    assert warnings == ("broken extractor failed on server/index.js: parser crashed",)

    dummy_result, dummy_warnings = registry.extract("notes.dummy", "x", FileType.OTHER)
    assert [function.name for function in dummy_result.functions] == ["dummy"]
    assert dummy_warnings == ()


def test_extraction_results_merge_without_duplicate_imports() -> None:
    left = ExtractionResult(imports=("react", "axios"))
    right = ExtractionResult(imports=("axios", "lodash"))

    assert left.merge(right).imports == ("react", "axios", "lodash")
    assert ExtractionResult.empty().merge(left) == left
