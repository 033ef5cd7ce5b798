"""Tests for documentor.repo_scanner."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from documentor.classifier import ClassificationRule, FileClassifier
from documentor.models import FileType
from documentor.repo_scanner import SourceScanner
from tests._fixtures.repo_builder import RepoBuilder


def test_scan_classifies_files_and_skips_ignored_directories(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/App.tsx": "export const App = () => <div />;\n",
            "server/api/users.js": "router.get('/users', listUsers);\n",
            "node_modules/react/index.js": "module.exports = {};\n",
            "dist/bundle.js": "console.log('built');\n",
            "public/vendor.min.js": "var a=1;\n",
            "package.json": '{"name": "demo"}\n',
        }
    )

    scanned = {item.rel_path: item for item in repo_builder.scan()}

    assert set(scanned) == {"package.json", "server/api/users.js", "src/App.tsx"}
    assert scanned["src/App.tsx"].file_type is FileType.COMPONENT
    assert scanned["server/api/users.js"].file_type is FileType.ROUTE
    assert scanned["package.json"].file_type is FileType.CONFIG
    assert scanned["src/App.tsx"].size > 0


def test_scan_order_is_sorted_and_restartable(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"b.js": "1\n", "a.js": "2\n", "lib/c.js": "3\n"})
    scanner = SourceScanner()

    first = [item.rel_path for item in scanner.scan(repo_builder.path())]
    second = [item.rel_path for item in scanner.scan(repo_builder.path())]

    assert first == ["a.js", "b.js", "lib/c.js"]
    assert first == second


def test_scan_honours_gitignore_and_exclude_patterns(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            ".gitignore": "generated/\n*.log\n!keep.log\n",
            "generated/out.js": "x\n",
            "debug.log": "noise\n",
            "keep.log": "signal\n",
            "fixtures/sample.js": "y\n",
            "src/index.js": "z\n",
        }
    )
    scanner = SourceScanner(ignore_patterns=["fixtures/"])

    paths = {item.rel_path for item in scanner.scan(repo_builder.path())}

    assert paths == {".gitignore", "keep.log", "src/index.js"}


def test_scan_rejects_missing_or_file_root(tmp_path: Path) -> None:
    scanner = SourceScanner()
    with pytest.raises(FileNotFoundError):
        scanner.scan(tmp_path / "missing")

    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        scanner.scan(target)


def test_scan_skips_oversize_and_binary_files(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"small.js": "ok\n", "big.js": "x" * 2048})
    (repo_builder.path() / "image.png").write_bytes(b"\x89PNG\x00\x00binary")
    scanner = SourceScanner(max_file_size=1024)

    paths = {item.rel_path for item in scanner.scan(repo_builder.path())}

    assert paths == {"small.js"}
    assert any("big.js" in warning for warning in scanner.warnings)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_scan_skips_symlink_cycles(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/index.js": "x\n"})
    loop = repo_builder.path() / "src" / "loop"
    try:
        loop.symlink_to(repo_builder.path(), target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")
    scanner = SourceScanner()

    paths = [item.rel_path for item in scanner.scan(repo_builder.path())]

    assert paths == ["src/index.js"]
    assert any("cycle" in warning for warning in scanner.warnings)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_scan_follows_symlinked_directories_unless_disabled(repo_builder: RepoBuilder, tmp_path: Path) -> None:
    external = tmp_path / "external"
    external.mkdir()
    (external / "util.js").write_text("x\n", encoding="utf-8")
    repo_builder.write({"src/index.js": "y\n"})
    try:
        (repo_builder.path() / "linked").symlink_to(external, target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    followed = [item.rel_path for item in SourceScanner().scan(repo_builder.path())]
    not_followed = [
        item.rel_path for item in SourceScanner(follow_symlinks=False).scan(repo_builder.path())
    ]

    assert followed == ["linked/util.js", "src/index.js"]
    assert not_followed == ["src/index.js"]


def test_unreadable_file_is_skipped_with_warning(
    repo_builder: RepoBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    from documentor import repo_scanner

    repo_builder.write({"server/index.js": "x\n", "server/other.js": "y\n"})
    original = repo_scanner.read_text

    def _read(path: Path) -> str:
        if path.name == "index.js":
            raise PermissionError("denied")
        return original(path)

    monkeypatch.setattr(repo_scanner, "read_text", _read)
    scanner = SourceScanner()

    paths = [item.rel_path for item in scanner.scan(repo_builder.path())]

    assert paths == ["server/other.js"]
    assert any("server/index.js" in warning for warning in scanner.warnings)


def test_failing_classification_rule_falls_back_to_other(repo_builder: RepoBuilder) -> None:
    def _explode(subject: object) -> bool:
        raise RuntimeError("rule exploded")

    repo_builder.write({"server/index.js": "x\n", "README.md": "# demo\n"})
    classifier = FileClassifier((ClassificationRule("explode", _explode, FileType.ROUTE),))
    scanner = SourceScanner(classifier=classifier)

    scanned = {item.rel_path: item.file_type for item in scanner.scan(repo_builder.path())}

    assert scanned == {"README.md": FileType.OTHER, "server/index.js": FileType.OTHER}
    assert len(scanner.warnings) == 2
    assert "server/index.js" in scanner.warnings[1]
