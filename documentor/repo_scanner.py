"""Source tree traversal, ignore rules, and per-file classification."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Set, Tuple

from .classifier import FileClassifier
from .config import DEFAULT_MAX_FILE_SIZE
from .logging import get_logger
from .models import FileType

DEFAULT_IGNORE_DIRS = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "bower_components",
        "vendor",
        "dist",
        "build",
        "out",
        ".next",
        ".nuxt",
        ".svelte-kit",
        "coverage",
        ".turbo",
        ".cache",
        "__pycache__",
        ".pytest_cache",
        ".mypy_cache",
        ".venv",
        "venv",
        ".tox",
        ".idea",
        ".vscode",
    }
)

DEFAULT_IGNORE_GLOBS: Tuple[str, ...] = (
    "*.min.js",
    "*.min.css",
    "*.map",
    "*.lock",
    "package-lock.json",
    ".DS_Store",
    "Thumbs.db",
)

_BINARY_SNIFF_BYTES = 8192

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or configuration."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def read_text(path: Path) -> str:
    """Read a source file as UTF-8, replacing undecodable bytes."""
    with path.open("rb") as handle:
        raw = handle.read()
    return raw.decode("utf-8", errors="replace")


def _looks_binary(path: Path) -> bool:
    with path.open("rb") as handle:
        return b"\0" in handle.read(_BINARY_SNIFF_BYTES)


@dataclass(frozen=True)
class ScannedFile:
    """A candidate file discovered by the scanner."""

    path: Path
    rel_path: str
    file_type: FileType
    size: int
    last_modified: float


@dataclass
class SourceScanner:
    """Walks a project root and yields classified candidate files.

    Every call to :meth:`scan` performs a fresh traversal. Problems with
    individual entries are logged and appended to :attr:`warnings`; they never
    stop the walk.
    """

    ignore_patterns: Sequence[str] = ()
    classifier: FileClassifier = field(default_factory=FileClassifier)
    follow_symlinks: bool = True
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    use_gitignore: bool = True
    warnings: List[str] = field(default_factory=list)

    def scan(self, root: str | Path) -> Iterator[ScannedFile]:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project root not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project root is not a directory: {root}")
        self.warnings = []
        return self._walk(root_path, self._load_rules(root_path))

    def _load_rules(self, root: Path) -> List[IgnoreRule]:
        rules: List[IgnoreRule] = []
        for pattern in DEFAULT_IGNORE_GLOBS:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        if self.use_gitignore:
            rules.extend(parse_gitignore(root / ".gitignore"))
        for pattern in self.ignore_patterns:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return rules

    def _warn(self, message: str, *args: object) -> None:
        text = message % args if args else message
        logger.warning("%s", text)
        self.warnings.append(text)

    def _walk(self, root: Path, rules: Sequence[IgnoreRule]) -> Iterator[ScannedFile]:
        visited: Set[Tuple[int, int]] = set()
        root_stat = root.stat()
        visited.add((root_stat.st_dev, root_stat.st_ino))

        def _on_error(error: OSError) -> None:
            self._warn("Skipping unreadable directory %s: %s", error.filename, error.strerror)

        for dirpath, dirnames, filenames in os.walk(
            root, followlinks=self.follow_symlinks, onerror=_on_error
        ):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept: List[str] = []
            for name in sorted(dirnames):
                if name in DEFAULT_IGNORE_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                candidate = current_dir / name
                if candidate.is_symlink():
                    if not self.follow_symlinks:
                        continue
                    try:
                        target_stat = candidate.stat()
                    except OSError as exc:
                        self._warn("Skipping broken symlink %s: %s", rel_path, exc)
                        continue
                    identity = (target_stat.st_dev, target_stat.st_ino)
                    if identity in visited:
                        self._warn("Skipping symlink cycle at %s", rel_path)
                        continue
                    visited.add(identity)
                else:
                    try:
                        dir_stat = candidate.stat()
                    except OSError as exc:
                        self._warn("Skipping unreadable directory %s: %s", rel_path, exc)
                        continue
                    visited.add((dir_stat.st_dev, dir_stat.st_ino))
                kept.append(name)
            dirnames[:] = kept

            for filename in sorted(filenames):
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                scanned = self._inspect(current_dir / filename, rel_path)
                if scanned is not None:
                    yield scanned

    def _inspect(self, path: Path, rel_path: str) -> Optional[ScannedFile]:
        try:
            stat_result = path.stat()
            if not path.is_file():
                return None
            if stat_result.st_size > self.max_file_size:
                self._warn(
                    "Skipping %s: %d bytes exceeds the %d byte limit",
                    rel_path,
                    stat_result.st_size,
                    self.max_file_size,
                )
                return None
            if _looks_binary(path):
                logger.debug("Skipping binary file %s", rel_path)
                return None
        except OSError as exc:
            self._warn("Skipping unreadable file %s: %s", rel_path, exc)
            return None

        read_failure: List[OSError] = []

        def _content() -> Optional[str]:
            try:
                return read_text(path)
            except OSError as exc:
                read_failure.append(exc)
                return None

        try:
            file_type = self.classifier.classify(rel_path, _content)
        except Exception as exc:  # noqa: BLE001
            self._warn("Could not classify %s, treating it as other: %r", rel_path, exc)
            file_type = FileType.OTHER
        if read_failure:
            self._warn("Skipping unreadable file %s: %s", rel_path, read_failure[0])
            return None

        return ScannedFile(
            path=path,
            rel_path=rel_path,
            file_type=file_type,
            size=stat_result.st_size,
            last_modified=stat_result.st_mtime,
        )


__all__ = [
    "DEFAULT_IGNORE_DIRS",
    "DEFAULT_IGNORE_GLOBS",
    "IgnoreRule",
    "ScannedFile",
    "SourceScanner",
    "build_ignore_rule",
    "parse_gitignore",
    "read_text",
]
