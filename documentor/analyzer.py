"""Codebase analysis: scan, extract in parallel, then resolve cross-file links."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from . import repo_scanner
from .config import DEFAULT_MAX_WORKERS, DocumentorConfig
from .extractors import ExtractionResult, Extractor, ExtractorRegistry
from .logging import ProgressCallback, get_logger, progress_sink
from .models import CodebaseAnalysis, FileInfo
from .project import detect_frameworks, load_project_metadata
from .repo_scanner import ScannedFile, SourceScanner
from .resolution import resolve

logger = get_logger("analyzer")


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class _FileOutcome:
    """Result of reading and extracting one scanned file."""

    info: Optional[FileInfo]
    result: ExtractionResult
    warnings: Tuple[str, ...] = ()


class CodebaseAnalyzer:
    """Builds one immutable :class:`CodebaseAnalysis` snapshot per call to :meth:`analyze`."""

    def __init__(
        self,
        scanner: SourceScanner | None = None,
        extractors: Optional[Iterable[Extractor]] = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        project_name: Optional[str] = None,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.scanner = scanner or SourceScanner()
        self.registry = ExtractorRegistry(extractors) if extractors is not None else ExtractorRegistry.discover()
        self.max_workers = max(1, max_workers)
        self.project_name = project_name
        self._clock = clock

    @classmethod
    def from_config(cls, config: DocumentorConfig) -> "CodebaseAnalyzer":
        ignore = list(config.exclude_paths)
        output_pattern = config.output_exclude_pattern()
        if output_pattern:
            ignore.append(output_pattern)
        scanner = SourceScanner(
            ignore_patterns=ignore,
            follow_symlinks=config.follow_symlinks,
            max_file_size=config.max_file_size,
        )
        return cls(
            scanner,
            max_workers=config.max_workers,
            project_name=config.project_name,
        )

    def analyze(self, root: str | Path, progress: ProgressCallback | None = None) -> CodebaseAnalysis:
        """Analyze ``root``; per-file problems become warnings, anything else propagates."""
        emit = progress_sink(progress, logger)
        root_path = Path(root).expanduser().resolve()

        emit("Discovering files...")
        scanned = list(self.scanner.scan(root_path))
        warnings: List[str] = list(self.scanner.warnings)
        logger.debug("Scanner discovered %d files", len(scanned))

        emit(f"Extracting structure from {len(scanned)} files...")
        outcomes = self._extract_all(scanned)

        files: List[FileInfo] = []
        functions, components, routes, queries, pages = [], [], [], [], []
        imports: List[str] = []
        for outcome in outcomes:
            warnings.extend(outcome.warnings)
            if outcome.info is None:
                continue
            files.append(outcome.info)
            functions.extend(outcome.result.functions)
            components.extend(outcome.result.components)
            routes.extend(outcome.result.routes)
            queries.extend(outcome.result.queries)
            pages.extend(outcome.result.pages)
            imports.extend(outcome.result.imports)
        files.sort(key=lambda info: info.path)

        emit("Resolving cross-file relationships...")
        resolved = resolve(files, functions, components, routes, queries, pages)

        metadata = load_project_metadata(root_path, self.project_name)
        frameworks = detect_frameworks(metadata.dependencies, imports)

        analysis = CodebaseAnalysis(
            root=str(root_path),
            project_name=metadata.name,
            files=tuple(files),
            functions=resolved.functions,
            components=resolved.components,
            routes=resolved.routes,
            queries=resolved.queries,
            pages=resolved.pages,
            frameworks=frameworks,
            scripts=metadata.scripts,
            warnings=tuple(warnings),
            analyzed_at=self._clock(),
        )
        emit(
            f"Analysis complete: {len(analysis.files)} files, {len(analysis.routes)} routes, "
            f"{len(analysis.components)} components, {len(analysis.queries)} queries"
        )
        return analysis

    def _extract_all(self, scanned: Sequence[ScannedFile]) -> List[_FileOutcome]:
        if not scanned:
            return []
        workers = min(self.max_workers, len(scanned))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="documentor-extract") as pool:
            # map() preserves input order; leaving the block joins every worker.
            return list(pool.map(self._extract_one, scanned))

    def _extract_one(self, scanned: ScannedFile) -> _FileOutcome:
        try:
            text = repo_scanner.read_text(scanned.path)
        except OSError as exc:
            message = f"Skipping unreadable file {scanned.rel_path}: {exc}"
            logger.warning("%s", message)
            return _FileOutcome(info=None, result=ExtractionResult.empty(), warnings=(message,))

        info = FileInfo(
            path=scanned.rel_path,
            file_type=scanned.file_type,
            size=scanned.size,
            last_modified=scanned.last_modified,
        )
        result, warnings = self.registry.extract(scanned.rel_path, text, scanned.file_type)
        return _FileOutcome(info=info, result=result, warnings=warnings)


__all__ = ["CodebaseAnalyzer", "utc_timestamp"]
