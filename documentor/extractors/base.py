"""Base classes for structural extractor plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import FrozenSet, Tuple

from ..models import ComponentInfo, DatabaseQuery, FileType, FunctionInfo, PageInfo, RouteInfo


@dataclass(frozen=True)
class ExtractionResult:
    """Records recognized in a single file."""

    functions: Tuple[FunctionInfo, ...] = ()
    components: Tuple[ComponentInfo, ...] = ()
    routes: Tuple[RouteInfo, ...] = ()
    queries: Tuple[DatabaseQuery, ...] = ()
    pages: Tuple[PageInfo, ...] = ()
    imports: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls()

    def merge(self, other: "ExtractionResult") -> "ExtractionResult":
        return ExtractionResult(
            functions=self.functions + other.functions,
            components=self.components + other.components,
            routes=self.routes + other.routes,
            queries=self.queries + other.queries,
            pages=self.pages + other.pages,
            imports=self.imports + tuple(name for name in other.imports if name not in self.imports),
        )


class Extractor(ABC):
    """Contract for extractors that recognize structure in one file's text.

    ``suffixes`` lists the lower-case file suffixes an extractor reads; when it
    is empty the registry offers the extractor every file. Files classified as
    one of ``skipped_types`` are never offered.
    """

    name: str = "extractor"
    suffixes: FrozenSet[str] = frozenset()
    skipped_types: FrozenSet[FileType] = frozenset()

    def supports(self, path: str, file_type: FileType) -> bool:
        """Return True when this extractor understands ``path``."""
        if file_type in self.skipped_types:
            return False
        return not self.suffixes or PurePosixPath(path).suffix.lower() in self.suffixes

    @abstractmethod
    def extract(self, path: str, text: str, file_type: FileType) -> ExtractionResult:
        """Return records found in ``text``; unrecognized constructs are omitted."""
