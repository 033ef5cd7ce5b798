"""Extractor registry: plugin discovery and per-file dispatch."""

from __future__ import annotations

import functools
from importlib import metadata
from pathlib import PurePosixPath
from typing import Callable, Dict, Iterable, Iterator, List, Sequence, Tuple

from ..logging import get_logger
from ..models import FileType
from .base import ExtractionResult, Extractor
from .javascript import JavaScriptExtractor
from .python import PythonExtractor

ENTRY_POINT_GROUP = "documentor.extractors"

_BUILTIN: Tuple[Tuple[str, Callable[[], object]], ...] = (
    ("javascript", JavaScriptExtractor),
    ("python", PythonExtractor),
)

logger = get_logger("extractors")


class ExtractorRegistry:
    """Holds the active extractors and hands each scanned file to the ones that read it.

    Extractors are indexed by the suffixes they declare; those declaring none
    are offered every file. Selection keeps registration order, so merged
    results are deterministic.
    """

    def __init__(self, extractors: Iterable[Extractor]) -> None:
        self.extractors: Tuple[Extractor, ...] = tuple(extractors)
        self._by_suffix: Dict[str, List[int]] = {}
        self._any_suffix: List[int] = []
        for position, extractor in enumerate(self.extractors):
            if not extractor.suffixes:
                self._any_suffix.append(position)
            for suffix in extractor.suffixes:
                self._by_suffix.setdefault(suffix.lower(), []).append(position)

    @classmethod
    def discover(cls, enabled: Sequence[str] | None = None) -> "ExtractorRegistry":
        return cls(discover_extractors(enabled))

    def select(self, path: str, file_type: FileType) -> Tuple[Extractor, ...]:
        suffix = PurePosixPath(path).suffix.lower()
        positions = sorted(set(self._by_suffix.get(suffix, ())).union(self._any_suffix))
        return tuple(
            self.extractors[position]
            for position in positions
            if self.extractors[position].supports(path, file_type)
        )

    def extract(self, path: str, text: str, file_type: FileType) -> Tuple[ExtractionResult, Tuple[str, ...]]:
        """Merge the records of every selected extractor; a failing one becomes a warning."""
        result = ExtractionResult.empty()
        warnings: List[str] = []
        for extractor in self.select(path, file_type):
            try:
                result = result.merge(extractor.extract(path, text, file_type))
            except Exception as exc:  # noqa: BLE001
                message = f"{extractor.name} extractor failed on {path}: {exc}"
                logger.warning("%s", message)
                warnings.append(message)
        return result, tuple(warnings)


def discover_extractors(enabled: Sequence[str] | None = None) -> List[Extractor]:
    """Instantiate the built-in extractors followed by installed plugins.

    Plugins register under the ``documentor.extractors`` entry-point group and
    may name an :class:`Extractor` subclass, an instance, or a factory. The
    first extractor registered under a name wins. ``enabled`` limits the
    result to the listed names; naming an unknown extractor raises ValueError.
    """
    wanted = None if enabled is None else {name.lower() for name in enabled}
    chosen: Dict[str, Extractor] = {}
    for name, load in _candidates():
        key = name.lower()
        if key in chosen or (wanted is not None and key not in wanted):
            continue
        chosen[key] = _as_extractor(name, load())

    if wanted is not None:
        missing = sorted(wanted.difference(chosen))
        if missing:
            raise ValueError(f"Unknown extractors requested: {', '.join(missing)}")
    logger.debug("Active extractors: %s", ", ".join(chosen) or "none")
    return list(chosen.values())


def _candidates() -> Iterator[Tuple[str, Callable[[], object]]]:
    yield from _BUILTIN
    for entry in metadata.entry_points().select(group=ENTRY_POINT_GROUP):
        yield entry.name, functools.partial(_load_plugin, entry)


def _load_plugin(entry: metadata.EntryPoint) -> object:
    try:
        return entry.load()
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Failed to load extractor plugin '{entry.name}': {exc}") from exc


def _as_extractor(name: str, target: object) -> Extractor:
    if isinstance(target, type) and issubclass(target, Extractor):
        target = target()
    elif not isinstance(target, Extractor) and callable(target):
        target = target()
    if not isinstance(target, Extractor):
        raise TypeError(f"Extractor '{name}' must be an Extractor subclass, instance, or factory")
    return target


__all__ = ["ENTRY_POINT_GROUP", "ExtractorRegistry", "discover_extractors"]
