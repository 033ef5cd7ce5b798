"""Structural extractors for JavaScript/TypeScript and Python sources."""

from __future__ import annotations

from .base import ExtractionResult, Extractor
from .javascript import JavaScriptExtractor
from .python import PythonExtractor
from .registry import ExtractorRegistry, discover_extractors

__all__ = [
    "ExtractionResult",
    "Extractor",
    "ExtractorRegistry",
    "JavaScriptExtractor",
    "PythonExtractor",
    "discover_extractors",
]
