"""Storage backends for generated documentation."""

from .documentation_store import ARTIFACT_NAME, DocumentationStore, DocumentationStoreError

__all__ = ["ARTIFACT_NAME", "DocumentationStore", "DocumentationStoreError"]
