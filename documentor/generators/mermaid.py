"""Mermaid architecture diagram rendering."""

from __future__ import annotations

from typing import Dict, List, Set, Tuple

from ..models import CodebaseAnalysis, FileType
from ..slug import node_id

_LAYER_TITLES: Dict[FileType, str] = {
    FileType.COMPONENT: "Frontend Components",
    FileType.ROUTE: "API Routes",
    FileType.SERVICE: "Services",
    FileType.DATABASE: "Data Layer",
    FileType.CONFIG: "Configuration",
    FileType.TEST: "Tests",
    FileType.STYLE: "Styles",
    FileType.OTHER: "Other Files",
}

_CLASS_STYLES: Dict[FileType, str] = {
    FileType.COMPONENT: "fill:#e1f5fe,stroke:#01579b,stroke-width:2px",
    FileType.ROUTE: "fill:#f3e5f5,stroke:#4a148c,stroke-width:2px",
    FileType.SERVICE: "fill:#ede7f6,stroke:#311b92,stroke-width:2px",
    FileType.DATABASE: "fill:#e8f5e8,stroke:#1b5e20,stroke-width:2px",
    FileType.CONFIG: "fill:#fff3e0,stroke:#e65100,stroke-width:1px",
    FileType.TEST: "fill:#f1f8e9,stroke:#33691e,stroke-width:1px",
    FileType.STYLE: "fill:#fce4ec,stroke:#880e4f,stroke-width:1px",
    FileType.OTHER: "fill:#eceff1,stroke:#37474f,stroke-width:1px",
}

Edge = Tuple[str, str, str]


class MermaidGenerator:
    """Renders a ``graph TB`` diagram with one subgraph per file type."""

    def generate(self, analysis: CodebaseAnalysis) -> str:
        lines: List[str] = ["graph TB"]
        present: List[FileType] = []

        for file_type in FileType:
            members = sorted(info.path for info in analysis.files if info.file_type is file_type)
            if not members:
                continue
            present.append(file_type)
            lines.append(f'    subgraph {file_type.value}_layer["{_LAYER_TITLES[file_type]}"]')
            lines.extend(f'        {node_id(path)}["{_label(path)}"]' for path in members)
            lines.append("    end")

        edges = self.edges(analysis)
        if edges:
            lines.append("")
            lines.extend(f"    {node_id(source)} {arrow} {node_id(target)}" for source, arrow, target in edges)

        if present:
            lines.append("")
            for file_type in present:
                lines.append(f"    classDef {file_type.value}File {_CLASS_STYLES[file_type]}")
            for file_type in present:
                ids = ",".join(
                    node_id(info.path)
                    for info in sorted(analysis.files, key=lambda item: item.path)
                    if info.file_type is file_type
                )
                lines.append(f"    class {ids} {file_type.value}File")

        return "\n".join(lines) + "\n"

    @staticmethod
    def edges(analysis: CodebaseAnalysis) -> List[Edge]:
        """Return deduplicated, sorted ``(source, arrow, target)`` file edges."""
        known = {info.path for info in analysis.files}
        edges: Set[Edge] = set()

        def _add(source: str, arrow: str, target: str | None) -> None:
            if target is None or source == target or target not in known or source not in known:
                return
            edges.add((source, arrow, target))

        for route in analysis.routes:
            if route.handler_link is not None and route.handler_link.is_linked:
                _add(route.file, "-->", route.handler_link.target_file)
            for link in route.service_links:
                if link.is_linked:
                    _add(route.file, "-->", link.target_file)
            for key in route.queries:
                query = analysis.query(key)
                if query is not None:
                    _add(route.file, "-.->", query.file)

        for component in analysis.components:
            for link in component.route_links:
                if link.is_linked:
                    _add(component.file, "-->", link.target_file)

        return sorted(edges, key=lambda edge: (edge[0], edge[2], edge[1]))


def _label(path: str) -> str:
    return path.replace('"', "#quot;")


__all__ = ["MermaidGenerator"]
