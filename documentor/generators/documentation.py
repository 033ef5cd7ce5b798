"""Synthesis of a :class:`GeneratedDocumentation` from one analysis snapshot."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..analyzer import utc_timestamp
from ..extractors.core import INLINE_HANDLER
from ..logging import ProgressCallback, get_logger, progress_sink
from ..models import (
    ApiEndpoint,
    BackendDoc,
    CodebaseAnalysis,
    ComponentDoc,
    ComponentGroup,
    ComponentInfo,
    ComponentKind,
    DatabaseDoc,
    DatabaseQuery,
    FileType,
    FrontendDoc,
    GeneratedDocumentation,
    Navigation,
    NavigationDoc,
    PageDoc,
    PageInfo,
    QueryDoc,
    QueryOperation,
    RouteGroup,
    RouteInfo,
    TableDoc,
    UiEvent,
    UserFlow,
    UserFlowStep,
)
from ..project import SERVER_FRAMEWORKS, UI_FRAMEWORKS
from ..resolution import match_route
from .mermaid import MermaidGenerator
from .narratives import build_deployment_guide, build_troubleshooting

logger = get_logger("generator")

UNKNOWN_TABLE = "(unknown)"
_OPERATION_ORDER = {operation: index for index, operation in enumerate(QueryOperation)}


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(values))


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


class DocumentationGenerator:
    """Turns a CodebaseAnalysis into the structured documentation model."""

    def __init__(
        self,
        mermaid: MermaidGenerator | None = None,
        *,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.mermaid = mermaid or MermaidGenerator()
        self._clock = clock

    def generate(
        self, analysis: CodebaseAnalysis, progress: ProgressCallback | None = None
    ) -> GeneratedDocumentation:
        emit = progress_sink(progress, logger)

        emit("Writing project overview...")
        overview = self.overview(analysis)
        emit("Documenting frontend components...")
        frontend = self.frontend(analysis)
        emit("Documenting backend routes...")
        backend = self.backend(analysis)
        emit("Documenting database access...")
        database = self.database(analysis)
        emit("Tracing user flows...")
        user_flows = self.user_flows(analysis)
        emit("Drawing architecture diagram...")
        diagram = self.mermaid.generate(analysis)
        emit("Compiling API reference...")
        api_documentation = tuple(
            sorted(backend.endpoints, key=lambda endpoint: (endpoint.path, endpoint.method, endpoint.file))
        )
        emit("Writing deployment guide...")
        deployment_guide = build_deployment_guide(analysis)
        emit("Writing troubleshooting guide...")
        troubleshooting = build_troubleshooting(analysis)

        documentation = GeneratedDocumentation(
            overview=overview,
            frontend=frontend,
            backend=backend,
            database=database,
            user_flows=user_flows,
            architecture_diagram=diagram,
            api_documentation=api_documentation,
            deployment_guide=deployment_guide,
            troubleshooting=troubleshooting,
            generated_at=self._clock(),
        )
        emit("Documentation generated")
        return documentation

    # ------------------------------------------------------------------
    # Overview

    def overview(self, analysis: CodebaseAnalysis) -> str:
        ui = [component for component in analysis.components if component.kind is ComponentKind.UI]
        services = [component for component in analysis.components if component.kind is ComponentKind.SERVICE]
        route_files = {route.file for route in analysis.routes}
        tables = {query.table for query in analysis.queries if query.table}

        lines = [f"# {analysis.project_name}", ""]
        summary = f"{analysis.project_name} contains {_plural(len(analysis.files), 'analyzed file')}."
        if analysis.frameworks:
            summary += " Detected frameworks: " + ", ".join(analysis.frameworks) + "."
        lines.extend([summary, ""])

        lines.extend(["## Architecture at a Glance", ""])
        lines.append(f"- {_plural(len(ui), 'UI component')} and {_plural(len(services), 'service module')}")
        lines.append(f"- {_plural(len(analysis.routes), 'HTTP route')} in {_plural(len(route_files), 'file')}")
        lines.append(
            f"- {_plural(len(analysis.queries), 'database operation')} on {_plural(len(tables), 'known table')}"
        )
        lines.append("")

        lines.extend(["## File Breakdown", "", "| Type | Files |", "| --- | --- |"])
        for file_type in FileType:
            count = len(analysis.files_of_type(file_type))
            if count:
                lines.append(f"| {file_type.value} | {count} |")

        if analysis.scripts:
            lines.extend(["", "## Scripts", ""])
            lines.extend(f"- `{name}`: `{command}`" for name, command in analysis.scripts)

        return "\n".join(lines).strip() + "\n"

    # ------------------------------------------------------------------
    # Frontend

    def frontend(self, analysis: CodebaseAnalysis) -> FrontendDoc:
        components = [component for component in analysis.components if component.kind is ComponentKind.UI]
        docs = tuple(_component_doc(component) for component in components)
        by_identity = {(component.name, component.file): component for component in components}
        ui_names = {component.name for component in components}
        pages = tuple(_page_doc(page, by_identity, ui_names) for page in analysis.pages)
        navigation = tuple(
            _navigation_doc(component, item) for component in components for item in component.navigation
        )

        groups: Dict[str, List[str]] = {}
        for component in components:
            directory = PurePosixPath(component.file).parent.as_posix()
            groups.setdefault(directory, []).append(component.name)
        group_docs = tuple(
            ComponentGroup(directory=directory, components=tuple(names))
            for directory, names in sorted(groups.items())
        )

        if components:
            directories = "1 directory" if len(groups) == 1 else f"{len(groups)} directories"
            overview = f"{_plural(len(components), 'UI component')} across {directories}."
            ui_frameworks = [name for name in analysis.frameworks if name in UI_FRAMEWORKS]
            if ui_frameworks:
                overview += " Built with " + ", ".join(ui_frameworks) + "."
            linked = sum(1 for doc in docs if doc.routes)
            if linked:
                overview += f" {_plural(linked, 'component')} call backend routes."
            if pages:
                overview += f" {_plural(len(pages), 'page')}"
                overview += f" with {_plural(len(navigation), 'navigation link')}." if navigation else "."
        else:
            overview = "No UI components were detected."
        return FrontendDoc(
            overview=overview,
            components=docs,
            groups=group_docs,
            pages=pages,
            navigation=navigation,
        )

    # ------------------------------------------------------------------
    # Backend

    def backend(self, analysis: CodebaseAnalysis) -> BackendDoc:
        grouped: Dict[str, List[ApiEndpoint]] = {}
        for route in analysis.routes:
            grouped.setdefault(route.file, []).append(_endpoint(route, analysis))
        groups = tuple(
            RouteGroup(file=file, endpoints=tuple(endpoints)) for file, endpoints in sorted(grouped.items())
        )
        middleware = tuple(
            sorted({name for route in analysis.routes for name in route.middleware if name != INLINE_HANDLER})
        )

        if analysis.routes:
            overview = f"{_plural(len(analysis.routes), 'HTTP route')} across {_plural(len(groups), 'file')}."
            server_frameworks = [name for name in analysis.frameworks if name in SERVER_FRAMEWORKS]
            if server_frameworks:
                overview += " Served by " + ", ".join(server_frameworks) + "."
            services = sorted(
                component.name for component in analysis.components if component.kind is ComponentKind.SERVICE
            )
            if services:
                overview += " Service modules: " + ", ".join(services) + "."
        else:
            overview = "No HTTP routes were detected."
        return BackendDoc(overview=overview, groups=groups, middleware=middleware)

    # ------------------------------------------------------------------
    # Database

    def database(self, analysis: CodebaseAnalysis) -> DatabaseDoc:
        by_table: Dict[str, List[DatabaseQuery]] = {}
        for query in analysis.queries:
            by_table.setdefault(query.table or UNKNOWN_TABLE, []).append(query)

        names = sorted(name for name in by_table if name != UNKNOWN_TABLE)
        if UNKNOWN_TABLE in by_table:
            names.append(UNKNOWN_TABLE)

        tables = []
        for name in names:
            queries = by_table[name]
            operations = sorted({query.operation for query in queries}, key=_OPERATION_ORDER.__getitem__)
            tables.append(
                TableDoc(
                    name=name,
                    operations=tuple(operation.value for operation in operations),
                    queries=tuple(
                        QueryDoc(
                            operation=query.operation.value,
                            file=query.file,
                            line=query.line,
                            function=query.function,
                            snippet=query.snippet,
                        )
                        for query in queries
                    ),
                )
            )

        if analysis.queries:
            known = len([name for name in names if name != UNKNOWN_TABLE])
            overview = (
                f"{_plural(len(analysis.queries), 'database operation')} touching {_plural(known, 'known table')}."
            )
        else:
            overview = "No database access was detected."
        return DatabaseDoc(overview=overview, tables=tuple(tables))

    # ------------------------------------------------------------------
    # User flows

    def user_flows(self, analysis: CodebaseAnalysis) -> Tuple[UserFlow, ...]:
        routes = {(route.key, route.file): route for route in analysis.routes}
        flows: List[UserFlow] = []
        for component in analysis.components:
            if component.kind is not ComponentKind.UI:
                continue
            targets = dict.fromkeys(
                (link.target, link.target_file)
                for link in component.route_links
                if link.is_linked and (link.target, link.target_file) in routes
            )
            linked = [routes[target] for target in targets]
            if not linked:
                continue
            steps = [
                UserFlowStep(
                    kind="component",
                    reference=component.name,
                    file=component.file,
                    description=f"User interacts with {component.name}",
                )
            ]
            for route in linked:
                for event in _triggers(component, route, analysis):
                    steps.append(
                        UserFlowStep(
                            kind="interaction",
                            reference=event.label,
                            file=component.file,
                            description=(
                                f"User triggers {event.event} on <{event.element}>, "
                                f"handled by {_event_handler_label(event)}"
                            ),
                        )
                    )
                steps.append(
                    UserFlowStep(
                        kind="route",
                        reference=route.key,
                        file=route.file,
                        description=f"{component.name} calls {route.key}, handled by {_handler_label(route)}",
                    )
                )
                for key in route.queries:
                    query = analysis.query(key)
                    if query is None:
                        continue
                    steps.append(
                        UserFlowStep(
                            kind="query",
                            reference=query.key,
                            file=query.file,
                            description=f"{route.key} performs a {query.operation.value} on {query.table or UNKNOWN_TABLE}",
                        )
                    )
            flows.append(
                UserFlow(
                    name=f"{component.name} flow",
                    description=f"{component.name} calls " + ", ".join(route.key for route in linked),
                    steps=tuple(steps),
                )
            )
        return tuple(flows)


def _component_doc(component: ComponentInfo) -> ComponentDoc:
    api_calls = _unique(call.key for call in component.api_calls)
    routes = _unique(link.target for link in component.route_links if link.is_linked and link.target)
    unlinked = _unique(link.reference for link in component.route_links if not link.is_linked)

    purpose = f"Renders the {component.name} view"
    if api_calls:
        purpose += " and calls " + ", ".join(api_calls)
    return ComponentDoc(
        name=component.name,
        file=component.file,
        kind=component.kind.value,
        purpose=purpose + ".",
        invokes=component.invokes,
        api_calls=api_calls,
        routes=routes,
        unlinked_calls=unlinked,
        events=tuple(_event_doc(event) for event in component.events),
        navigates_to=_unique(item.target for item in component.navigation),
    )


def _bare(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def _event_doc(event: UiEvent) -> str:
    if event.handler == INLINE_HANDLER:
        target = ", ".join(event.calls) if event.calls else "an inline handler"
    else:
        target = event.handler
    return f"{event.label} -> {target}"


def _event_handler_label(event: UiEvent) -> str:
    if event.handler != INLINE_HANDLER:
        return f"`{event.handler}`"
    if event.calls:
        return "an inline handler calling " + ", ".join(f"`{name}`" for name in event.calls)
    return "an inline handler"


def _triggers(component: ComponentInfo, route: RouteInfo, analysis: CodebaseAnalysis) -> List[UiEvent]:
    """Events of ``component`` whose handler reaches a call that lands on ``route``."""
    if not component.events:
        return []
    invoked = {_bare(name) for name in component.invokes}
    functions: Set[str] = set()
    for owner in analysis.components:
        for call in owner.api_calls:
            if not call.function or (owner is not component and call.function not in invoked):
                continue
            link = match_route(call, analysis.routes)
            if link.is_linked and link.target == route.key and link.target_file == route.file:
                functions.add(call.function)
    return [
        event
        for event in component.events
        if _bare(event.handler) in functions or functions.intersection(_bare(name) for name in event.calls)
    ]


def _page_doc(
    page: PageInfo,
    components: Dict[Tuple[str, str], ComponentInfo],
    ui_names: Iterable[str],
) -> PageDoc:
    link = page.component_link
    if link is not None and link.is_linked and link.target and link.target_file:
        name, file = link.target, link.target_file
    else:
        name, file = page.component, page.file
    component = components.get((name, file))
    if component is None:
        return PageDoc(name=name, file=file, source=page.source, path=page.path)
    known = set(ui_names)
    doc = _component_doc(component)
    return PageDoc(
        name=name,
        file=file,
        source=page.source,
        path=page.path,
        components=tuple(invoked for invoked in component.invokes if invoked in known),
        routes=doc.routes,
        navigates_to=doc.navigates_to,
    )


def _navigation_doc(component: ComponentInfo, navigation: Navigation) -> NavigationDoc:
    link = navigation.page_link
    return NavigationDoc(
        source=component.name,
        source_file=component.file,
        target=navigation.target,
        method=navigation.method,
        target_page=link.target if link is not None and link.is_linked else None,
    )


def _handler_label(route: RouteInfo) -> str:
    if route.handler == INLINE_HANDLER:
        return "an inline handler"
    link = route.handler_link
    if link is not None and link.is_linked:
        return f"`{link.target}` in {link.target_file}"
    return f"`{route.handler}` (unresolved)"


def _endpoint(route: RouteInfo, analysis: CodebaseAnalysis) -> ApiEndpoint:
    link = route.handler_link
    handler_linked = link is not None and link.is_linked
    handler_file: Optional[str] = link.target_file if handler_linked and link is not None else None

    tables: List[str] = []
    for key in route.queries:
        query = analysis.query(key)
        if query is not None:
            tables.append(f"{query.operation.value} {query.table or UNKNOWN_TABLE}")

    purpose = f"Handles {route.method} {route.path} with {_handler_label(route)}"
    if tables:
        purpose += "; database: " + ", ".join(_unique(tables))

    return ApiEndpoint(
        method=route.method,
        path=route.path,
        file=route.file,
        handler=route.handler,
        purpose=purpose + ".",
        handler_file=handler_file,
        handler_linked=handler_linked,
        middleware=route.middleware,
        services=_unique(f"{service.target} ({service.target_file})" for service in route.service_links),
        queries=route.queries,
    )


__all__ = ["UNKNOWN_TABLE", "DocumentationGenerator"]
