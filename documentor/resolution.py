"""Name-based linking of routes, handlers, services, queries, and components.

Every link is best-effort: the first candidate in a stable ordering wins and
anything that cannot be matched stays in the output as an unlinked
:class:`~documentor.models.Link`.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace
from typing import Callable, Deque, Dict, Hashable, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from .extractors.core import INLINE_HANDLER, normalize_path
from .models import (
    ApiCall,
    ComponentInfo,
    ComponentKind,
    DatabaseQuery,
    FileInfo,
    FunctionInfo,
    Link,
    PageInfo,
    RouteInfo,
)

MAX_CALL_DEPTH = 3

T = TypeVar("T")
_ANY_METHODS = frozenset({"ALL", "ANY"})


@dataclass(frozen=True)
class ResolvedRecords:
    functions: Tuple[FunctionInfo, ...]
    components: Tuple[ComponentInfo, ...]
    routes: Tuple[RouteInfo, ...]
    queries: Tuple[DatabaseQuery, ...]
    pages: Tuple[PageInfo, ...] = ()


class FunctionIndex:
    """Looks up functions by bare name, same file first, then by file path order."""

    def __init__(self, functions: Iterable[FunctionInfo]) -> None:
        self._by_name: Dict[str, List[FunctionInfo]] = {}
        for function in sorted(functions, key=lambda item: (item.file, item.line, item.name)):
            self._by_name.setdefault(function.name, []).append(function)

    def lookup(self, reference: str, origin_file: str) -> Optional[FunctionInfo]:
        name = reference.rsplit(".", 1)[-1]
        candidates = self._by_name.get(name)
        if not candidates:
            return None
        for candidate in candidates:
            if candidate.file == origin_file:
                return candidate
        return candidates[0]


def resolve(
    files: Sequence[FileInfo],
    functions: Iterable[FunctionInfo],
    components: Iterable[ComponentInfo],
    routes: Iterable[RouteInfo],
    queries: Iterable[DatabaseQuery],
    pages: Iterable[PageInfo] = (),
) -> ResolvedRecords:
    """Drop dangling records, sort everything, and fill in every link field."""
    known = {info.path for info in files}

    kept_functions = _unique(
        sorted((fn for fn in functions if fn.file in known), key=lambda fn: (fn.file, fn.line, fn.name)),
        key=lambda fn: (fn.file, fn.line, fn.name),
    )
    kept_queries = _unique(
        sorted(
            (query for query in queries if query.file in known),
            key=lambda query: (query.file, query.line, query.ordinal),
        ),
        key=lambda query: query.key,
    )
    kept_routes = _unique(
        sorted(
            (route for route in routes if route.file in known),
            key=lambda route: (route.file, route.line, route.method, route.path),
        ),
        key=lambda route: (route.file, route.line, route.method, route.path),
    )
    kept_components = sorted(
        (component for component in components if component.file in known),
        key=lambda component: (component.file, component.line, component.name),
    )

    index = FunctionIndex(kept_functions)
    query_keys = {query.key for query in kept_queries}
    queries_by_function: Dict[Tuple[str, str], List[str]] = {}
    for query in kept_queries:
        if query.function:
            queries_by_function.setdefault((query.file, query.function), []).append(query.key)

    resolved_routes = tuple(
        _resolve_route(route, index, queries_by_function, query_keys) for route in kept_routes
    )

    calls_by_function: Dict[Tuple[str, str], List[ApiCall]] = {}
    for component in kept_components:
        for call in component.api_calls:
            if call.function:
                calls_by_function.setdefault((component.file, call.function), []).append(call)

    resolved_pages = _resolve_pages((page for page in pages if page.file in known), kept_components)
    resolved_components = tuple(
        _resolve_navigation(
            _resolve_component(component, index, resolved_routes, calls_by_function),
            resolved_pages,
        )
        for component in kept_components
    )

    return ResolvedRecords(
        functions=tuple(kept_functions),
        components=resolved_components,
        routes=resolved_routes,
        queries=tuple(kept_queries),
        pages=resolved_pages,
    )


def _unique(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    seen: Set[Hashable] = set()
    result: List[T] = []
    for item in items:
        marker = key(item)
        if marker in seen:
            continue
        seen.add(marker)
        result.append(item)
    return result


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _resolve_route(
    route: RouteInfo,
    index: FunctionIndex,
    queries_by_function: Dict[Tuple[str, str], List[str]],
    query_keys: Set[str],
) -> RouteInfo:
    handler_fn: Optional[FunctionInfo] = None
    if route.handler == INLINE_HANDLER:
        handler_link = Link.linked(INLINE_HANDLER, INLINE_HANDLER, route.file)
        calls = route.calls
        origin = route.file
    else:
        handler_fn = index.lookup(route.handler, route.file)
        if handler_fn is None:
            handler_link = Link.unlinked(route.handler)
            calls = ()
            origin = route.file
        else:
            handler_link = Link.linked(route.handler, handler_fn.name, handler_fn.file)
            calls = handler_fn.calls
            origin = handler_fn.file

    start: List[FunctionInfo] = [handler_fn] if handler_fn is not None else []
    service_links: List[Link] = []
    for call in calls:
        callee = index.lookup(call, origin)
        if callee is None or callee == handler_fn:
            continue
        start.append(callee)
        if callee.file == origin:
            continue
        link = Link.linked(call, callee.name, callee.file)
        if link not in service_links:
            service_links.append(link)

    linked_queries = [key for key in route.queries if key in query_keys]
    for key in _reachable_queries(start, index, queries_by_function):
        if key not in linked_queries:
            linked_queries.append(key)

    return replace(
        route,
        handler_link=handler_link,
        service_links=tuple(service_links),
        queries=tuple(linked_queries),
    )


def _reachable_queries(
    start: Sequence[FunctionInfo],
    index: FunctionIndex,
    queries_by_function: Dict[Tuple[str, str], List[str]],
) -> List[str]:
    keys: List[str] = []
    visited: Set[Tuple[str, str, int]] = set()
    frontier: Deque[Tuple[FunctionInfo, int]] = deque((function, 0) for function in start)
    while frontier:
        function, depth = frontier.popleft()
        identity = (function.file, function.name, function.line)
        if identity in visited:
            continue
        visited.add(identity)
        for key in queries_by_function.get((function.file, function.name), ()):
            if key not in keys:
                keys.append(key)
        if depth >= MAX_CALL_DEPTH:
            continue
        for call in function.calls:
            callee = index.lookup(call, function.file)
            if callee is not None:
                frontier.append((callee, depth + 1))
    return keys


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def _resolve_component(
    component: ComponentInfo,
    index: FunctionIndex,
    routes: Sequence[RouteInfo],
    calls_by_function: Dict[Tuple[str, str], List[ApiCall]],
) -> ComponentInfo:
    outbound: List[ApiCall] = list(component.api_calls)
    for name in component.invokes:
        callee = index.lookup(name, component.file)
        if callee is None or callee.file == component.file:
            continue
        outbound.extend(calls_by_function.get((callee.file, callee.name), ()))

    links: List[Link] = []
    for call in outbound:
        link = match_route(call, routes)
        if link not in links:
            links.append(link)
    return replace(component, route_links=tuple(links))


def match_route(call: ApiCall, routes: Sequence[RouteInfo]) -> Link:
    """Link an outbound call to the first route matching by method and path.

    Passes, in order: same method and path, any method and same path, same
    method and segment suffix, any method and segment suffix.
    """
    call_segments = _segments(call.path)
    method = call.method.upper()
    normalized = [(route, _segments(normalize_path(route.path))) for route in routes]

    passes = (
        (True, _same_segments),
        (False, _same_segments),
        (True, _suffix_segments),
        (False, _suffix_segments),
    )
    for require_method, matcher in passes:
        for route, route_segments in normalized:
            if require_method and not _method_matches(method, route.method):
                continue
            if matcher(call_segments, route_segments):
                return Link.linked(call.key, route.key, route.file)
    return Link.unlinked(call.key)


def _method_matches(call_method: str, route_method: str) -> bool:
    return route_method in _ANY_METHODS or call_method == route_method


def _segments(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.split("/") if part)


def _segment_equal(left: str, right: str) -> bool:
    if left == right:
        return True
    return _is_placeholder(left) or _is_placeholder(right)


def _is_placeholder(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def _same_segments(left: Sequence[str], right: Sequence[str]) -> bool:
    return len(left) == len(right) and all(_segment_equal(a, b) for a, b in zip(left, right))


def _suffix_segments(left: Sequence[str], right: Sequence[str]) -> bool:
    if not left or not right or len(left) == len(right):
        return False
    shorter, longer = (left, right) if len(left) < len(right) else (right, left)
    tail = longer[-len(shorter) :]
    # A suffix made only of placeholders would match any path.
    anchored = any(a == b and not _is_placeholder(a) for a, b in zip(shorter, tail))
    return anchored and _same_segments(shorter, tail)


# ---------------------------------------------------------------------------
# Pages and navigation
# ---------------------------------------------------------------------------


def _resolve_pages(pages: Iterable[PageInfo], components: Sequence[ComponentInfo]) -> Tuple[PageInfo, ...]:
    """Link pages to UI components and fold file pages into their routed entries."""
    ui = [component for component in components if component.kind is ComponentKind.UI]
    linked: List[PageInfo] = []
    for page in sorted(pages, key=lambda item: (item.file, item.line, item.component, item.path or "")):
        target = _page_component(page, ui)
        if target is None:
            link = Link.unlinked(page.component)
        else:
            link = Link.linked(page.component, target.name, target.file)
        linked.append(replace(page, component_link=link))

    routed = {_page_identity(page) for page in linked if page.path is not None}
    kept = (page for page in linked if page.path is not None or _page_identity(page) not in routed)
    return tuple(_unique(kept, key=lambda page: (_page_identity(page), page.path)))


def _page_component(page: PageInfo, components: Sequence[ComponentInfo]) -> Optional[ComponentInfo]:
    named = [component for component in components if component.name == page.component]
    for component in named:
        if component.file == page.file:
            return component
    return named[0] if named else None


def _page_identity(page: PageInfo) -> Tuple[str, str]:
    link = page.component_link
    if link is not None and link.is_linked:
        return link.target, link.target_file or page.file
    return page.component, page.file


def _resolve_navigation(component: ComponentInfo, pages: Sequence[PageInfo]) -> ComponentInfo:
    if not component.navigation:
        return component
    navigation = tuple(replace(item, page_link=match_page(item.target, pages)) for item in component.navigation)
    return replace(component, navigation=navigation)


def match_page(target: str, pages: Sequence[PageInfo]) -> Link:
    """Link a navigation target to the first page whose path matches.

    Literal matches win over matches through path placeholders.
    """
    segments = _segments(normalize_path(target))
    routed = [(page, _segments(page.path)) for page in pages if page.path is not None]
    for matcher in (lambda left, right: left == right, _same_segments):
        for page, page_segments in routed:
            if matcher(segments, page_segments):
                name, file = _page_identity(page)
                return Link.linked(target, name, file)
    return Link.unlinked(target)


__all__ = ["MAX_CALL_DEPTH", "FunctionIndex", "ResolvedRecords", "match_page", "match_route", "resolve"]
