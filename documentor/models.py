"""Core data models shared across documentor components."""

from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

SCHEMA_VERSION = 1


class FileType(str, Enum):
    """Closed set of file classifications, in diagram/report order."""

    COMPONENT = "component"
    ROUTE = "route"
    SERVICE = "service"
    DATABASE = "database"
    CONFIG = "config"
    TEST = "test"
    STYLE = "style"
    OTHER = "other"


class ComponentKind(str, Enum):
    UI = "ui"
    SERVICE = "service"


class QueryOperation(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


class LinkStatus(str, Enum):
    LINKED = "linked"
    UNLINKED = "unlinked"


@dataclass(frozen=True)
class Link:
    """Outcome of a heuristic name-based resolution.

    ``reference`` is the text found at the use site. Unlinked references keep
    ``target`` and ``target_file`` empty so callers can still render them.
    """

    reference: str
    status: LinkStatus = LinkStatus.UNLINKED
    target: Optional[str] = None
    target_file: Optional[str] = None

    @classmethod
    def unlinked(cls, reference: str) -> "Link":
        return cls(reference=reference)

    @classmethod
    def linked(cls, reference: str, target: str, target_file: str) -> "Link":
        return cls(
            reference=reference,
            status=LinkStatus.LINKED,
            target=target,
            target_file=target_file,
        )

    @property
    def is_linked(self) -> bool:
        return self.status is LinkStatus.LINKED


@dataclass(frozen=True)
class FileInfo:
    """Metadata for one scanned file; content is not retained."""

    path: str
    file_type: FileType
    size: int
    last_modified: float


@dataclass(frozen=True)
class FunctionInfo:
    name: str
    file: str
    params: Tuple[str, ...] = ()
    exported: bool = False
    is_async: bool = False
    line: int = 0
    calls: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ApiCall:
    """Outbound HTTP call made from client code."""

    method: str
    url: str
    path: str
    client: str
    line: int = 0
    function: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class UiEvent:
    """A rendered element wiring an event attribute such as ``onClick`` to a handler."""

    element: str
    event: str
    handler: str
    calls: Tuple[str, ...] = ()
    line: int = 0

    @property
    def label(self) -> str:
        return f"<{self.element}> {self.event}"


@dataclass(frozen=True)
class Navigation:
    """A client-side transition to another page, by link element or router call."""

    target: str
    method: str
    line: int = 0
    page_link: Optional[Link] = None


@dataclass(frozen=True)
class ComponentInfo:
    name: str
    file: str
    kind: ComponentKind
    invokes: Tuple[str, ...] = ()
    api_calls: Tuple[ApiCall, ...] = ()
    line: int = 0
    route_links: Tuple[Link, ...] = ()
    events: Tuple[UiEvent, ...] = ()
    navigation: Tuple[Navigation, ...] = ()


@dataclass(frozen=True)
class PageInfo:
    """A routable screen, declared by its file location or by a router entry.

    ``file`` is where the page was declared; ``component_link`` points at the
    UI component that renders it once resolved.
    """

    component: str
    file: str
    path: Optional[str]
    source: str
    line: int = 0
    component_link: Optional[Link] = None


@dataclass(frozen=True)
class RouteInfo:
    method: str
    path: str
    file: str
    handler: str
    middleware: Tuple[str, ...] = ()
    calls: Tuple[str, ...] = ()
    line: int = 0
    handler_link: Optional[Link] = None
    service_links: Tuple[Link, ...] = ()
    queries: Tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class DatabaseQuery:
    """One recognized data access; ``ordinal`` numbers queries sharing a line."""

    file: str
    operation: QueryOperation
    table: Optional[str] = None
    function: Optional[str] = None
    snippet: str = ""
    line: int = 0
    ordinal: int = 0

    @property
    def key(self) -> str:
        if self.ordinal:
            return f"{self.file}:{self.line}#{self.ordinal + 1}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class CodebaseAnalysis:
    """One immutable snapshot of the analyzed project."""

    root: str
    project_name: str
    files: Tuple[FileInfo, ...]
    functions: Tuple[FunctionInfo, ...] = ()
    components: Tuple[ComponentInfo, ...] = ()
    routes: Tuple[RouteInfo, ...] = ()
    queries: Tuple[DatabaseQuery, ...] = ()
    pages: Tuple[PageInfo, ...] = ()
    frameworks: Tuple[str, ...] = ()
    scripts: Tuple[Tuple[str, str], ...] = ()
    warnings: Tuple[str, ...] = ()
    analyzed_at: str = ""

    def file(self, path: str) -> Optional[FileInfo]:
        for info in self.files:
            if info.path == path:
                return info
        return None

    def files_of_type(self, file_type: FileType) -> Tuple[FileInfo, ...]:
        return tuple(info for info in self.files if info.file_type is file_type)

    def query(self, key: str) -> Optional[DatabaseQuery]:
        for query in self.queries:
            if query.key == key:
                return query
        return None

    @property
    def script_map(self) -> Dict[str, str]:
        return dict(self.scripts)

    def equivalent(self, other: "CodebaseAnalysis") -> bool:
        """Compare every field except the snapshot timestamp."""
        return all(
            getattr(self, item.name) == getattr(other, item.name)
            for item in fields(self)
            if item.name != "analyzed_at"
        )

    def to_dict(self) -> Dict[str, Any]:
        return _to_jsonable(self)


# ---------------------------------------------------------------------------
# Generated documentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComponentDoc:
    name: str
    file: str
    kind: str
    purpose: str
    invokes: Tuple[str, ...] = ()
    api_calls: Tuple[str, ...] = ()
    routes: Tuple[str, ...] = ()
    unlinked_calls: Tuple[str, ...] = ()
    events: Tuple[str, ...] = ()
    navigates_to: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ComponentDoc":
        return cls(
            name=data["name"],
            file=data["file"],
            kind=data["kind"],
            purpose=data["purpose"],
            invokes=_str_tuple(data.get("invokes")),
            api_calls=_str_tuple(data.get("api_calls")),
            routes=_str_tuple(data.get("routes")),
            unlinked_calls=_str_tuple(data.get("unlinked_calls")),
            events=_str_tuple(data.get("events")),
            navigates_to=_str_tuple(data.get("navigates_to")),
        )


@dataclass(frozen=True)
class ComponentGroup:
    directory: str
    components: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ComponentGroup":
        return cls(directory=data["directory"], components=_str_tuple(data.get("components")))


@dataclass(frozen=True)
class PageDoc:
    """One page of the frontend; ``path`` is None when no URL could be determined."""

    name: str
    file: str
    source: str
    path: Optional[str] = None
    components: Tuple[str, ...] = ()
    routes: Tuple[str, ...] = ()
    navigates_to: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageDoc":
        return cls(
            name=data["name"],
            file=data["file"],
            source=data["source"],
            path=data.get("path"),
            components=_str_tuple(data.get("components")),
            routes=_str_tuple(data.get("routes")),
            navigates_to=_str_tuple(data.get("navigates_to")),
        )


@dataclass(frozen=True)
class NavigationDoc:
    """An edge of the navigation map; ``target_page`` is None when unlinked."""

    source: str
    source_file: str
    target: str
    method: str
    target_page: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NavigationDoc":
        return cls(
            source=data["source"],
            source_file=data["source_file"],
            target=data["target"],
            method=data["method"],
            target_page=data.get("target_page"),
        )


@dataclass(frozen=True)
class FrontendDoc:
    overview: str
    components: Tuple[ComponentDoc, ...] = ()
    groups: Tuple[ComponentGroup, ...] = ()
    pages: Tuple[PageDoc, ...] = ()
    navigation: Tuple[NavigationDoc, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FrontendDoc":
        return cls(
            overview=data["overview"],
            components=_decode_all(ComponentDoc, data.get("components")),
            groups=_decode_all(ComponentGroup, data.get("groups")),
            pages=_decode_all(PageDoc, data.get("pages")),
            navigation=_decode_all(NavigationDoc, data.get("navigation")),
        )


@dataclass(frozen=True)
class ApiEndpoint:
    method: str
    path: str
    file: str
    handler: str
    purpose: str
    handler_file: Optional[str] = None
    handler_linked: bool = False
    middleware: Tuple[str, ...] = ()
    services: Tuple[str, ...] = ()
    queries: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ApiEndpoint":
        return cls(
            method=data["method"],
            path=data["path"],
            file=data["file"],
            handler=data["handler"],
            purpose=data["purpose"],
            handler_file=data.get("handler_file"),
            handler_linked=bool(data.get("handler_linked", False)),
            middleware=_str_tuple(data.get("middleware")),
            services=_str_tuple(data.get("services")),
            queries=_str_tuple(data.get("queries")),
        )


@dataclass(frozen=True)
class RouteGroup:
    file: str
    endpoints: Tuple[ApiEndpoint, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteGroup":
        return cls(file=data["file"], endpoints=_decode_all(ApiEndpoint, data.get("endpoints")))


@dataclass(frozen=True)
class BackendDoc:
    overview: str
    groups: Tuple[RouteGroup, ...] = ()
    middleware: Tuple[str, ...] = ()

    @property
    def endpoints(self) -> Tuple[ApiEndpoint, ...]:
        return tuple(endpoint for group in self.groups for endpoint in group.endpoints)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BackendDoc":
        return cls(
            overview=data["overview"],
            groups=_decode_all(RouteGroup, data.get("groups")),
            middleware=_str_tuple(data.get("middleware")),
        )


@dataclass(frozen=True)
class QueryDoc:
    operation: str
    file: str
    line: int
    function: Optional[str] = None
    snippet: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueryDoc":
        return cls(
            operation=data["operation"],
            file=data["file"],
            line=int(data.get("line", 0)),
            function=data.get("function"),
            snippet=data.get("snippet", ""),
        )


@dataclass(frozen=True)
class TableDoc:
    name: str
    operations: Tuple[str, ...] = ()
    queries: Tuple[QueryDoc, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TableDoc":
        return cls(
            name=data["name"],
            operations=_str_tuple(data.get("operations")),
            queries=_decode_all(QueryDoc, data.get("queries")),
        )


@dataclass(frozen=True)
class DatabaseDoc:
    overview: str
    tables: Tuple[TableDoc, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DatabaseDoc":
        return cls(overview=data["overview"], tables=_decode_all(TableDoc, data.get("tables")))


@dataclass(frozen=True)
class UserFlowStep:
    kind: str
    reference: str
    file: str
    description: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserFlowStep":
        return cls(
            kind=data["kind"],
            reference=data["reference"],
            file=data["file"],
            description=data["description"],
        )


@dataclass(frozen=True)
class UserFlow:
    name: str
    description: str
    steps: Tuple[UserFlowStep, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserFlow":
        return cls(
            name=data["name"],
            description=data["description"],
            steps=_decode_all(UserFlowStep, data.get("steps")),
        )


@dataclass(frozen=True)
class GeneratedDocumentation:
    """Documentation model persisted as documentation.json."""

    overview: str
    frontend: FrontendDoc
    backend: BackendDoc
    database: DatabaseDoc
    user_flows: Tuple[UserFlow, ...]
    architecture_diagram: str
    api_documentation: Tuple[ApiEndpoint, ...]
    deployment_guide: str
    troubleshooting: str
    generated_at: str
    schema_version: int = SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return _to_jsonable(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeneratedDocumentation":
        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValueError(f"Unsupported documentation schema version: {version}")
        return cls(
            overview=data["overview"],
            frontend=FrontendDoc.from_dict(data["frontend"]),
            backend=BackendDoc.from_dict(data["backend"]),
            database=DatabaseDoc.from_dict(data["database"]),
            user_flows=_decode_all(UserFlow, data.get("user_flows")),
            architecture_diagram=data["architecture_diagram"],
            api_documentation=_decode_all(ApiEndpoint, data.get("api_documentation")),
            deployment_guide=data["deployment_guide"],
            troubleshooting=data["troubleshooting"],
            generated_at=data["generated_at"],
            schema_version=version,
        )


# ---------------------------------------------------------------------------
# Serialisation helpers


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {item.name: _to_jsonable(getattr(value, item.name)) for item in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _to_jsonable(item) for key, item in value.items()}
    return value


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(item) for item in value)


def _decode_all(kind: Any, value: Optional[Iterable[Any]]) -> Tuple[Any, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(kind.from_dict(item) for item in value)


__all__ = [
    "SCHEMA_VERSION",
    "ApiCall",
    "ApiEndpoint",
    "BackendDoc",
    "CodebaseAnalysis",
    "ComponentDoc",
    "ComponentGroup",
    "ComponentInfo",
    "ComponentKind",
    "DatabaseDoc",
    "DatabaseQuery",
    "FileInfo",
    "FileType",
    "FrontendDoc",
    "FunctionInfo",
    "GeneratedDocumentation",
    "Link",
    "LinkStatus",
    "Navigation",
    "NavigationDoc",
    "PageDoc",
    "PageInfo",
    "QueryDoc",
    "QueryOperation",
    "RouteGroup",
    "RouteInfo",
    "TableDoc",
    "UiEvent",
    "UserFlow",
    "UserFlowStep",
]
