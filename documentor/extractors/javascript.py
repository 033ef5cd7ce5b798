"""Regex and bracket-matching extractor for JavaScript/TypeScript sources."""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from ..models import (
    ApiCall,
    ComponentInfo,
    ComponentKind,
    DatabaseQuery,
    FileType,
    FunctionInfo,
    Navigation,
    PageInfo,
    QueryOperation,
    RouteInfo,
    UiEvent,
)
from .base import ExtractionResult, Extractor
from .core import (
    INLINE_HANDLER,
    LineIndex,
    argument_spans,
    collect_calls,
    find_closing,
    infer_operation,
    leading_name,
    looks_like_sql,
    looks_like_url,
    mask_comments,
    normalize_path,
    number_by_line,
    snippet,
    split_top_level,
    sql_operation,
    sql_table,
    string_literal,
    url_path,
)

JS_SUFFIXES = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".vue", ".svelte"})
_MARKUP_SUFFIXES = frozenset({".jsx", ".tsx", ".vue", ".svelte"})
_SINGLE_FILE_SUFFIXES = frozenset({".vue", ".svelte"})
_SKIPPED_TYPES = frozenset({FileType.TEST, FileType.STYLE, FileType.CONFIG})

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>(.*?)</script>", re.DOTALL | re.IGNORECASE)

_IDENT = r"[A-Za-z_$][\w$]*"

_FUNCTION_DECL = re.compile(
    rf"(?P<export>\bexport\s+(?:default\s+)?)?(?P<async>\basync\s+)?\bfunction\b\s*\*?\s*"
    rf"(?P<name>{_IDENT})\s*(?:<[^>()]*>\s*)?\("
)
_VARIABLE_DECL = re.compile(
    rf"(?P<export>\bexport\s+)?\b(?:const|let|var)\s+(?P<name>{_IDENT})\s*(?::[^=;]+)?=(?!=)\s*"
    r"(?P<async>async\b\s*)?"
)
_EXPORTS_ASSIGN = re.compile(
    rf"\b(?:module\s*\.\s*)?exports\s*\.\s*(?P<name>{_IDENT})\s*=(?!=)\s*(?P<async>async\b\s*)?"
)
_ARROW_AFTER_PARAMS = re.compile(r"\s*(?::[^=;{]+)?=>\s*")
_SINGLE_PARAM_ARROW = re.compile(rf"(?P<param>{_IDENT})\s*=>\s*")
_FUNCTION_KEYWORD = re.compile(rf"function\b\s*\*?\s*(?:{_IDENT})?\s*\(")

_EXPORT_LIST = re.compile(r"\bexport\s*\{(?P<names>[^}]*)\}")
_EXPORT_DEFAULT_NAME = re.compile(rf"\bexport\s+default\s+(?P<name>{_IDENT})\s*;?\s*$", re.MULTILINE)
_MODULE_EXPORTS_OBJECT = re.compile(r"\bmodule\s*\.\s*exports\s*=\s*\{")
_MODULE_EXPORTS_NAME = re.compile(
    rf"\bmodule\s*\.\s*exports\s*=\s*(?P<name>{_IDENT})\s*;?\s*$", re.MULTILINE
)

_ROUTER_BINDING = re.compile(
    rf"\b(?:const|let|var)\s+(?P<name>{_IDENT})\s*(?::[^=;]+)?=\s*(?:new\s+)?"
    r"(?:express(?:\s*\.\s*Router)?|Router|Hono|fastify|Fastify|Koa|KoaRouter|polka|createRouter)\s*\("
)
_DEFAULT_RECEIVERS = frozenset({"app", "router", "server"})
_ROUTE_CALL = re.compile(
    rf"(?<![\w$.])(?P<receiver>{_IDENT})\s*\.\s*"
    r"(?P<verb>get|post|put|patch|delete|del|all|options|head)\s*\("
)
_ROUTE_CHAIN = re.compile(rf"(?<![\w$.])(?P<receiver>{_IDENT})\s*\.\s*route\s*\(")
_CHAINED_VERB = re.compile(r"\s*\.\s*(?P<verb>get|post|put|patch|delete|del|all|options|head)\s*\(")
_WRAPPER_CALL = re.compile(rf"{_IDENT}(?:\s*\.\s*{_IDENT})*\s*\(")

_CLIENT_BINDING = re.compile(
    rf"\b(?:const|let|var)\s+(?P<name>{_IDENT})\s*=\s*(?:axios|ky)\s*\.\s*(?:create|extend)\s*\("
)
_DEFAULT_CLIENTS = frozenset(
    {"axios", "api", "http", "client", "apiClient", "httpClient", "request", "$http", "ky", "superagent"}
)
_CLIENT_VERB_CALL = re.compile(
    rf"(?<![\w$.])(?P<client>{_IDENT})\s*\.\s*(?P<verb>get|post|put|patch|delete|head|options)\s*\("
)
_FETCH_CALL = re.compile(r"(?<![\w$.])(?:window\s*\.\s*)?fetch\s*\(")
_AXIOS_DIRECT_CALL = re.compile(r"(?<![\w$.])axios\s*\(")
_OPTION_METHOD = re.compile(r"""\bmethod\s*:\s*['"`](?P<method>\w+)['"`]""")
_OPTION_URL = re.compile(r"""\burl\s*:\s*(?P<quote>['"`])(?P<url>[^'"`]*)(?P=quote)""")

_SQL_CALL = re.compile(
    rf"(?<![\w$])(?P<client>{_IDENT})\s*\.\s*"
    r"(?P<method>query|execute|raw|run|all|get|prepare|unsafe|none|one|many|any|oneOrNone|manyOrNone)\s*\("
)
_SQL_TAG = re.compile(r"(?<![\w$.])sql\s*`")
_SUPABASE_CALL = re.compile(
    r"""\.\s*from\s*\(\s*['"`](?P<table>[\w.]+)['"`]\s*\)\s*\.\s*(?P<op>select|insert|update|upsert|delete)\b"""
)
_KNEX_CALL = re.compile(r"""(?<![\w$.])(?:knex|db)\s*\(\s*['"`](?P<table>[\w.]+)['"`]\s*\)""")
_KNEX_WRITE = re.compile(r"\.\s*(?P<op>insert|update|del|delete|truncate|upsert)\s*\(")
_COLLECTION_CALL = re.compile(
    r"""\.\s*collection\s*\(\s*['"`](?P<table>[\w.]+)['"`]\s*\)\s*\.\s*(?P<op>\w+)\s*\("""
)
_PRISMA_CALL = re.compile(r"(?<![\w$.])prisma\s*\.\s*(?P<table>[A-Za-z_]\w*)\s*\.\s*(?P<op>[A-Za-z_]\w*)\s*\(")
_ORM_CALL = re.compile(
    r"(?<![\w$.])(?P<table>[A-Z]\w*)\s*\.\s*(?P<op>find|findOne|findById|findAll|findByPk|findOneAndUpdate|"
    r"findByIdAndUpdate|findByIdAndDelete|findOneAndDelete|findAndCountAll|create|insertMany|updateOne|"
    r"updateMany|update|deleteOne|deleteMany|destroy|count|countDocuments|aggregate|bulkCreate|upsert|"
    r"save|remove)\s*\("
)
_ORM_MODULES = ("mongoose", "sequelize", "typeorm", "objection", "bookshelf", "waterline")
_NON_MODEL_ROOTS = frozenset(
    {"Object", "Array", "Promise", "JSON", "Math", "Date", "Reflect", "React", "Number", "String", "Map", "Set", "Buffer"}
)

_IMPORT_FROM = re.compile(r"""\bimport\s+(?:[\w*${}\s,]+?\s+from\s+)?['"](?P<module>[^'"]+)['"]""")
_REQUIRE = re.compile(r"""\brequire\s*\(\s*['"](?P<module>[^'"]+)['"]\s*\)""")

_CLASS_COMPONENT = re.compile(
    rf"\bclass\s+(?P<name>[A-Z][\w$]*)\s+extends\s+(?:React\s*\.\s*)?(?:Pure)?Component\b"
)
_MARKUP = re.compile(r"(?:\breturn|=>)\s*\(?\s*<(?:[A-Za-z]|>)")
_JSX_TAG = re.compile(r"<(?P<tag>[A-Z][\w$]*(?:\.[A-Z][\w$]*)?)")
_OPENING_TAG = re.compile(r"<(?P<tag>[A-Za-z][\w$.-]*)")
_EVENT_ATTR = re.compile(r"\b(?P<event>on[A-Z]\w*)\s*=\s*\{")
_VUE_EVENT = re.compile(r"""(?:@|\bv-on:)(?P<event>[\w-]+)(?:\.[\w-]+)*\s*=\s*(?P<quote>["'])(?P<body>[^"']*)(?P=quote)""")

_PAGE_DIRS = frozenset({"views", "screens"})
_DEFAULT_EXPORT = re.compile(
    rf"\bexport\s+default\s+(?:async\s+)?(?:function\b\s*\*?\s*|class\s+)?(?P<name>{_IDENT})"
)
_ROUTE_ELEMENT = re.compile(r"<Route\b")
_ROUTE_PATH_ATTR = re.compile(r"""\bpath\s*=\s*(?:\{\s*)?(?P<quote>['"`])(?P<path>[^'"`]*)(?P=quote)""")
_ROUTE_TARGET_ATTR = re.compile(
    r"\b(?:element\s*=\s*\{\s*<\s*(?P<element>[A-Z][\w$]*)|component\s*=\s*\{\s*(?P<component>[A-Z][\w$]*))"
)
_ROUTE_OBJECT = re.compile(
    r"""\bpath\s*:\s*(?P<quote>['"`])(?P<path>[^'"`]*)(?P=quote)\s*,\s*"""
    r"""(?:element\s*:\s*<\s*(?P<element>[A-Z][\w$]*)|component\s*:\s*(?P<component>[A-Z][\w$]*))"""
)
_NAV_ELEMENT = re.compile(
    r"""<(?:Link|NavLink|Navigate|Redirect|RouterLink|router-link|a)\b[^<>]*?\b(?:to|href)\s*=\s*"""
    r"""(?:\{\s*)?(?P<quote>['"`])(?P<target>[^'"`]*)(?P=quote)"""
)
_NAV_CALL = re.compile(
    r"""(?<![\w$.])(?:navigate|redirect|(?:[\w$]+\s*\.\s*)?(?:router|history|\$router)\s*\.\s*(?:push|replace))"""
    r"""\s*\(\s*(?P<quote>['"`])(?P<target>[^'"`]*)(?P=quote)"""
)


@dataclass
class _Span:
    """Character range of one function body."""

    name: str
    start: int
    end: int
    info: FunctionInfo

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end


@dataclass
class _RouteDraft:
    route: RouteInfo
    inline_span: Optional[Tuple[int, int]] = None


@dataclass
class _FileScan:
    """Intermediate state while extracting one file."""

    path: str
    text: str
    file_type: FileType
    lines: LineIndex
    markup: str = ""
    spans: List[_Span] = field(default_factory=list)
    imports: Tuple[str, ...] = ()
    _starts: List[int] = field(default_factory=list)
    _parents: List[int] = field(default_factory=list)

    def index_spans(self, spans: Sequence[_Span]) -> None:
        """Store ``spans`` by start offset and remember each one's enclosing span."""
        self.spans = sorted(spans, key=lambda item: item.start)
        self._starts = [span.start for span in self.spans]
        self._parents = []
        open_spans: List[int] = []
        for position, span in enumerate(self.spans):
            while open_spans and self.spans[open_spans[-1]].end <= span.start:
                open_spans.pop()
            self._parents.append(open_spans[-1] if open_spans else -1)
            open_spans.append(position)

    def line(self, index: int) -> int:
        return self.lines.line(index)

    def enclosing(self, index: int) -> Optional[_Span]:
        position = bisect_right(self._starts, index) - 1
        while position >= 0:
            span = self.spans[position]
            if span.contains(index):
                return span
            position = self._parents[position]
        return None

    def enclosing_name(self, index: int) -> Optional[str]:
        span = self.enclosing(index)
        return span.name if span else None


class JavaScriptExtractor(Extractor):
    """Recognizes Express-style routes, React/Vue components, and data access in JS/TS."""

    name = "javascript"
    suffixes = JS_SUFFIXES
    skipped_types = _SKIPPED_TYPES

    def extract(self, path: str, text: str, file_type: FileType) -> ExtractionResult:
        source = mask_comments(_script_source(path, text))
        single_file = PurePosixPath(path).suffix.lower() in _SINGLE_FILE_SUFFIXES
        scan = _FileScan(
            path=path,
            text=source,
            file_type=file_type,
            lines=LineIndex(source),
            markup=mask_comments(text) if single_file else source,
        )
        scan.imports = _imports(source)
        scan.index_spans(_functions(path, source, scan.lines))

        queries = _queries(scan)
        routes = [draft.route for draft in _attach_inline_queries(_routes(scan), queries)]
        api_calls = _api_calls(scan)
        components = _components(scan, api_calls)
        pages = _pages(scan, components)

        functions = tuple(span.info for span in sorted(scan.spans, key=lambda item: item.start))
        return ExtractionResult(
            functions=functions,
            components=tuple(components),
            routes=tuple(routes),
            queries=tuple(query for _, query in queries),
            imports=scan.imports,
            pages=tuple(pages),
        )


def _script_source(path: str, text: str) -> str:
    if PurePosixPath(path).suffix.lower() not in _SINGLE_FILE_SUFFIXES:
        return text
    chars = [char if char == "\n" else " " for char in text]
    for match in _SCRIPT_BLOCK.finditer(text):
        chars[match.start(1) : match.end(1)] = text[match.start(1) : match.end(1)]
    return "".join(chars)


def _imports(text: str) -> Tuple[str, ...]:
    found: List[str] = []
    for pattern in (_IMPORT_FROM, _REQUIRE):
        for match in pattern.finditer(text):
            module = match.group("module")
            if module not in found:
                found.append(module)
    return tuple(found)


# ---------------------------------------------------------------------------
# Functions and exports
# ---------------------------------------------------------------------------


def _functions(path: str, text: str, lines: LineIndex) -> List[_Span]:
    exported_names = _exported_names(text)
    spans: Dict[Tuple[str, int], _Span] = {}

    for match in _FUNCTION_DECL.finditer(text):
        params_open = match.end() - 1
        span = _build_span(
            path,
            text,
            lines,
            name=match.group("name"),
            start=match.start(),
            params_open=params_open,
            exported=bool(match.group("export")) or match.group("name") in exported_names,
            is_async=bool(match.group("async")),
            arrow=False,
        )
        if span is not None:
            spans.setdefault((span.name, span.start), span)

    for pattern, always_exported in ((_VARIABLE_DECL, False), (_EXPORTS_ASSIGN, True)):
        for match in pattern.finditer(text):
            name = match.group("name")
            exported = always_exported or bool(match.groupdict().get("export")) or name in exported_names
            span = _function_value(path, text, lines, match, name, exported)
            if span is not None:
                spans.setdefault((span.name, span.start), span)

    return sorted(spans.values(), key=lambda item: item.start)


def _function_value(
    path: str, text: str, lines: LineIndex, match: re.Match[str], name: str, exported: bool
) -> Optional[_Span]:
    position = match.end()
    is_async = bool(match.group("async"))
    keyword = _FUNCTION_KEYWORD.match(text, position)
    if keyword:
        return _build_span(
            path, text, lines, name=name, start=match.start(), params_open=keyword.end() - 1,
            exported=exported, is_async=is_async, arrow=False,
        )
    if position < len(text) and text[position] == "(":
        return _build_span(
            path, text, lines, name=name, start=match.start(), params_open=position,
            exported=exported, is_async=is_async, arrow=True,
        )
    single = _SINGLE_PARAM_ARROW.match(text, position)
    if single:
        body_start = single.end()
        body_end = _body_end(text, body_start)
        info = FunctionInfo(
            name=name,
            file=path,
            params=(single.group("param"),),
            exported=exported,
            is_async=is_async,
            line=lines.line(match.start()),
            calls=collect_calls(text[body_start:body_end], exclude=(name,)),
        )
        return _Span(name=name, start=match.start(), end=body_end, info=info)
    return None


def _build_span(
    path: str,
    text: str,
    lines: LineIndex,
    *,
    name: str,
    start: int,
    params_open: int,
    exported: bool,
    is_async: bool,
    arrow: bool,
) -> Optional[_Span]:
    params_close = find_closing(text, params_open)
    if params_close < 0:
        return None
    if arrow:
        arrow_match = _ARROW_AFTER_PARAMS.match(text, params_close + 1)
        if not arrow_match:
            return None
        body_start = arrow_match.end()
    else:
        body_start = text.find("{", params_close + 1)
        if body_start < 0:
            return None
        between = text[params_close + 1 : body_start]
        if ";" in between or (between.strip() and not between.strip().startswith(":")):
            return None
    body_end = _body_end(text, body_start)
    info = FunctionInfo(
        name=name,
        file=path,
        params=_params(text[params_open + 1 : params_close]),
        exported=exported,
        is_async=is_async,
        line=lines.line(start),
        calls=collect_calls(text[body_start:body_end], exclude=(name,)),
    )
    return _Span(name=name, start=start, end=body_end, info=info)


def _body_end(text: str, body_start: int) -> int:
    if body_start < len(text) and text[body_start] in "{(":
        close = find_closing(text, body_start)
        return len(text) if close < 0 else close + 1
    newline = text.find("\n", body_start)
    semicolon = text.find(";", body_start)
    candidates = [index for index in (newline, semicolon) if index >= 0]
    return min(candidates) if candidates else len(text)


def _params(raw: str) -> Tuple[str, ...]:
    params: List[str] = []
    for item in split_top_level(raw):
        value = item.lstrip(".").strip()
        if value.startswith(("{", "[")):
            close = find_closing(value, 0)
            pattern = value[: close + 1] if close >= 0 else value
            params.append(" ".join(pattern.split()))
            continue
        name = leading_name(value)
        if name and name != "this":
            params.append(name)
    return tuple(params)


def _exported_names(text: str) -> Set[str]:
    names: Set[str] = set()
    for match in _EXPORT_LIST.finditer(text):
        for item in match.group("names").split(","):
            local = item.strip().split(" as ")[0].strip()
            if local:
                names.add(local)
    for pattern in (_EXPORT_DEFAULT_NAME, _MODULE_EXPORTS_NAME):
        for match in pattern.finditer(text):
            names.add(match.group("name"))
    for match in _MODULE_EXPORTS_OBJECT.finditer(text):
        open_index = match.end() - 1
        close = find_closing(text, open_index)
        if close < 0:
            continue
        for item in split_top_level(text[open_index + 1 : close]):
            value = item.split(":", 1)[1] if ":" in item else item
            name = leading_name(value.lstrip("."))
            if name:
                names.add(name)
    return names


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


def _router_receivers(text: str) -> Set[str]:
    receivers = set(_DEFAULT_RECEIVERS)
    receivers.update(match.group("name") for match in _ROUTER_BINDING.finditer(text))
    return receivers


def _routes(scan: _FileScan) -> List[_RouteDraft]:
    text = scan.text
    receivers = _router_receivers(text)
    drafts: List[_RouteDraft] = []

    for match in _ROUTE_CALL.finditer(text):
        if match.group("receiver") not in receivers:
            continue
        open_index = match.end() - 1
        draft = _route_from_call(scan, match.group("verb"), open_index, path=None, line_index=match.start())
        if draft is not None:
            drafts.append(draft)

    for match in _ROUTE_CHAIN.finditer(text):
        if match.group("receiver") not in receivers:
            continue
        open_index = match.end() - 1
        close = find_closing(text, open_index)
        if close < 0:
            continue
        path = string_literal(text[open_index + 1 : close])
        if path is None:
            continue
        position = close + 1
        while True:
            chained = _CHAINED_VERB.match(text, position)
            if not chained:
                break
            chained_open = chained.end() - 1
            draft = _route_from_call(scan, chained.group("verb"), chained_open, path=path, line_index=match.start())
            if draft is not None:
                drafts.append(draft)
            chained_close = find_closing(text, chained_open)
            if chained_close < 0:
                break
            position = chained_close + 1

    return drafts


def _route_from_call(
    scan: _FileScan, verb: str, open_index: int, *, path: Optional[str], line_index: int
) -> Optional[_RouteDraft]:
    text = scan.text
    close = find_closing(text, open_index)
    if close < 0:
        return None
    spans = argument_spans(text, open_index + 1, close)
    if path is None:
        if len(spans) < 2:
            return None
        path = string_literal(text[spans[0][0] : spans[0][1]])
        if path is None:
            return None
        spans = spans[1:]
    if not spans:
        return None

    handler_start, handler_end = _unwrap_handler(text, *spans[-1])
    handler_text = text[handler_start:handler_end]
    middleware: List[str] = []
    for start, end in spans[:-1]:
        middleware.extend(_middleware_names(text[start:end]))

    inline_span: Optional[Tuple[int, int]] = None
    calls: Tuple[str, ...] = ()
    if _is_inline_function(handler_text):
        handler = INLINE_HANDLER
        calls = collect_calls(handler_text)
        inline_span = (handler_start, handler_end)
    else:
        handler = leading_name(handler_text) or " ".join(handler_text.split())

    method = "DELETE" if verb == "del" else verb.upper()
    route = RouteInfo(
        method=method,
        path=path,
        file=scan.path,
        handler=handler,
        middleware=tuple(middleware),
        calls=calls,
        line=scan.line(line_index),
    )
    return _RouteDraft(route=route, inline_span=inline_span)


def _unwrap_handler(text: str, start: int, end: int) -> Tuple[int, int]:
    """Look through single-argument wrappers such as ``asyncHandler(getUsers)``."""
    wrapper = _WRAPPER_CALL.match(text, start, end)
    if not wrapper:
        return start, end
    open_index = wrapper.end() - 1
    if find_closing(text, open_index) != end - 1:
        return start, end
    inner = argument_spans(text, open_index + 1, end - 1)
    if len(inner) != 1:
        return start, end
    inner_text = text[inner[0][0] : inner[0][1]]
    if _is_inline_function(inner_text) or leading_name(inner_text) == inner_text.strip():
        return inner[0]
    return start, end


def _middleware_names(argument: str) -> List[str]:
    stripped = argument.strip()
    if stripped.startswith("["):
        close = find_closing(stripped, 0)
        inner = stripped[1:close] if close > 0 else stripped[1:]
        names: List[str] = []
        for item in split_top_level(inner):
            names.extend(_middleware_names(item))
        return names
    if _is_inline_function(stripped):
        return [INLINE_HANDLER]
    name = leading_name(stripped)
    return [name] if name else []


def _is_inline_function(value: str) -> bool:
    stripped = value.strip()
    if stripped.startswith(("function", "async")):
        return True
    if stripped.startswith("("):
        close = find_closing(stripped, 0)
        return close > 0 and bool(_ARROW_AFTER_PARAMS.match(stripped, close + 1))
    return bool(_SINGLE_PARAM_ARROW.match(stripped))


def _attach_inline_queries(
    drafts: Sequence[_RouteDraft], queries: Sequence[Tuple[int, DatabaseQuery]]
) -> Iterator[_RouteDraft]:
    for draft in drafts:
        if draft.inline_span is None:
            yield draft
            continue
        start, end = draft.inline_span
        keys = tuple(query.key for index, query in queries if start <= index < end)
        if not keys:
            yield draft
            continue
        route = draft.route
        yield _RouteDraft(
            route=RouteInfo(
                method=route.method,
                path=route.path,
                file=route.file,
                handler=route.handler,
                middleware=route.middleware,
                calls=route.calls,
                line=route.line,
                queries=keys,
            ),
            inline_span=draft.inline_span,
        )


# ---------------------------------------------------------------------------
# HTTP client calls
# ---------------------------------------------------------------------------


def _api_calls(scan: _FileScan) -> List[Tuple[int, ApiCall]]:
    text = scan.text
    routers = _router_receivers(text)
    clients = set(_DEFAULT_CLIENTS)
    clients.update(match.group("name") for match in _CLIENT_BINDING.finditer(text))
    clients -= routers

    found: List[Tuple[int, ApiCall]] = []

    for match in _CLIENT_VERB_CALL.finditer(text):
        client = match.group("client")
        if client not in clients:
            continue
        arguments = _call_arguments(text, match.end() - 1)
        if not arguments:
            continue
        url = string_literal(arguments[0])
        if url is None or not looks_like_url(url):
            continue
        found.append((match.start(), _api_call(scan, match.group("verb").upper(), url, client, match.start())))

    for pattern, client in ((_FETCH_CALL, "fetch"), (_AXIOS_DIRECT_CALL, "axios")):
        for match in pattern.finditer(text):
            arguments = _call_arguments(text, match.end() - 1)
            if not arguments:
                continue
            url = string_literal(arguments[0])
            options = " ".join(arguments[1:])
            if url is None and arguments[0].lstrip().startswith("{"):
                options = arguments[0]
                url_match = _OPTION_URL.search(options)
                url = url_match.group("url") if url_match else None
            if url is None or not looks_like_url(url):
                continue
            method_match = _OPTION_METHOD.search(options)
            method = method_match.group("method").upper() if method_match else "GET"
            found.append((match.start(), _api_call(scan, method, url, client, match.start())))

    found.sort(key=lambda item: item[0])
    return found


def _call_arguments(text: str, open_index: int) -> List[str]:
    close = find_closing(text, open_index)
    if close < 0:
        return []
    return [text[start:end] for start, end in argument_spans(text, open_index + 1, close)]


def _api_call(scan: _FileScan, method: str, url: str, client: str, index: int) -> ApiCall:
    return ApiCall(
        method=method,
        url=url,
        path=url_path(url),
        client=client,
        line=scan.line(index),
        function=scan.enclosing_name(index),
    )


# ---------------------------------------------------------------------------
# Database queries
# ---------------------------------------------------------------------------


def _queries(scan: _FileScan) -> List[Tuple[int, DatabaseQuery]]:
    text = scan.text
    found: List[Tuple[int, DatabaseQuery]] = []

    def _add(index: int, end: int, operation: Optional[QueryOperation], table: Optional[str]) -> None:
        if operation is None:
            return
        found.append(
            (
                index,
                DatabaseQuery(
                    file=scan.path,
                    operation=operation,
                    table=table,
                    function=scan.enclosing_name(index),
                    snippet=snippet(text, index, end),
                    line=scan.line(index),
                ),
            )
        )

    for match in _SQL_CALL.finditer(text):
        arguments = _call_arguments(text, match.end() - 1)
        if not arguments:
            continue
        sql = string_literal(arguments[0])
        if sql is None or not looks_like_sql(sql):
            continue
        _add(match.start(), match.end() + len(arguments[0]) + 1, sql_operation(sql), sql_table(sql))

    for match in _SQL_TAG.finditer(text):
        close = text.find("`", match.end())
        if close < 0:
            continue
        sql = text[match.end() : close]
        if looks_like_sql(sql):
            _add(match.start(), close + 1, sql_operation(sql), sql_table(sql))

    for match in _SUPABASE_CALL.finditer(text):
        _add(match.start(), match.end(), infer_operation(match.group("op")), match.group("table"))

    for match in _KNEX_CALL.finditer(text):
        statement_end = text.find(";", match.end())
        statement_end = len(text) if statement_end < 0 else statement_end
        chain = text[match.end() : statement_end]
        write = _KNEX_WRITE.search(chain)
        operation = infer_operation(write.group("op")) if write else QueryOperation.READ
        _add(match.start(), match.end(), operation, match.group("table"))

    for match in _COLLECTION_CALL.finditer(text):
        _add(match.start(), match.end(), infer_operation(match.group("op")), match.group("table"))

    for match in _PRISMA_CALL.finditer(text):
        _add(match.start(), match.end(), infer_operation(match.group("op")), match.group("table"))

    if scan.file_type is FileType.DATABASE or any(module.startswith(_ORM_MODULES) for module in scan.imports):
        for match in _ORM_CALL.finditer(text):
            if match.group("table") in _NON_MODEL_ROOTS:
                continue
            _add(match.start(), match.end(), infer_operation(match.group("op")), match.group("table"))

    # Overlapping patterns can report one call twice; distinct calls on a line stay.
    unique: Dict[Tuple[int, Optional[str], QueryOperation], Tuple[int, DatabaseQuery]] = {}
    for index, query in sorted(found, key=lambda item: item[0]):
        unique.setdefault((query.line, query.table, query.operation), (index, query))
    kept = list(unique.values())
    numbered = number_by_line(query for _, query in kept)
    return [(index, query) for (index, _), query in zip(kept, numbered)]


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


@dataclass
class _ComponentDraft:
    name: str
    start: int
    end: int
    invokes: Set[str] = field(default_factory=set)
    api_calls: List[ApiCall] = field(default_factory=list)


def _components(scan: _FileScan, api_calls: Sequence[Tuple[int, ApiCall]]) -> List[ComponentInfo]:
    text = scan.text
    suffix = PurePosixPath(scan.path).suffix.lower()
    drafts: List[_ComponentDraft] = []

    markup_capable = (
        suffix in _MARKUP_SUFFIXES or scan.file_type is FileType.COMPONENT or bool(_MARKUP.search(text))
    )
    if markup_capable:
        for match in _CLASS_COMPONENT.finditer(text):
            body_open = text.find("{", match.end())
            close = find_closing(text, body_open) if body_open >= 0 else -1
            end = len(text) if close < 0 else close + 1
            drafts.append(_ComponentDraft(name=match.group("name"), start=match.start(), end=end))
        class_drafts = list(drafts)
        outer: Optional[_ComponentDraft] = None
        for span in scan.spans:
            if not span.name[:1].isupper():
                continue
            if outer is not None and span.start < outer.end:
                continue
            if any(draft.start <= span.start < draft.end for draft in class_drafts):
                continue
            if _MARKUP.search(text, span.start, span.end):
                outer = _ComponentDraft(name=span.name, start=span.start, end=span.end)
                drafts.append(outer)
        if not drafts and suffix in _SINGLE_FILE_SUFFIXES:
            drafts.append(_ComponentDraft(name=_pascal_case(PurePosixPath(scan.path).stem), start=0, end=len(text)))

    drafts.sort(key=lambda draft: draft.start)
    leftovers: List[ApiCall] = []
    for index, call in api_calls:
        owner = _innermost(drafts, index)
        if owner is not None:
            owner.api_calls.append(call)
        elif drafts:
            drafts[0].api_calls.append(call)
        else:
            leftovers.append(call)

    single_file = suffix in _SINGLE_FILE_SUFFIXES
    components: List[ComponentInfo] = []
    for position, draft in enumerate(drafts):
        region = text[draft.start : draft.end]
        invokes = set(collect_calls(region, exclude=(draft.name,)))
        invokes.update(match.group("tag") for match in _JSX_TAG.finditer(region) if match.group("tag") != draft.name)
        if single_file:
            # Templates sit outside the script block, so the first component owns them.
            start, end = (0, len(scan.markup)) if position == 0 else (0, 0)
        else:
            start, end = draft.start, draft.end
        components.append(
            ComponentInfo(
                name=draft.name,
                file=scan.path,
                kind=ComponentKind.UI,
                invokes=tuple(sorted(invokes)),
                api_calls=tuple(draft.api_calls),
                line=scan.line(draft.start),
                events=tuple(_events(scan, start, end)),
                navigation=tuple(_navigation(scan, start, end)),
            )
        )

    if scan.file_type is FileType.SERVICE or (leftovers and scan.file_type is not FileType.ROUTE):
        components.append(
            ComponentInfo(
                name=PurePosixPath(scan.path).stem.split(".")[0],
                file=scan.path,
                kind=ComponentKind.SERVICE,
                invokes=tuple(sorted(set(collect_calls(text)))),
                api_calls=tuple(leftovers),
                line=1,
            )
        )
    return components


def _innermost(drafts: Sequence[_ComponentDraft], index: int) -> Optional[_ComponentDraft]:
    best: Optional[_ComponentDraft] = None
    for draft in drafts:
        if draft.start <= index < draft.end and (best is None or draft.start >= best.start):
            best = draft
    return best


def _pascal_case(stem: str) -> str:
    parts = re.split(r"[^A-Za-z0-9]+", stem)
    return "".join(part[:1].upper() + part[1:] for part in parts if part) or "Component"


# ---------------------------------------------------------------------------
# Events, navigation, and pages
# ---------------------------------------------------------------------------


def _events(scan: _FileScan, start: int, end: int) -> Iterator[UiEvent]:
    markup = scan.markup
    for match in _EVENT_ATTR.finditer(markup, start, end):
        element = _element_before(markup, start, match.start())
        if element is None:
            continue
        open_index = match.end() - 1
        close = find_closing(markup, open_index)
        if close < 0:
            continue
        yield _ui_event(element, match.group("event"), markup[open_index + 1 : close], scan.line(match.start()))
    for match in _VUE_EVENT.finditer(markup, start, end):
        element = _element_before(markup, start, match.start())
        if element is not None:
            yield _ui_event(element, "@" + match.group("event"), match.group("body"), scan.line(match.start()))


def _element_before(markup: str, start: int, index: int) -> Optional[str]:
    opening = markup.rfind("<", start, index)
    if opening < 0:
        return None
    match = _OPENING_TAG.match(markup, opening)
    return match.group("tag") if match else None


def _ui_event(element: str, event: str, expression: str, line: int) -> UiEvent:
    expression = expression.strip()
    if _is_inline_function(expression):
        return UiEvent(element, event, INLINE_HANDLER, collect_calls(expression), line)
    handler = leading_name(expression) or INLINE_HANDLER
    rest = expression[len(handler) :].strip() if handler != INLINE_HANDLER else expression
    calls = collect_calls(expression) if rest else ()
    return UiEvent(element, event, handler, calls, line)


def _navigation(scan: _FileScan, start: int, end: int) -> Iterator[Navigation]:
    seen: Set[Tuple[str, str]] = set()
    found: List[Tuple[int, Navigation]] = []
    for pattern, method in ((_NAV_ELEMENT, "link"), (_NAV_CALL, "programmatic")):
        for match in pattern.finditer(scan.markup, start, end):
            target = match.group("target").strip()
            if not target.startswith("/") or target.startswith("//"):
                continue
            target = url_path(target)
            if (target, method) in seen:
                continue
            seen.add((target, method))
            found.append((match.start(), Navigation(target, method, scan.line(match.start()))))
    found.sort(key=lambda item: item[0])
    return (navigation for _, navigation in found)


def _pages(scan: _FileScan, components: Sequence[ComponentInfo]) -> List[PageInfo]:
    pages: List[PageInfo] = []
    file_page = _file_page(scan, [item for item in components if item.kind is ComponentKind.UI])
    if file_page is not None:
        pages.append(file_page)
    pages.extend(_router_pages(scan))
    return pages


def _file_page(scan: _FileScan, components: Sequence[ComponentInfo]) -> Optional[PageInfo]:
    """Treat files under pages/, views/, screens/, or a Next.js app/ page file as pages."""
    if not components:
        return None
    path = PurePosixPath(scan.path)
    folders = [part.lower() for part in path.parts[:-1]]
    stem = path.stem
    if "pages" in folders:
        nested = path.parts[folders.index("pages") + 1 : -1]
        if (nested and nested[0].lower() == "api") or stem.startswith("_"):
            return None
        # PascalCase files are React components whose routes are declared elsewhere.
        route: Optional[str] = None
        if not stem[:1].isupper():
            route = normalize_path("/".join([*nested, *([] if stem == "index" else [stem])]))
    elif "app" in folders and stem == "page":
        nested = path.parts[folders.index("app") + 1 : -1]
        kept = [part for part in nested if not (part.startswith("(") and part.endswith(")"))]
        route = normalize_path("/".join(kept))
    elif _PAGE_DIRS.intersection(folders):
        route = None
    else:
        return None

    default = _DEFAULT_EXPORT.search(scan.text)
    names = {item.name: item for item in components}
    component = names.get(default.group("name")) if default else None
    if component is None:
        component = components[0]
    return PageInfo(component=component.name, file=scan.path, path=route, source="file", line=component.line)


def _router_pages(scan: _FileScan) -> Iterator[PageInfo]:
    text = scan.markup
    for match in _ROUTE_ELEMENT.finditer(text):
        end = _tag_end(text, match.end())
        if end < 0:
            continue
        tag = text[match.start() : end]
        path = _ROUTE_PATH_ATTR.search(tag)
        target = _ROUTE_TARGET_ATTR.search(tag)
        if path and target:
            yield _router_page(scan, path.group("path"), target, match.start())
    for match in _ROUTE_OBJECT.finditer(text):
        yield _router_page(scan, match.group("path"), match, match.start())


def _router_page(scan: _FileScan, path: str, target: re.Match[str], index: int) -> PageInfo:
    component = target.group("element") or target.group("component")
    return PageInfo(
        component=component,
        file=scan.path,
        path=normalize_path(path),
        source="router",
        line=scan.line(index),
    )


def _tag_end(text: str, start: int) -> int:
    index = start
    while index < len(text):
        char = text[index]
        if char == "{":
            close = find_closing(text, index)
            if close < 0:
                return -1
            index = close + 1
            continue
        if char == ">":
            return index
        index += 1
    return -1


__all__ = ["JS_SUFFIXES", "JavaScriptExtractor"]
