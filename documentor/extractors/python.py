"""AST-based extractor for Python web backends (FastAPI, Flask, Django)."""

from __future__ import annotations

import ast
from pathlib import PurePosixPath
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..models import (
    ApiCall,
    ComponentInfo,
    ComponentKind,
    DatabaseQuery,
    FileType,
    FunctionInfo,
    QueryOperation,
    RouteInfo,
)
from .base import ExtractionResult, Extractor
from .core import (
    infer_operation,
    looks_like_sql,
    looks_like_url,
    number_by_line,
    snippet,
    sql_operation,
    sql_table,
    url_path,
)

_ROUTE_VERBS = frozenset({"get", "post", "put", "patch", "delete", "head", "options"})
_ROUTE_ANY_VERBS = frozenset({"route", "api_route"})
_DJANGO_PATH_CALLS = frozenset({"path", "re_path", "url"})
_HTTP_CLIENTS = frozenset({"requests", "httpx"})
_SQL_METHODS = frozenset({"execute", "executemany", "exec_driver_sql", "raw", "fetch", "fetchrow", "fetchval"})
_MONGO_ROOTS = frozenset({"db", "database", "mongo", "client"})
_MONGO_OPERATIONS = frozenset(
    {
        "find",
        "find_one",
        "insert_one",
        "insert_many",
        "update_one",
        "update_many",
        "replace_one",
        "delete_one",
        "delete_many",
        "count_documents",
        "aggregate",
        "find_one_and_update",
        "find_one_and_delete",
    }
)
_SKIPPED_TYPES = frozenset({FileType.TEST, FileType.STYLE, FileType.CONFIG})


class PythonExtractor(Extractor):
    """Recognizes decorated routes, functions, HTTP calls, and data access in Python modules."""

    name = "python"
    suffixes = frozenset({".py"})
    skipped_types = _SKIPPED_TYPES

    def extract(self, path: str, text: str, file_type: FileType) -> ExtractionResult:
        tree = ast.parse(text, filename=path)
        lines = text.splitlines()
        public = _declared_all(tree)

        functions: List[FunctionInfo] = []
        routes: List[RouteInfo] = []
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                functions.append(_function_info(path, node, public))
                routes.extend(_decorated_routes(path, node))

        if PurePosixPath(path).name == "urls.py":
            routes.extend(_django_routes(path, tree))

        queries = list(_queries(path, tree, lines))
        api_calls = list(_api_calls(path, tree))

        components: List[ComponentInfo] = []
        if file_type is FileType.SERVICE or (api_calls and file_type is not FileType.ROUTE):
            components.append(
                ComponentInfo(
                    name=PurePosixPath(path).stem,
                    file=path,
                    kind=ComponentKind.SERVICE,
                    invokes=tuple(sorted({name for fn in functions for name in fn.calls})),
                    api_calls=tuple(api_calls),
                    line=1,
                )
            )

        return ExtractionResult(
            functions=tuple(functions),
            components=tuple(components),
            routes=tuple(routes),
            queries=tuple(queries),
            imports=_imports(tree),
        )


def _declared_all(tree: ast.Module) -> Optional[Set[str]]:
    for node in tree.body:
        if not isinstance(node, ast.Assign):
            continue
        if not any(isinstance(target, ast.Name) and target.id == "__all__" for target in node.targets):
            continue
        if isinstance(node.value, (ast.List, ast.Tuple)):
            return {
                item.value
                for item in node.value.elts
                if isinstance(item, ast.Constant) and isinstance(item.value, str)
            }
    return None


def _function_info(path: str, node: ast.FunctionDef | ast.AsyncFunctionDef, public: Optional[Set[str]]) -> FunctionInfo:
    args = node.args
    params = [arg.arg for arg in (*args.posonlyargs, *args.args)]
    if args.vararg is not None:
        params.append(f"*{args.vararg.arg}")
    params.extend(arg.arg for arg in args.kwonlyargs)
    if args.kwarg is not None:
        params.append(f"**{args.kwarg.arg}")

    exported = node.name in public if public is not None else not node.name.startswith("_")
    return FunctionInfo(
        name=node.name,
        file=path,
        params=tuple(params),
        exported=exported,
        is_async=isinstance(node, ast.AsyncFunctionDef),
        line=node.lineno,
        calls=_calls_in(node.body),
    )


def _calls_in(body: Sequence[ast.stmt]) -> Tuple[str, ...]:
    seen: List[str] = []
    for statement in body:
        for node in ast.walk(statement):
            if isinstance(node, ast.Call):
                name = dotted_name(node.func)
                if name and name not in seen:
                    seen.append(name)
    return tuple(seen)


def dotted_name(node: ast.AST) -> Optional[str]:
    """Return ``a.b.c`` for nested attribute access on a name, else None."""
    parts: List[str] = []
    current = node
    while isinstance(current, ast.Attribute):
        parts.append(current.attr)
        current = current.value
    if isinstance(current, ast.Name):
        parts.append(current.id)
        return ".".join(reversed(parts))
    return None


def _string_value(node: Optional[ast.AST]) -> Optional[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    if isinstance(node, ast.JoinedStr):
        pieces: List[str] = []
        for value in node.values:
            if isinstance(value, ast.Constant) and isinstance(value.value, str):
                pieces.append(value.value)
            elif isinstance(value, ast.FormattedValue):
                pieces.append("${" + (dotted_name(value.value) or "param") + "}")
        return "".join(pieces)
    return None


def _keyword(call: ast.Call, name: str) -> Optional[ast.AST]:
    for keyword in call.keywords:
        if keyword.arg == name:
            return keyword.value
    return None


def _decorated_routes(path: str, node: ast.FunctionDef | ast.AsyncFunctionDef) -> List[RouteInfo]:
    routes: List[RouteInfo] = []
    middleware: List[str] = []
    for decorator in node.decorator_list:
        if not _is_route_decorator(decorator):
            name = dotted_name(decorator.func if isinstance(decorator, ast.Call) else decorator)
            if name:
                middleware.append(name)

    for decorator in node.decorator_list:
        if not _is_route_decorator(decorator):
            continue
        if not isinstance(decorator, ast.Call) or not isinstance(decorator.func, ast.Attribute):
            continue
        verb = decorator.func.attr
        route_path = _string_value(decorator.args[0] if decorator.args else _keyword(decorator, "path"))
        if route_path is None:
            route_path = _string_value(_keyword(decorator, "rule")) or "/"
        if verb in _ROUTE_ANY_VERBS:
            methods = _string_list(_keyword(decorator, "methods")) or ["GET"]
        else:
            methods = [verb]
        dependencies = tuple(middleware) + _dependencies(_keyword(decorator, "dependencies"))
        for method in methods:
            routes.append(
                RouteInfo(
                    method=method.upper(),
                    path=route_path,
                    file=path,
                    handler=node.name,
                    middleware=dependencies,
                    line=decorator.lineno,
                )
            )
    return routes


def _is_route_decorator(decorator: ast.AST) -> bool:
    if not isinstance(decorator, ast.Call) or not isinstance(decorator.func, ast.Attribute):
        return False
    verb = decorator.func.attr
    if verb not in _ROUTE_VERBS and verb not in _ROUTE_ANY_VERBS:
        return False
    first = decorator.args[0] if decorator.args else _keyword(decorator, "path")
    return _string_value(first) is not None or _keyword(decorator, "rule") is not None


def _string_list(node: Optional[ast.AST]) -> List[str]:
    if not isinstance(node, (ast.List, ast.Tuple, ast.Set)):
        return []
    return [value for value in (_string_value(item) for item in node.elts) if value]


def _dependencies(node: Optional[ast.AST]) -> Tuple[str, ...]:
    if not isinstance(node, (ast.List, ast.Tuple)):
        return ()
    names: List[str] = []
    for item in node.elts:
        if isinstance(item, ast.Call) and dotted_name(item.func) == "Depends" and item.args:
            name = dotted_name(item.args[0])
            if name:
                names.append(name)
    return tuple(names)


def _django_routes(path: str, tree: ast.Module) -> Iterator[RouteInfo]:
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call) or dotted_name(node.func) not in _DJANGO_PATH_CALLS:
            continue
        if len(node.args) < 2:
            continue
        route_path = _string_value(node.args[0])
        view = node.args[1]
        if isinstance(view, ast.Call) and isinstance(view.func, ast.Attribute) and view.func.attr == "as_view":
            view = view.func.value
        handler = dotted_name(view)
        if route_path is None or handler is None or handler == "include":
            continue
        yield RouteInfo(
            method="ANY",
            path="/" + route_path.lstrip("^").rstrip("$").lstrip("/"),
            file=path,
            handler=handler,
            line=node.lineno,
        )


def _imports(tree: ast.Module) -> Tuple[str, ...]:
    found: List[str] = []
    for node in ast.walk(tree):
        names: Iterable[str] = ()
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom) and node.module:
            names = [node.module]
        for name in names:
            if name not in found:
                found.append(name)
    return tuple(found)


def _walk_with_function(tree: ast.Module) -> Iterator[Tuple[ast.AST, Optional[str]]]:
    """Yield every node with the name of its innermost enclosing function."""
    stack: List[Tuple[ast.AST, Optional[str]]] = [(tree, None)]
    while stack:
        node, owner = stack.pop()
        for child in ast.iter_child_nodes(node):
            child_owner = child.name if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)) else owner
            yield child, child_owner
            stack.append((child, child_owner))


def _queries(path: str, tree: ast.Module, lines: Sequence[str]) -> Iterator[DatabaseQuery]:
    found: List[Tuple[int, int, DatabaseQuery]] = []
    for node, owner in _walk_with_function(tree):
        if not isinstance(node, ast.Call):
            continue
        recognized = _recognize_query(node)
        if recognized is None:
            continue
        operation, table = recognized
        line = node.lineno
        text = lines[line - 1] if 0 < line <= len(lines) else ""
        found.append(
            (
                line,
                node.col_offset,
                DatabaseQuery(
                    file=path,
                    operation=operation,
                    table=table,
                    function=owner,
                    snippet=snippet(text, 0, len(text)),
                    line=line,
                ),
            )
        )

    seen: Set[Tuple[int, Optional[str], QueryOperation]] = set()
    unique: List[DatabaseQuery] = []
    for _, _, query in sorted(found, key=lambda item: item[:2]):
        marker = (query.line, query.table, query.operation)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(query)
    yield from number_by_line(unique)


def _recognize_query(call: ast.Call) -> Optional[Tuple[QueryOperation, Optional[str]]]:
    func = call.func
    if isinstance(func, ast.Name) and func.id == "text":
        sql = _string_value(call.args[0]) if call.args else None
        if sql and looks_like_sql(sql):
            operation = sql_operation(sql)
            return (operation, sql_table(sql)) if operation else None
        return None
    if not isinstance(func, ast.Attribute):
        return None

    method = func.attr
    receiver = dotted_name(func.value) or ""

    if method in _SQL_METHODS and call.args:
        sql = _string_value(call.args[0])
        if sql and looks_like_sql(sql):
            operation = sql_operation(sql)
            return (operation, sql_table(sql)) if operation else None
        return None

    if method == "query" and call.args and isinstance(call.args[0], ast.Name) and call.args[0].id[:1].isupper():
        return QueryOperation.READ, call.args[0].id

    if receiver.endswith(".objects") or receiver == "objects":
        model = receiver.split(".")[-2] if "." in receiver else None
        operation = infer_operation(method)
        return (operation, model) if operation else None

    if receiver.split(".")[-1] == "session" or receiver == "session":
        if method == "add" or method == "add_all":
            return QueryOperation.WRITE, _instance_model(call)
        if method == "delete":
            return QueryOperation.DELETE, _instance_model(call)
        return None

    if method in _MONGO_OPERATIONS:
        collection = _mongo_collection(func.value)
        if collection is not None:
            operation = infer_operation(method)
            return (operation, collection) if operation else None
    return None


def _instance_model(call: ast.Call) -> Optional[str]:
    if call.args and isinstance(call.args[0], ast.Call):
        name = dotted_name(call.args[0].func)
        if name and name.split(".")[-1][:1].isupper():
            return name.split(".")[-1]
    return None


def _mongo_collection(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name) and node.value.id in _MONGO_ROOTS:
        return node.attr
    if isinstance(node, ast.Subscript) and isinstance(node.value, ast.Name) and node.value.id in _MONGO_ROOTS:
        return _string_value(node.slice)
    return None


def _api_calls(path: str, tree: ast.Module) -> Iterator[ApiCall]:
    found: List[ApiCall] = []
    for node, owner in _walk_with_function(tree):
        if not isinstance(node, ast.Call) or not isinstance(node.func, ast.Attribute):
            continue
        client = dotted_name(node.func.value)
        verb = node.func.attr
        if client not in _HTTP_CLIENTS or verb not in _ROUTE_VERBS:
            continue
        url = _string_value(node.args[0] if node.args else _keyword(node, "url"))
        if url is None or not looks_like_url(url):
            continue
        found.append(
            ApiCall(
                method=verb.upper(),
                url=url,
                path=url_path(url),
                client=client,
                line=node.lineno,
                function=owner,
            )
        )
    yield from sorted(found, key=lambda call: call.line)


__all__ = ["PythonExtractor", "dotted_name"]
